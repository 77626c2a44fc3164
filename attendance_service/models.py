"""
Domain models for Attendance Service.

Identities and attendance events are immutable; stores assign ids.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

import numpy as np

from .errors import ValidationError


class EventKind(str, Enum):
    """Attendance event type."""
    
    CHECK_IN = 'CHECK_IN'
    CHECK_OUT = 'CHECK_OUT'


class Outcome(str, Enum):
    """Result of an attendance submission."""
    
    MATCHED_CHECK_IN = 'MATCHED_CHECK_IN'
    MATCHED_CHECK_OUT = 'MATCHED_CHECK_OUT'
    NO_MATCH = 'NO_MATCH'
    TOO_SOON = 'TOO_SOON'


@dataclass(frozen=True, eq=False)
class Identity:
    """
    Enrolled user.
    
    Attributes:
        id: Store-assigned identifier
        name: Display name
        email: Unique email address
        descriptor: Face descriptor captured at enrollment
    """
    
    id: Any
    name: str
    email: str
    descriptor: np.ndarray
    
    def summary(self) -> Dict[str, Any]:
        """Public view of the identity, without the descriptor."""
        return {'id': self.id, 'name': self.name, 'email': self.email}


@dataclass(frozen=True)
class AttendanceEvent:
    """
    Single check-in or check-out.
    
    Attributes:
        identity_id: Id of the enrolled user
        kind: CHECK_IN or CHECK_OUT
        timestamp: Capture time (timezone-aware)
        similarity: Similarity score of the match that produced the event
        latency_ms: Client-side detection latency, if reported
        detection_score: Client-side detector confidence, if reported
        id: Store-assigned identifier (None until appended)
    """
    
    identity_id: Any
    kind: EventKind
    timestamp: datetime
    similarity: float
    latency_ms: Optional[float] = None
    detection_score: Optional[float] = None
    id: Any = None
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'identityId': self.identity_id,
            'type': self.kind.value,
            'timestamp': self.timestamp.isoformat(),
            'similarity': self.similarity,
            'latencyMs': self.latency_ms,
            'detectionScore': self.detection_score,
        }


@dataclass(frozen=True)
class CaptureMetrics:
    """Detection metrics reported by the capturing client."""
    
    latency_ms: Optional[float] = None
    detection_score: Optional[float] = None


@dataclass(frozen=True)
class AttendanceResult:
    """
    Outcome of submit_attendance.
    
    Attributes:
        outcome: What happened
        identity: Matched identity (None for NO_MATCH)
        event: Committed event (only for MATCHED_* outcomes)
        similarity: Similarity of the matched identity
        minutes_remaining: Remaining dwell time (only for TOO_SOON)
        skipped_ids: Candidates skipped because of a corrupted or mismatched descriptor
    """
    
    outcome: Outcome
    identity: Optional[Identity] = None
    event: Optional[AttendanceEvent] = None
    similarity: Optional[float] = None
    minutes_remaining: Optional[float] = None
    skipped_ids: List[Any] = field(default_factory=list)
    
    @property
    def matched(self) -> bool:
        return self.outcome in (Outcome.MATCHED_CHECK_IN, Outcome.MATCHED_CHECK_OUT)


def to_descriptor(values: Any, expected_length: int = 0) -> np.ndarray:
    """
    Convert raw input into a face descriptor.
    
    Args:
        values: Sequence of numbers (list, tuple or array)
        expected_length: Required length, 0 to accept any
    
    Returns:
        1-D float32 array
    
    Raises:
        ValidationError: If values is missing, empty, non-numeric,
            non-finite, not one-dimensional or of the wrong length
    """
    if values is None:
        raise ValidationError('Face descriptor is required')
    if isinstance(values, (str, bytes, dict)):
        raise ValidationError('Face descriptor must be a sequence of numbers')
    
    try:
        descriptor = np.asarray(values, dtype=np.float32)
    except (TypeError, ValueError) as e:
        raise ValidationError(f'Face descriptor must be a sequence of numbers: {e}') from e
    
    if descriptor.ndim != 1:
        raise ValidationError('Face descriptor must be a flat sequence of numbers')
    if descriptor.size == 0:
        raise ValidationError('Face descriptor must not be empty')
    if not np.all(np.isfinite(descriptor)):
        raise ValidationError('Face descriptor contains non-finite values')
    if expected_length and descriptor.size != expected_length:
        raise ValidationError(
            f'Face descriptor must have {expected_length} values, got {descriptor.size}'
        )
    
    return descriptor


EMPTY_DESCRIPTOR = np.zeros(0, dtype=np.float32)


def load_stored_descriptor(values: Any) -> np.ndarray:
    """
    Convert a descriptor read back from storage.
    
    Unlike to_descriptor this never raises: unreadable data becomes an
    empty array, which the matcher skips as corrupted.
    """
    try:
        descriptor = np.asarray(values, dtype=np.float32)
    except (TypeError, ValueError):
        return EMPTY_DESCRIPTOR
    
    if not is_valid_descriptor(descriptor):
        return EMPTY_DESCRIPTOR
    return descriptor


def is_valid_descriptor(descriptor: Any) -> bool:
    """Flat, non-empty and finite."""
    return (
        isinstance(descriptor, np.ndarray)
        and descriptor.ndim == 1
        and descriptor.size > 0
        and bool(np.all(np.isfinite(descriptor)))
    )
