"""
Attendance service.

Orchestrates the attendance pipeline:
- Descriptor validation
- Identity matching against enrolled users
- Check-in/check-out resolution from the latest event
- Event persistence and notification
"""

import time
from typing import Any, List, Optional

import numpy as np

from .config import Config
from .errors import LengthMismatchError, TooSoonError, ValidationError
from .events import EventNotifier
from .logging_config import get_logger
from .models import (
    AttendanceEvent,
    AttendanceResult,
    CaptureMetrics,
    EventKind,
    Identity,
    Outcome,
    to_descriptor,
)
from .recognition.comparator import mean_descriptor
from .recognition.matching import find_best_match
from .recognition.resolver import resolve
from .stores.base import AttendanceStore, EnrollmentStore
from .utils.locks import KeyedLock
from .utils.timing import parse_timestamp

logger = get_logger(__name__)

OUTCOME_BY_KIND = {
    EventKind.CHECK_IN: Outcome.MATCHED_CHECK_IN,
    EventKind.CHECK_OUT: Outcome.MATCHED_CHECK_OUT,
}


class AttendanceService:
    """
    Face attendance core bound to its stores.
    
    The read-latest/resolve/append sequence runs under a per-identity lock,
    so concurrent submissions for one identity are serialized.
    """
    
    def __init__(
        self,
        enrollment_store: EnrollmentStore,
        attendance_store: AttendanceStore,
        config: Config,
        notifier: Optional[EventNotifier] = None
    ):
        self.enrollment_store = enrollment_store
        self.attendance_store = attendance_store
        self.config = config
        self.notifier = notifier
        self.identity_locks = KeyedLock()
        self.started_at = time.time()
    
    def enroll(self, name: Any, email: Any, face_data: Any) -> Identity:
        """
        Enroll a new identity.
        
        Args:
            name: Display name
            email: Unique email
            face_data: One descriptor, or a list of descriptors of the same
                face which are averaged
        
        Returns:
            Enrolled identity
        
        Raises:
            ValidationError: Missing field or malformed descriptor
            DuplicateEmailError: Email already enrolled
            StoreUnavailable: Enrollment store failure
        """
        name = name.strip() if isinstance(name, str) else ''
        email = email.strip().lower() if isinstance(email, str) else ''
        
        if not name or not email or face_data is None:
            raise ValidationError('Name, email, and face data are required')
        if '@' not in email:
            raise ValidationError(f'Invalid email address: {email}')
        
        descriptor = self._enrollment_descriptor(face_data)
        identity = self.enrollment_store.add(name, email, descriptor)
        
        logger.info(f'✅ Enrolled {identity.name} (ID: {identity.id}, {len(descriptor)} values)')
        return identity
    
    def _enrollment_descriptor(self, face_data: Any) -> np.ndarray:
        expected = self.config.descriptor_length
        
        is_multi = (
            isinstance(face_data, (list, tuple))
            and len(face_data) > 0
            and isinstance(face_data[0], (list, tuple, np.ndarray))
        )
        if not is_multi:
            return to_descriptor(face_data, expected)
        
        samples = [to_descriptor(sample, expected) for sample in face_data]
        try:
            return mean_descriptor(samples)
        except LengthMismatchError as e:
            raise ValidationError(str(e)) from e
    
    def submit_attendance(
        self,
        probe: Any,
        captured_at: Any = None,
        metrics: Optional[CaptureMetrics] = None
    ) -> AttendanceResult:
        """
        Match a captured descriptor and record check-in or check-out.
        
        Args:
            probe: Captured face descriptor
            captured_at: Capture time (datetime or ISO-8601 string, now if None)
            metrics: Optional client detection metrics
        
        Returns:
            AttendanceResult; NO_MATCH and TOO_SOON are normal outcomes
        
        Raises:
            ValidationError: Malformed descriptor or timestamp
            StoreUnavailable: Store failure, caller may retry
        """
        descriptor = to_descriptor(probe, self.config.descriptor_length)
        now = parse_timestamp(captured_at)
        metrics = metrics or CaptureMetrics()
        
        candidates = self.enrollment_store.list_all()
        skipped: List[Any] = []
        match = find_best_match(descriptor, candidates, self.config, skipped_ids=skipped)
        
        if match is None:
            logger.info(f'Face not recognized among {len(candidates)} enrolled users')
            return AttendanceResult(outcome=Outcome.NO_MATCH, skipped_ids=skipped)
        
        identity = match.identity
        
        with self.identity_locks.hold(identity.id):
            latest = self.attendance_store.latest_for(identity.id)
            
            try:
                decision = resolve(
                    identity,
                    latest,
                    now,
                    self.config.minimum_checkout_minutes,
                )
            except TooSoonError as e:
                return AttendanceResult(
                    outcome=Outcome.TOO_SOON,
                    identity=identity,
                    similarity=match.similarity,
                    minutes_remaining=e.minutes_remaining,
                    skipped_ids=skipped,
                )
            
            event = self.attendance_store.append(AttendanceEvent(
                identity_id=identity.id,
                kind=decision.kind,
                timestamp=now,
                similarity=match.similarity,
                latency_ms=metrics.latency_ms,
                detection_score=metrics.detection_score,
            ))
        
        logger.info(
            f'✅ {identity.name} (ID: {identity.id}) {event.kind.value} '
            f'at {now.isoformat()} (similarity {match.similarity:.3f})'
        )
        
        if self.notifier is not None:
            self.notifier.send_async(identity, event)
        
        return AttendanceResult(
            outcome=OUTCOME_BY_KIND[event.kind],
            identity=identity,
            event=event,
            similarity=match.similarity,
            skipped_ids=skipped,
        )
    
    def get_identity(self, identity_id: Any) -> Optional[Identity]:
        return self.enrollment_store.get(identity_id)
    
    def history(self, identity_id: Any, limit: int = 50) -> List[AttendanceEvent]:
        """Attendance events of an identity, newest first."""
        if limit <= 0:
            raise ValidationError('limit must be positive')
        return self.attendance_store.history_for(identity_id, limit)
    
    def uptime_seconds(self) -> float:
        return time.time() - self.started_at
