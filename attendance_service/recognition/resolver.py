"""
Attendance state resolution module.

Decides whether a matched identity is checking in or out:
- no history or last event CHECK_OUT -> CHECK_IN
- last event CHECK_IN older than the minimum dwell time -> CHECK_OUT
- last event CHECK_IN more recent than that -> TooSoonError
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from ..config import MINIMUM_CHECKOUT_MINUTES
from ..errors import TooSoonError
from ..logging_config import get_logger
from ..models import AttendanceEvent, EventKind, Identity

logger = get_logger(__name__)


@dataclass(frozen=True)
class Decision:
    """Event kind to record next, and minutes since the previous event."""
    
    kind: EventKind
    elapsed_minutes: Optional[float] = None


def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def resolve(
    identity: Identity,
    latest_event: Optional[AttendanceEvent],
    now: datetime,
    minimum_checkout_minutes: float = MINIMUM_CHECKOUT_MINUTES
) -> Decision:
    """
    Resolve the next attendance event for an identity.
    
    Args:
        identity: Matched identity
        latest_event: Most recent event of the identity, if any
        now: Capture time of the new event
        minimum_checkout_minutes: Minimum time between check-in and check-out
    
    Returns:
        Decision holding the event kind to record
    
    Raises:
        TooSoonError: If the identity checked in less than
            minimum_checkout_minutes ago
    """
    if latest_event is None:
        logger.debug(f'Identity {identity.id} has no history, checking in')
        return Decision(kind=EventKind.CHECK_IN)
    
    elapsed_minutes = (
        as_utc(now) - as_utc(latest_event.timestamp)
    ).total_seconds() / 60.0
    
    if latest_event.kind == EventKind.CHECK_OUT:
        return Decision(kind=EventKind.CHECK_IN, elapsed_minutes=elapsed_minutes)
    
    if elapsed_minutes < minimum_checkout_minutes:
        minutes_remaining = minimum_checkout_minutes - elapsed_minutes
        logger.info(
            f'Identity {identity.id} checked in {elapsed_minutes:.1f} min ago, '
            f'{minutes_remaining:.1f} min until check-out'
        )
        raise TooSoonError(minutes_remaining)
    
    return Decision(kind=EventKind.CHECK_OUT, elapsed_minutes=elapsed_minutes)
