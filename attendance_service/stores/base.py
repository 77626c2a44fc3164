"""
Store interfaces consumed by the attendance service.

Implementations must raise StoreUnavailable on I/O failure and
DuplicateEmailError when enrolling an email that already exists.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

import numpy as np

from ..models import AttendanceEvent, Identity


class EnrollmentStore(ABC):
    """Persists enrolled identities."""
    
    @abstractmethod
    def list_all(self) -> List[Identity]:
        """All identities, ordered by id."""
    
    @abstractmethod
    def get(self, identity_id: Any) -> Optional[Identity]:
        """Identity by id, or None."""
    
    @abstractmethod
    def add(self, name: str, email: str, descriptor: np.ndarray) -> Identity:
        """Enroll a new identity and return it with its id."""


class AttendanceStore(ABC):
    """Persists attendance events, partitioned by identity."""
    
    @abstractmethod
    def latest_for(self, identity_id: Any) -> Optional[AttendanceEvent]:
        """Most recent event of an identity, or None."""
    
    @abstractmethod
    def append(self, event: AttendanceEvent) -> AttendanceEvent:
        """Persist an event and return it with its id."""
    
    @abstractmethod
    def history_for(self, identity_id: Any, limit: int = 50) -> List[AttendanceEvent]:
        """Events of an identity, newest first."""
