"""
In-memory stores.

Used by tests and for running the service without persistence.
"""

import dataclasses
import itertools
import threading
from typing import Any, Dict, List, Optional

import numpy as np

from ..errors import DuplicateEmailError
from ..models import AttendanceEvent, Identity
from .base import AttendanceStore, EnrollmentStore


class InMemoryEnrollmentStore(EnrollmentStore):
    
    def __init__(self):
        self._identities: Dict[int, Identity] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
    
    def list_all(self) -> List[Identity]:
        with self._lock:
            return [self._identities[key] for key in sorted(self._identities)]
    
    def get(self, identity_id: Any) -> Optional[Identity]:
        with self._lock:
            return self._identities.get(identity_id)
    
    def add(self, name: str, email: str, descriptor: np.ndarray) -> Identity:
        with self._lock:
            if any(i.email == email for i in self._identities.values()):
                raise DuplicateEmailError(email)
            
            identity = Identity(
                id=next(self._ids),
                name=name,
                email=email,
                descriptor=np.array(descriptor, dtype=np.float32),
            )
            self._identities[identity.id] = identity
            return identity


class InMemoryAttendanceStore(AttendanceStore):
    
    def __init__(self):
        self._events: Dict[Any, List[AttendanceEvent]] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
    
    def latest_for(self, identity_id: Any) -> Optional[AttendanceEvent]:
        with self._lock:
            events = self._events.get(identity_id)
            if not events:
                return None
            return max(events, key=lambda e: e.timestamp)
    
    def append(self, event: AttendanceEvent) -> AttendanceEvent:
        with self._lock:
            stored = dataclasses.replace(event, id=next(self._ids))
            self._events.setdefault(event.identity_id, []).append(stored)
            return stored
    
    def history_for(self, identity_id: Any, limit: int = 50) -> List[AttendanceEvent]:
        with self._lock:
            events = sorted(
                self._events.get(identity_id, []),
                key=lambda e: e.timestamp,
                reverse=True,
            )
            return events[:limit]
