"""
Backend API stores.

Reads and writes users and attendance through the upstream backend:
- GET  /api/users
- GET  /api/users/<id>
- POST /api/users
- GET  /api/users/<id>/attendance?limit=n
- POST /api/attendance
"""

from typing import Any, Dict, List, Optional

import numpy as np
import requests

from ..config import Config
from ..errors import DuplicateEmailError, StoreUnavailable
from ..logging_config import get_logger
from ..models import AttendanceEvent, EventKind, Identity, load_stored_descriptor
from ..utils.timing import parse_timestamp
from .base import AttendanceStore, EnrollmentStore

logger = get_logger(__name__)


class BackendClient:
    """Thin JSON client around requests with store error mapping."""
    
    def __init__(self, config: Config, session: Optional[requests.Session] = None):
        self.base_url = config.backend_url.rstrip('/')
        self.timeout = config.backend_timeout
        self.session = session or requests.Session()
    
    def request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f'{self.base_url}{path}'
        
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout as e:
            logger.error(f'Timeout calling backend {method} {url}')
            raise StoreUnavailable(f'Backend timeout: {url}') from e
        except requests.exceptions.RequestException as e:
            logger.error(f'Error calling backend {method} {url}: {e}')
            raise StoreUnavailable(f'Backend unreachable: {e}') from e
        
        if response.status_code >= 500:
            logger.error(f'Backend error {response.status_code} for {method} {url}')
            raise StoreUnavailable(f'Backend returned {response.status_code}')
        
        return response


def _parse_identity(data: Dict[str, Any]) -> Identity:
    return Identity(
        id=data['id'],
        name=data['name'],
        email=data['email'],
        descriptor=load_stored_descriptor(data.get('faceData')),
    )


def _parse_event(data: Dict[str, Any]) -> AttendanceEvent:
    return AttendanceEvent(
        id=data.get('id'),
        identity_id=data['userId'],
        kind=EventKind(data['type']),
        timestamp=parse_timestamp(data['timestamp']),
        similarity=float(data.get('similarity') or 0.0),
        latency_ms=data.get('latencyMs'),
        detection_score=data.get('detectionScore'),
    )


class BackendEnrollmentStore(EnrollmentStore):
    
    def __init__(self, client: BackendClient):
        self.client = client
    
    def list_all(self) -> List[Identity]:
        response = self.client.request('GET', '/api/users')
        if not response.ok:
            raise StoreUnavailable(f'Failed to list users: {response.status_code}')
        
        users = response.json()
        logger.debug(f'Fetched {len(users)} users from backend')
        return sorted((_parse_identity(u) for u in users), key=lambda i: i.id)
    
    def get(self, identity_id: Any) -> Optional[Identity]:
        response = self.client.request('GET', f'/api/users/{identity_id}')
        if response.status_code == 404:
            return None
        if not response.ok:
            raise StoreUnavailable(f'Failed to load user {identity_id}: {response.status_code}')
        
        return _parse_identity(response.json())
    
    def add(self, name: str, email: str, descriptor: np.ndarray) -> Identity:
        payload = {
            'name': name,
            'email': email,
            'faceData': [float(v) for v in descriptor],
        }
        response = self.client.request('POST', '/api/users', json=payload)
        
        if response.status_code == 409:
            raise DuplicateEmailError(email)
        if not response.ok:
            raise StoreUnavailable(f'Failed to create user: {response.status_code} {response.text}')
        
        return _parse_identity({**payload, **response.json()})


class BackendAttendanceStore(AttendanceStore):
    
    def __init__(self, client: BackendClient):
        self.client = client
    
    def latest_for(self, identity_id: Any) -> Optional[AttendanceEvent]:
        events = self.history_for(identity_id, limit=1)
        return events[0] if events else None
    
    def append(self, event: AttendanceEvent) -> AttendanceEvent:
        payload = {
            'userId': event.identity_id,
            'type': event.kind.value,
            'timestamp': event.timestamp.isoformat(),
            'similarity': event.similarity,
            'latencyMs': event.latency_ms,
            'detectionScore': event.detection_score,
        }
        response = self.client.request('POST', '/api/attendance', json=payload)
        
        if not response.ok:
            raise StoreUnavailable(
                f'Failed to record attendance: {response.status_code} {response.text}'
            )
        
        return _parse_event({**payload, **response.json()})
    
    def history_for(self, identity_id: Any, limit: int = 50) -> List[AttendanceEvent]:
        response = self.client.request(
            'GET',
            f'/api/users/{identity_id}/attendance',
            params={'limit': limit},
        )
        if response.status_code == 404:
            return []
        if not response.ok:
            raise StoreUnavailable(f'Failed to load attendance: {response.status_code}')
        
        events = [_parse_event(e) for e in response.json()]
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
