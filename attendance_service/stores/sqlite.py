"""
SQLite-backed stores.

Schema mirrors the users / attendance tables of the web application:
descriptors are stored as JSON arrays, timestamps as UTC ISO-8601 text.
"""

import json
import sqlite3
import threading
from datetime import datetime, timezone
from typing import Any, List, Optional

import numpy as np

from ..errors import DuplicateEmailError, StoreUnavailable
from ..logging_config import get_logger
from ..models import AttendanceEvent, EventKind, Identity, load_stored_descriptor
from .base import AttendanceStore, EnrollmentStore

logger = get_logger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    email TEXT NOT NULL UNIQUE,
    face_data TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS attendance (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES users(id),
    type TEXT NOT NULL CHECK (type IN ('CHECK_IN', 'CHECK_OUT')),
    timestamp TEXT NOT NULL,
    similarity REAL NOT NULL,
    latency_ms REAL,
    detection_score REAL
);

CREATE INDEX IF NOT EXISTS idx_attendance_user_time
    ON attendance (user_id, timestamp DESC);
"""


def _format_timestamp(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec='microseconds')


class SQLiteDatabase:
    """Shared connection for both SQLite stores."""
    
    def __init__(self, db_path: str):
        self.db_path = db_path
        self.lock = threading.RLock()
        
        try:
            self.conn = sqlite3.connect(db_path, check_same_thread=False)
            self.conn.row_factory = sqlite3.Row
            self.conn.execute('PRAGMA foreign_keys = ON')
            self.conn.executescript(SCHEMA)
            self.conn.commit()
        except sqlite3.Error as e:
            raise StoreUnavailable(f'Cannot open database {db_path}: {e}') from e
        
        logger.info(f'Database initialized at: {db_path}')
    
    def close(self) -> None:
        with self.lock:
            self.conn.close()


class SQLiteEnrollmentStore(EnrollmentStore):
    
    def __init__(self, database: SQLiteDatabase):
        self.db = database
    
    @staticmethod
    def _row_to_identity(row: sqlite3.Row) -> Identity:
        try:
            face_data = json.loads(row['face_data'])
        except (TypeError, ValueError):
            logger.warning(f'User {row["id"]} has unreadable face data')
            face_data = None
        
        return Identity(
            id=row['id'],
            name=row['name'],
            email=row['email'],
            descriptor=load_stored_descriptor(face_data),
        )
    
    def list_all(self) -> List[Identity]:
        try:
            with self.db.lock:
                rows = self.db.conn.execute(
                    'SELECT id, name, email, face_data FROM users ORDER BY id'
                ).fetchall()
        except sqlite3.Error as e:
            raise StoreUnavailable(f'Failed to list users: {e}') from e
        
        return [self._row_to_identity(row) for row in rows]
    
    def get(self, identity_id: Any) -> Optional[Identity]:
        try:
            with self.db.lock:
                row = self.db.conn.execute(
                    'SELECT id, name, email, face_data FROM users WHERE id = ?',
                    (identity_id,)
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreUnavailable(f'Failed to load user {identity_id}: {e}') from e
        
        return self._row_to_identity(row) if row is not None else None
    
    def add(self, name: str, email: str, descriptor: np.ndarray) -> Identity:
        face_data = json.dumps([float(v) for v in descriptor])
        created_at = _format_timestamp(datetime.now(timezone.utc))
        
        try:
            with self.db.lock:
                cursor = self.db.conn.execute(
                    'INSERT INTO users (name, email, face_data, created_at) VALUES (?, ?, ?, ?)',
                    (name, email, face_data, created_at)
                )
                self.db.conn.commit()
        except sqlite3.IntegrityError as e:
            raise DuplicateEmailError(email) from e
        except sqlite3.Error as e:
            raise StoreUnavailable(f'Failed to create user: {e}') from e
        
        return Identity(
            id=cursor.lastrowid,
            name=name,
            email=email,
            descriptor=np.asarray(descriptor, dtype=np.float32),
        )


class SQLiteAttendanceStore(AttendanceStore):
    
    def __init__(self, database: SQLiteDatabase):
        self.db = database
    
    @staticmethod
    def _row_to_event(row: sqlite3.Row) -> AttendanceEvent:
        return AttendanceEvent(
            id=row['id'],
            identity_id=row['user_id'],
            kind=EventKind(row['type']),
            timestamp=datetime.fromisoformat(row['timestamp']),
            similarity=row['similarity'],
            latency_ms=row['latency_ms'],
            detection_score=row['detection_score'],
        )
    
    def latest_for(self, identity_id: Any) -> Optional[AttendanceEvent]:
        events = self.history_for(identity_id, limit=1)
        return events[0] if events else None
    
    def append(self, event: AttendanceEvent) -> AttendanceEvent:
        try:
            with self.db.lock:
                cursor = self.db.conn.execute(
                    """
                    INSERT INTO attendance
                        (user_id, type, timestamp, similarity, latency_ms, detection_score)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        event.identity_id,
                        event.kind.value,
                        _format_timestamp(event.timestamp),
                        event.similarity,
                        event.latency_ms,
                        event.detection_score,
                    )
                )
                self.db.conn.commit()
        except sqlite3.Error as e:
            raise StoreUnavailable(f'Failed to record attendance: {e}') from e
        
        return AttendanceEvent(
            id=cursor.lastrowid,
            identity_id=event.identity_id,
            kind=event.kind,
            timestamp=event.timestamp,
            similarity=event.similarity,
            latency_ms=event.latency_ms,
            detection_score=event.detection_score,
        )
    
    def history_for(self, identity_id: Any, limit: int = 50) -> List[AttendanceEvent]:
        try:
            with self.db.lock:
                rows = self.db.conn.execute(
                    """
                    SELECT id, user_id, type, timestamp, similarity, latency_ms, detection_score
                    FROM attendance
                    WHERE user_id = ?
                    ORDER BY timestamp DESC, id DESC
                    LIMIT ?
                    """,
                    (identity_id, limit)
                ).fetchall()
        except sqlite3.Error as e:
            raise StoreUnavailable(f'Failed to load attendance: {e}') from e
        
        return [self._row_to_event(row) for row in rows]
