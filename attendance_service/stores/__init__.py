"""
Store implementations package.

Contains:
- Abstract store interfaces
- In-memory stores
- SQLite stores
- Backend API stores
"""

from .base import AttendanceStore, EnrollmentStore
from .memory import InMemoryAttendanceStore, InMemoryEnrollmentStore
from .sqlite import SQLiteAttendanceStore, SQLiteDatabase, SQLiteEnrollmentStore
from .backend import BackendAttendanceStore, BackendClient, BackendEnrollmentStore

__all__ = [
    'AttendanceStore',
    'EnrollmentStore',
    'InMemoryAttendanceStore',
    'InMemoryEnrollmentStore',
    'SQLiteAttendanceStore',
    'SQLiteDatabase',
    'SQLiteEnrollmentStore',
    'BackendAttendanceStore',
    'BackendClient',
    'BackendEnrollmentStore',
]
