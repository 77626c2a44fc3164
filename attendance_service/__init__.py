"""
Attendance Service - Face Matching and Check-In/Check-Out Tracking

A modular Python service that matches submitted face descriptors against
enrolled users and records attendance events.
Exposes a small HTTP API for registration and attendance submission.
"""

__version__ = "1.0.0"
__author__ = "Attendance Service Team"
