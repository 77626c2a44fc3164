import dataclasses
from datetime import datetime, timezone

import numpy as np
import pytest

from attendance_service.app import create_app
from attendance_service.config import Config
from attendance_service.service import AttendanceService
from attendance_service.stores import InMemoryAttendanceStore, InMemoryEnrollmentStore


T0 = datetime(2024, 3, 1, 9, 0, 0, tzinfo=timezone.utc)


def make_config(**overrides) -> Config:
    values = dict(
        service_name='test',
        http_host='127.0.0.1',
        http_port=5000,
        match_mode='similarity',
        match_threshold=0.80,
        descriptor_length=0,
        minimum_checkout_minutes=5.0,
        store_backend='memory',
        database_path=':memory:',
        backend_url='http://backend.test',
        backend_timeout=2.0,
        event_webhook_url=None,
        debug_mode=False,
    )
    values.update(overrides)
    return Config(**values)


def random_descriptor(seed: int, length: int = 128) -> np.ndarray:
    """Unit-norm descriptor; distinct seeds are far apart (distance ~1.4)."""
    rng = np.random.default_rng(seed)
    vector = rng.normal(size=length)
    return (vector / np.linalg.norm(vector)).astype(np.float32)


def with_noise(descriptor: np.ndarray, magnitude: float, seed: int = 99) -> np.ndarray:
    """Descriptor moved by exactly `magnitude` in Euclidean distance."""
    rng = np.random.default_rng(seed)
    direction = rng.normal(size=len(descriptor))
    direction /= np.linalg.norm(direction)
    return (descriptor + magnitude * direction).astype(np.float32)


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def enrollment_store():
    return InMemoryEnrollmentStore()


@pytest.fixture
def attendance_store():
    return InMemoryAttendanceStore()


@pytest.fixture
def service(enrollment_store, attendance_store, config):
    return AttendanceService(enrollment_store, attendance_store, config)


@pytest.fixture
def client(config, service):
    app = create_app(config, service)
    app.config['TESTING'] = True
    return app.test_client()


@pytest.fixture
def distance_config():
    return dataclasses.replace(make_config(), match_mode='distance', match_threshold=0.6)
