import os

from attendance_service.events import EventNotifier
from attendance_service.main import _load_local_env, apply_overrides, build_service, parse_args
from attendance_service.stores import (
    BackendEnrollmentStore,
    InMemoryEnrollmentStore,
    SQLiteAttendanceStore,
    SQLiteEnrollmentStore,
)

from .conftest import make_config


def test_cli_flags_override_config():
    args = parse_args(['--port', '8080', '--store', 'memory', '--debug'])
    
    config = apply_overrides(make_config(store_backend='sqlite'), args)
    
    assert config.http_port == 8080
    assert config.store_backend == 'memory'
    assert config.debug_mode is True


def test_no_flags_keep_config():
    config = make_config()
    
    assert apply_overrides(config, parse_args([])) is config


def test_build_service_memory():
    service = build_service(make_config(store_backend='memory'))
    
    assert isinstance(service.enrollment_store, InMemoryEnrollmentStore)
    assert service.notifier is None


def test_build_service_sqlite(tmp_path):
    config = make_config(store_backend='sqlite', database_path=str(tmp_path / 'a.db'))
    
    service = build_service(config)
    
    assert isinstance(service.enrollment_store, SQLiteEnrollmentStore)
    assert isinstance(service.attendance_store, SQLiteAttendanceStore)
    service.enrollment_store.db.close()


def test_build_service_backend_with_webhook():
    config = make_config(store_backend='backend', event_webhook_url='http://hooks.test/')
    
    service = build_service(config)
    
    assert isinstance(service.enrollment_store, BackendEnrollmentStore)
    assert isinstance(service.notifier, EventNotifier)


def test_load_local_env_does_not_override(tmp_path, monkeypatch):
    env_file = tmp_path / '.env'
    env_file.write_text('# comment\nMATCH_MODE=distance\nSERVICE_NAME=from-file\nbroken line\n')
    monkeypatch.setenv('SERVICE_NAME', 'from-env')
    monkeypatch.delenv('MATCH_MODE', raising=False)
    
    _load_local_env(env_file)
    
    assert os.environ['MATCH_MODE'] == 'distance'
    assert os.environ['SERVICE_NAME'] == 'from-env'
    monkeypatch.delenv('MATCH_MODE')
