"""
Attendance Service - Main Entry Point

Face attendance HTTP service.
Builds the configured stores and serves the Flask API.
"""

import argparse
import dataclasses
import os
import sys
from pathlib import Path
from typing import Optional, Sequence, Tuple

from .app import create_app
from .config import Config, STORE_BACKENDS, load_config
from .events import EventNotifier
from .logging_config import setup_logging, get_logger
from .service import AttendanceService
from .stores import (
    AttendanceStore,
    BackendAttendanceStore,
    BackendClient,
    BackendEnrollmentStore,
    EnrollmentStore,
    InMemoryAttendanceStore,
    InMemoryEnrollmentStore,
    SQLiteAttendanceStore,
    SQLiteDatabase,
    SQLiteEnrollmentStore,
)

logger = get_logger(__name__)


def _load_local_env(env_path: Optional[Path] = None) -> None:
    """Load environment variables from a .env file if present."""
    env_path = env_path or Path.cwd() / '.env'
    if not env_path.exists():
        return

    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith('#') or '=' not in line:
            continue
        key, value = line.split('=', 1)
        os.environ.setdefault(key.strip(), value.strip())


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Attendance Service - Face Recognition Check-In/Check-Out'
    )
    
    parser.add_argument(
        '--host',
        type=str,
        help='Interface to bind (or set HTTP_HOST)'
    )
    
    parser.add_argument(
        '--port',
        type=int,
        help='Port to listen on (or set HTTP_PORT)'
    )
    
    parser.add_argument(
        '--store',
        choices=STORE_BACKENDS,
        help='Storage backend (or set STORE_BACKEND)'
    )
    
    parser.add_argument(
        '--database',
        type=str,
        help='SQLite database path (or set DATABASE_PATH)'
    )
    
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )
    
    return parser.parse_args(argv)


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Return config with command line flags taking precedence."""
    overrides = {}
    if args.host:
        overrides['http_host'] = args.host
    if args.port is not None:
        overrides['http_port'] = args.port
    if args.store:
        overrides['store_backend'] = args.store
    if args.database:
        overrides['database_path'] = args.database
    if args.debug:
        overrides['debug_mode'] = True
    
    return dataclasses.replace(config, **overrides) if overrides else config


def build_stores(config: Config) -> Tuple[EnrollmentStore, AttendanceStore]:
    """
    Create the stores selected by config.store_backend.
    
    Args:
        config: Service configuration
    
    Returns:
        Tuple of (enrollment store, attendance store)
    """
    if config.store_backend == 'memory':
        logger.warning('Using in-memory stores, data is lost on restart')
        return InMemoryEnrollmentStore(), InMemoryAttendanceStore()
    
    if config.store_backend == 'backend':
        client = BackendClient(config)
        logger.info(f'Using backend stores at {config.backend_url}')
        return BackendEnrollmentStore(client), BackendAttendanceStore(client)
    
    database = SQLiteDatabase(config.database_path)
    return SQLiteEnrollmentStore(database), SQLiteAttendanceStore(database)


def build_service(config: Config) -> AttendanceService:
    """Wire stores, notifier and service together."""
    enrollment_store, attendance_store = build_stores(config)
    notifier = EventNotifier(config) if config.event_webhook_url else None
    
    return AttendanceService(enrollment_store, attendance_store, config, notifier)


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main entry point."""
    _load_local_env()
    args = parse_args(argv)
    
    try:
        config = apply_overrides(load_config(), args)
    except ValueError as e:
        print(f'Invalid configuration: {e}', file=sys.stderr)
        sys.exit(2)
    
    setup_logging(config.service_name, config.debug_mode)
    
    logger.info('=' * 60)
    logger.info('Attendance Service')
    logger.info('=' * 60)
    logger.info(f'Store: {config.store_backend}')
    logger.info(f'Match: {config.match_mode} (threshold {config.match_threshold})')
    logger.info(f'Minimum check-out interval: {config.minimum_checkout_minutes} min')
    if config.event_webhook_url:
        logger.info(f'Event webhook: {config.event_webhook_url}')
    logger.info('=' * 60)
    
    try:
        service = build_service(config)
        app = create_app(config, service)
        app.run(
            host=config.http_host,
            port=config.http_port,
            threaded=True,
            debug=False,
            use_reloader=False
        )
    except KeyboardInterrupt:
        logger.info('Received keyboard interrupt, shutting down...')
        sys.exit(0)
    except Exception as e:
        logger.error(f'Fatal error: {e}', exc_info=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
