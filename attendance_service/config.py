"""
Configuration module for Attendance Service.

Loads configuration from environment variables with sensible defaults.
All settings are immutable after initialization.
"""

import os
from dataclasses import dataclass
from typing import Optional


MATCH_MODES = ('similarity', 'distance')
STORE_BACKENDS = ('sqlite', 'backend', 'memory')

# Default thresholds per scoring mode
DEFAULT_THRESHOLDS = {
    'similarity': 0.80,
    'distance': 0.6,
}

MINIMUM_CHECKOUT_MINUTES = 5.0


@dataclass(frozen=True)
class Config:
    """
    Immutable configuration for Attendance Service.
    
    Service Identity:
        service_name: Name of this service instance (appears in logs)
        http_host: Interface for the Flask HTTP server
        http_port: Port for the Flask HTTP server
    
    Matching:
        match_mode: 'similarity' (1 - distance, higher is better) or
            'distance' (raw Euclidean distance, lower is better)
        match_threshold: Similarity floor or distance ceiling for a match
        descriptor_length: Expected descriptor length (0 = accept any)
    
    Attendance:
        minimum_checkout_minutes: Minimum time between check-in and check-out
    
    Storage:
        store_backend: 'sqlite', 'backend' (remote REST API) or 'memory'
        database_path: SQLite database file
        backend_url: Base URL of the upstream backend API
        backend_timeout: Timeout for backend requests in seconds
    
    Notifications:
        event_webhook_url: Optional URL receiving committed attendance events
    
    System:
        debug_mode: Enable debug logging
    """
    
    # Service
    service_name: str
    http_host: str
    http_port: int
    
    # Matching
    match_mode: str
    match_threshold: float
    descriptor_length: int
    
    # Attendance
    minimum_checkout_minutes: float
    
    # Storage
    store_backend: str
    database_path: str
    backend_url: str
    backend_timeout: float
    
    # Notifications
    event_webhook_url: Optional[str]
    
    # System
    debug_mode: bool
    
    def __post_init__(self) -> None:
        if self.match_mode not in MATCH_MODES:
            raise ValueError(
                f'MATCH_MODE must be one of {", ".join(MATCH_MODES)}, got {self.match_mode!r}'
            )
        if self.store_backend not in STORE_BACKENDS:
            raise ValueError(
                f'STORE_BACKEND must be one of {", ".join(STORE_BACKENDS)}, got {self.store_backend!r}'
            )
        if self.match_threshold < 0:
            raise ValueError('MATCH_THRESHOLD must be non-negative')
        if self.descriptor_length < 0:
            raise ValueError('DESCRIPTOR_LENGTH must be non-negative')
        if self.minimum_checkout_minutes < 0:
            raise ValueError('MIN_CHECKOUT_MINUTES must be non-negative')


def load_config() -> Config:
    """
    Load configuration from environment variables.
    
    Returns:
        Config: Immutable configuration object
    
    Raises:
        ValueError: If a variable holds an invalid value
    """
    match_mode = os.getenv('MATCH_MODE', 'similarity').lower()
    threshold_raw = os.getenv('MATCH_THRESHOLD')
    
    if threshold_raw is not None:
        match_threshold = float(threshold_raw)
    else:
        match_threshold = DEFAULT_THRESHOLDS.get(match_mode, DEFAULT_THRESHOLDS['similarity'])
    
    return Config(
        # Service
        service_name=os.getenv('SERVICE_NAME', 'attendance'),
        http_host=os.getenv('HTTP_HOST', '0.0.0.0'),
        http_port=int(os.getenv('HTTP_PORT', '5000')),
        
        # Matching
        match_mode=match_mode,
        match_threshold=match_threshold,
        descriptor_length=int(os.getenv('DESCRIPTOR_LENGTH', '0')),
        
        # Attendance
        minimum_checkout_minutes=float(
            os.getenv('MIN_CHECKOUT_MINUTES', str(MINIMUM_CHECKOUT_MINUTES))
        ),
        
        # Storage
        store_backend=os.getenv('STORE_BACKEND', 'sqlite').lower(),
        database_path=os.getenv('DATABASE_PATH', 'attendance.db'),
        backend_url=os.getenv('BACKEND_URL', 'http://localhost:3000'),
        backend_timeout=float(os.getenv('BACKEND_TIMEOUT', '10')),
        
        # Notifications
        event_webhook_url=os.getenv('EVENT_WEBHOOK_URL') or None,
        
        # System
        debug_mode=os.getenv('DEBUG', 'false').lower() == 'true',
    )
