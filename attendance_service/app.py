"""
Flask application for HTTP API.

Provides:
- POST /api/register: Enroll a user with a face descriptor
- POST /api/attendance: Submit a captured descriptor for check-in/out
- GET /api/users/<id>/attendance: Attendance history of a user
- GET /health: Service health check
"""

from typing import Any, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from .config import Config
from .errors import DuplicateEmailError, StoreUnavailable, ValidationError
from .logging_config import get_logger
from .models import CaptureMetrics, Outcome
from .service import AttendanceService
from .utils.timing import format_uptime

logger = get_logger(__name__)

SUCCESS_MESSAGES = {
    Outcome.MATCHED_CHECK_IN: 'Successful attendance',
    Outcome.MATCHED_CHECK_OUT: 'You have successfully checked out attendance',
}

FAILURE_MESSAGES = {
    'register': 'Failed to register user',
    'attendance': 'Failed to process attendance',
}


def _optional_float(value: Any, field: str) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f'{field} must be a number')
    return float(value)


def parse_metrics(raw: Any) -> CaptureMetrics:
    """Build CaptureMetrics from the client's {accuracy, latencyMs} object."""
    if raw is None:
        return CaptureMetrics()
    if not isinstance(raw, dict):
        raise ValidationError('metrics must be an object')
    
    return CaptureMetrics(
        latency_ms=_optional_float(raw.get('latencyMs'), 'metrics.latencyMs'),
        detection_score=_optional_float(raw.get('accuracy'), 'metrics.accuracy'),
    )


def create_app(config: Config, service: AttendanceService) -> Flask:
    """
    Create and configure Flask application.
    
    Args:
        config: Service configuration
        service: Attendance service bound to its stores
    
    Returns:
        Configured Flask app
    """
    app = Flask(__name__)
    CORS(app)
    
    @app.errorhandler(ValidationError)
    def handle_validation_error(e: ValidationError):
        return jsonify({'error': str(e)}), 400
    
    @app.errorhandler(DuplicateEmailError)
    def handle_duplicate_email(e: DuplicateEmailError):
        return jsonify({'error': 'User with this email already exists'}), 409
    
    @app.errorhandler(StoreUnavailable)
    def handle_store_unavailable(e: StoreUnavailable):
        logger.error(f'Store unavailable: {e}')
        return jsonify({'error': 'Storage temporarily unavailable, please retry'}), 503
    
    @app.errorhandler(Exception)
    def handle_unexpected_error(e: Exception):
        if isinstance(e, HTTPException):
            return e
        
        logger.error(f'Error handling {request.method} {request.path}: {e}', exc_info=True)
        message = FAILURE_MESSAGES.get(request.endpoint, 'Internal server error')
        return jsonify({'error': message}), 500
    
    def json_body() -> dict:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError('Request body must be a JSON object')
        return data
    
    @app.route('/api/register', methods=['POST'])
    def register():
        """Enroll a new user."""
        data = json_body()
        identity = service.enroll(data.get('name'), data.get('email'), data.get('faceData'))
        
        return jsonify({
            'success': True,
            'message': 'User registered successfully',
            'user': identity.summary(),
        })
    
    @app.route('/api/attendance', methods=['POST'])
    def attendance():
        """Match a captured face and record check-in or check-out."""
        data = json_body()
        
        if data.get('faceFeatures') is None:
            raise ValidationError('Face features are required')
        
        result = service.submit_attendance(
            data['faceFeatures'],
            data.get('timestamp'),
            parse_metrics(data.get('metrics')),
        )
        
        if result.outcome == Outcome.NO_MATCH:
            return jsonify({
                'error': 'Face not recognized. Please register first.',
                'outcome': result.outcome.value,
            }), 404
        
        user = {'name': result.identity.name, 'email': result.identity.email}
        
        if result.outcome == Outcome.TOO_SOON:
            return jsonify({
                'error': 'Sorry you have successfully attended',
                'outcome': result.outcome.value,
                'minutesLeft': result.minutes_remaining,
                'user': user,
            }), 400
        
        return jsonify({
            'success': True,
            'outcome': result.outcome.value,
            'message': SUCCESS_MESSAGES[result.outcome],
            'type': result.event.kind.value,
            'similarity': result.similarity,
            'user': user,
        })
    
    @app.route('/api/users/<int:user_id>/attendance')
    def user_attendance(user_id: int):
        """Attendance history of a user, newest first."""
        limit = request.args.get('limit', default=50, type=int)
        
        identity = service.get_identity(user_id)
        if identity is None:
            return jsonify({'error': 'User not found'}), 404
        
        events = service.history(user_id, limit)
        return jsonify({
            'user': identity.summary(),
            'attendance': [event.to_dict() for event in events],
        })
    
    @app.route('/health')
    def health():
        """Health check endpoint."""
        return jsonify({
            'status': 'ok',
            'service': config.service_name,
            'store': config.store_backend,
            'matchMode': config.match_mode,
            'matchThreshold': config.match_threshold,
            'uptime': format_uptime(service.uptime_seconds()),
        })
    
    return app
