"""
Flask application for HTTP API.

Provides:
- GET /health, GET /status: Service and terminal state
- /profiles: Enrollment and registry management
- /registration/*: Open or close the camera for enrollment
- /attendance/*: Start/stop scanning, clock-in history
"""

import time
from flask import Flask, jsonify, request
from flask_cors import CORS
from .config import Config
from .exceptions import (
    CameraDeniedError,
    DescriptorMismatchError,
    InvalidNameError,
    ModelUnavailableError,
    NoFaceDetectedError,
    TerminalBusyError,
    TerminalError,
)
from .logging_config import get_logger
from .terminal import AttendanceTerminal
from .utils.timing import format_uptime

logger = get_logger(__name__)

ERROR_STATUS = {
    InvalidNameError: 400,
    TerminalBusyError: 409,
    DescriptorMismatchError: 409,
    NoFaceDetectedError: 422,
    CameraDeniedError: 503,
    ModelUnavailableError: 503,
}


def create_app(terminal: AttendanceTerminal, config: Config) -> Flask:
    """
    Create and configure Flask application.

    Args:
        terminal: Terminal serving the requests
        config: Service configuration

    Returns:
        Configured Flask app
    """
    app = Flask(__name__)
    CORS(app)
    started_at = time.time()

    @app.errorhandler(TerminalError)
    def handle_terminal_error(error: TerminalError):
        status = ERROR_STATUS.get(type(error), 500)
        logger.warning(f'{type(error).__name__}: {error}')
        return jsonify({'error': type(error).__name__, 'message': str(error)}), status

    @app.route('/health')
    def health():
        """Health check endpoint."""
        return jsonify({
            'status': 'ok',
            'mode': terminal.mode.value,
            'uptime': format_uptime(time.time() - started_at),
            'terminalId': config.terminal_id,
            'service': config.service_name,
        })

    @app.route('/status')
    def status():
        return jsonify(terminal.status())

    @app.get('/profiles')
    def list_profiles():
        return jsonify([p.to_dict(include_descriptor=False) for p in terminal.profiles()])

    @app.post('/profiles')
    def enroll():
        payload = request.get_json(silent=True)
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise InvalidNameError('Request body must be a JSON object')

        name = payload.get('name')
        if not isinstance(name, str):
            raise InvalidNameError('Please enter employee name first')

        profile = terminal.enroll(name)
        return jsonify(profile.to_dict(include_descriptor=False)), 201

    @app.delete('/profiles/<profile_id>')
    def delete_profile(profile_id: str):
        return jsonify({'deleted': terminal.delete_profile(profile_id)})

    @app.delete('/profiles')
    def clear_profiles():
        terminal.clear_registry()
        return jsonify({'cleared': True})

    @app.post('/registration/start')
    def start_registration():
        terminal.start_registration()
        return jsonify(terminal.status())

    @app.post('/registration/cancel')
    def cancel_registration():
        terminal.cancel_registration()
        return jsonify(terminal.status())

    @app.post('/attendance/start')
    def start_attendance():
        terminal.begin_attendance()
        return jsonify(terminal.status())

    @app.post('/attendance/stop')
    def stop_attendance():
        terminal.exit_attendance()
        return jsonify(terminal.status())

    @app.get('/attendance')
    def list_attendance():
        return jsonify([r.to_dict() for r in terminal.attendance()])

    @app.delete('/attendance')
    def clear_attendance():
        terminal.clear_ledger()
        return jsonify({'cleared': True})

    @app.delete('/attendance/<record_id>')
    def delete_attendance(record_id: str):
        return jsonify({'deleted': terminal.delete_ledger_entry(record_id)})

    return app
