# app/errors.py

from flask import jsonify
from sqlalchemy.exc import SQLAlchemyError, OperationalError, DisconnectionError
from werkzeug.exceptions import HTTPException


class WorkflowError(Exception):
    """Base class for errors surfaced to API callers.

    Each subclass carries the HTTP status and a stable machine-readable
    code so clients can decide whether to retry, refresh or fix input.
    """
    status_code = 500
    code = 'internal'
    message = 'Internal server error'

    def __init__(self, message=None, details=None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details

    def to_dict(self):
        payload = {'error': self.message, 'code': self.code}
        if self.details:
            payload['details'] = self.details
        return payload


class ValidationFailed(WorkflowError):
    """Malformed or missing input. ``details`` maps field names to messages."""
    status_code = 400
    code = 'validation_failed'
    message = 'Validation failed'


class Unauthorized(WorkflowError):
    status_code = 401
    code = 'unauthorized'
    message = 'Unauthorized'


class Forbidden(WorkflowError):
    status_code = 403
    code = 'forbidden'
    message = 'Forbidden'


class NotFound(WorkflowError):
    status_code = 404
    code = 'not_found'
    message = 'Not found'


class Conflict(WorkflowError):
    """The current status does not allow the requested transition."""
    status_code = 409
    code = 'conflict'
    message = 'Invalid state'


class Internal(WorkflowError):
    pass


def register_error_handlers(app):
    """Render workflow, database and HTTP errors as JSON."""
    from app.extensions import db

    @app.errorhandler(WorkflowError)
    def handle_workflow_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_db_error(error):
        app.logger.error(f'Database error occurred: {str(error)}')
        db.session.rollback()
        if isinstance(error, OperationalError):
            return jsonify({'error': 'Database connection error. Please try again later.',
                            'code': 'internal'}), 503
        elif isinstance(error, DisconnectionError):
            db.session.remove()  # Clean up the session
            return jsonify({'error': 'Lost connection to database. Please retry.',
                            'code': 'internal'}), 500
        return jsonify({'error': 'An unexpected database error occurred.', 'code': 'internal'}), 500

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        code = (error.name or 'error').lower().replace(' ', '_')
        return jsonify({'error': error.description, 'code': code}), error.code
