"""Error handling and custom exception classes for Quantify application."""

from flask import jsonify, request
from werkzeug.exceptions import HTTPException
from quantify.utils.logging_config import get_logger


# Custom exception classes
class QuantifyException(Exception):
    """Base exception class for Quantify application."""

    status_code = 500
    code = 'SERVER_ERROR'

    def __init__(self, message=None, details=None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__
        self.details = details or {}


class ValidationError(QuantifyException):
    """Malformed or out-of-range input."""

    status_code = 400
    code = 'VALIDATION_ERROR'


class AuthenticationError(QuantifyException):
    """Authentication required."""

    status_code = 401
    code = 'UNAUTHORIZED'


class AccessDenied(QuantifyException):
    """Access denied."""

    status_code = 403
    code = 'FORBIDDEN'


class NotFound(QuantifyException):
    """The requested resource was not found."""

    status_code = 404
    code = 'NOT_FOUND'


class Conflict(QuantifyException):
    """The request conflicts with existing data."""

    status_code = 409
    code = 'CONFLICT'


# Logger for error handling
logger = get_logger('quantify.errors')

HTTP_ERROR_CODES = {
    400: 'VALIDATION_ERROR',
    401: 'UNAUTHORIZED',
    403: 'FORBIDDEN',
    404: 'NOT_FOUND',
    405: 'METHOD_NOT_ALLOWED',
    413: 'PAYLOAD_TOO_LARGE',
    429: 'RATE_LIMITED',
}

HTTP_ERROR_MESSAGES = {
    401: 'Authentication required',
    403: 'Access denied',
    404: 'The requested resource was not found',
    429: 'Too many requests. Please try again later.',
}


def error_payload(code, message, details=None):
    """Build the common error body."""
    return {
        'error': {
            'code': code,
            'message': message,
            'details': details or {},
        }
    }


def handle_error_response(code, message, status_code, details=None):
    """Wrap an error body in a JSON response."""
    return jsonify(error_payload(code, message, details)), status_code


def init_error_handlers(app):
    """Render every error as the JSON error body."""

    @app.errorhandler(QuantifyException)
    def handle_domain_error(error):
        logger.info(f"{error.code} on {request.method} {request.path}: {error.message}")
        return handle_error_response(error.code, error.message, error.status_code, error.details)

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        status = error.code or 500
        if status >= 500:
            logger.error(f"HTTP {status} on {request.method} {request.path}: {error.description}")
            return handle_error_response('SERVER_ERROR', 'An unexpected error occurred', status)

        if status == 429:
            logger.warning(f"Rate limit hit on {request.path} from {request.remote_addr}")
        elif status in (401, 403):
            logger.warning(f"HTTP {status} on {request.method} {request.path} from {request.remote_addr}")

        message = HTTP_ERROR_MESSAGES.get(status, error.description)
        return handle_error_response(HTTP_ERROR_CODES.get(status, 'HTTP_ERROR'), message, status)

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        from quantify import db
        db.session.rollback()
        logger.error(f"Unhandled {type(error).__name__} on {request.method} {request.path}", exc_info=error)
        return handle_error_response('SERVER_ERROR', 'An unexpected error occurred', 500)
