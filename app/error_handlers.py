"""
Error Handlers Module

Provides centralized error handling for the Flask application.
Every error becomes a JSON body of the form
``{"error": {"code", "title", "message", ["details"]}}``:
- HTTP errors raised by Flask, Werkzeug, Flask-WTF and Flask-Limiter
- Application exceptions from ``app.exceptions`` raised by the services
- Database errors (the session is rolled back first)
- Unexpected exceptions, with internal details hidden outside debug mode
"""

from flask import request, jsonify, current_app
from flask_login import current_user
from werkzeug.exceptions import HTTPException
from sqlalchemy.exc import SQLAlchemyError, IntegrityError

from app.exceptions import BeekeeperException, AuthorizationDenied
from app.extensions import db
from app.logging_config import log_security_event, log_error_with_context


def log_error_event(error_code, error_message, exception=None):
    """
    Log an error response to the security log.

    Args:
        error_code: HTTP status code
        error_message: Error message
        exception: Original exception object (if any)
    """
    severity_map = {
        400: 'INFO',
        401: 'WARNING',
        403: 'WARNING',
        404: 'INFO',
        429: 'WARNING',
        500: 'ERROR',
        503: 'ERROR',
    }
    event_type_map = {
        401: 'UNAUTHORIZED_ACCESS',
        403: 'PERMISSION_DENIED',
        429: 'RATE_LIMIT_EXCEEDED',
    }

    # Don't log 404s from bots/scanners (reduces noise)
    if error_code == 404:
        user_agent = request.headers.get('User-Agent', '').lower()
        if any(indicator in user_agent for indicator in ('bot', 'crawler', 'spider', 'scraper')):
            return

    description = f"HTTP {error_code}: {error_message} [{request.method} {request.path}]"
    if exception is not None and current_app.debug:
        description += f" ({type(exception).__name__}: {exception})"

    log_security_event(
        event_type_map.get(error_code, 'SYSTEM_ERROR'),
        user_id=current_user.id if current_user.is_authenticated else None,
        ip_address=request.remote_addr,
        description=description,
        severity=severity_map.get(error_code, 'ERROR')
    )


def create_error_response(error_code, title, message, details=None):
    """
    Create a JSON error response.

    Args:
        error_code: HTTP status code
        title: Error title
        message: Short error message
        details: Optional structured details (e.g. per-field validation errors)

    Returns:
        tuple: (response, status_code)
    """
    response = {
        'error': {
            'code': error_code,
            'title': title,
            'message': message,
        }
    }
    if details:
        response['error']['details'] = details

    return jsonify(response), error_code


# ==================== Application Exceptions ====================

def handle_app_exception(e):
    """Turn a BeekeeperException raised by a service or route into JSON."""
    # Anything flushed before the failure must not leak into the next commit
    db.session.rollback()

    if isinstance(e, AuthorizationDenied):
        log_error_event(e.status_code, e.message, e)

    return create_error_response(e.status_code, e.title, e.message, e.details)


# ==================== HTTP Error Handlers ====================

def handle_400(e):
    """Handle 400 Bad Request errors (malformed JSON, missing CSRF token...)."""
    log_error_event(400, "Bad Request", e)
    return create_error_response(
        400,
        "Bad Request",
        getattr(e, 'description', None) or "The request could not be understood by the server."
    )


def handle_401(e):
    log_error_event(401, "Unauthorized", e)
    return create_error_response(
        401,
        "Authentication Required",
        "You need to be logged in to access this resource."
    )


def handle_403(e):
    log_error_event(403, "Forbidden", e)
    return create_error_response(
        403,
        "Access Forbidden",
        "You don't have permission to access this resource."
    )


def handle_404(e):
    log_error_event(404, "Not Found", e)
    return create_error_response(
        404,
        "Not Found",
        "The requested resource does not exist."
    )


def handle_405(e):
    return create_error_response(
        405,
        "Method Not Allowed",
        f"The {request.method} method is not allowed for this URL."
    )


def handle_429(e):
    """Handle 429 Too Many Requests errors (rate limiting)."""
    log_error_event(429, "Rate Limit Exceeded", e)

    message = "You've made too many requests in a short period of time."
    if getattr(e, 'description', None):
        message = f"Rate limit exceeded: {e.description}"

    return create_error_response(429, "Too Many Requests", message)


def handle_500(e):
    """Handle 500 Internal Server Error."""
    current_app.logger.error(f"Internal Server Error: {str(e)}", exc_info=True)
    log_error_event(500, "Internal Server Error", e)
    db.session.rollback()

    # In production, don't expose internal error details
    if current_app.debug:
        message = str(e)
    else:
        message = "An unexpected error occurred on our end."

    return create_error_response(500, "Internal Server Error", message)


def handle_503(e):
    log_error_event(503, "Service Unavailable", e)
    return create_error_response(
        503,
        "Service Unavailable",
        "The service is temporarily unavailable. Please try again in a few moments."
    )


# ==================== Database Error Handlers ====================

def handle_integrity_error(e):
    """A unique or foreign key constraint rejected the write."""
    db.session.rollback()
    current_app.logger.warning(f"Integrity error: {e.orig if hasattr(e, 'orig') else e}")

    return create_error_response(
        409,
        "Conflict",
        "The request conflicts with existing data (for example a duplicate slug or name)."
    )


def handle_database_error(e):
    """
    Handle SQLAlchemy database errors.

    Args:
        e: SQLAlchemy exception

    Returns:
        tuple: (response, status_code)
    """
    db.session.rollback()
    current_app.logger.error(f"Database error: {str(e)}", exc_info=True)
    log_error_event(500, "Database Error", e)

    # In production, don't expose database details
    if current_app.debug:
        message = f"Database error: {str(e)}"
    else:
        message = "A database error occurred. Please try again."

    return create_error_response(500, "Database Error", message)


# ==================== Generic Exception Handler ====================

def handle_generic_exception(e):
    """
    Handle any uncaught exceptions.

    HTTP errors without a dedicated handler (413, 415...) keep their own status.
    """
    if isinstance(e, HTTPException):
        return create_error_response(e.code, e.name, e.description)

    log_error_with_context(e, {
        'type': type(e).__name__,
        'method': request.method,
        'path': request.path,
    })
    log_error_event(500, f"Unhandled Exception: {type(e).__name__}", e)
    db.session.rollback()

    return create_error_response(
        500,
        "Internal Server Error",
        "An unexpected error occurred."
    )


# ==================== Registration Function ====================

def register_error_handlers(app):
    """
    Register all error handlers with the Flask application.

    Args:
        app: Flask application instance
    """
    app.register_error_handler(BeekeeperException, handle_app_exception)

    # HTTP error handlers
    app.register_error_handler(400, handle_400)
    app.register_error_handler(401, handle_401)
    app.register_error_handler(403, handle_403)
    app.register_error_handler(404, handle_404)
    app.register_error_handler(405, handle_405)
    app.register_error_handler(429, handle_429)
    app.register_error_handler(500, handle_500)
    app.register_error_handler(503, handle_503)

    # Database error handlers (the more specific class wins)
    app.register_error_handler(IntegrityError, handle_integrity_error)
    app.register_error_handler(SQLAlchemyError, handle_database_error)

    # Only register catch-all in production to allow debugger in development
    if not app.debug:
        app.register_error_handler(Exception, handle_generic_exception)

    app.logger.info("Error handlers registered successfully")
