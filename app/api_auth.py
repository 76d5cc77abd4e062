"""
API Helpers Module

Session-based access decorators and standard JSON response builders for the
REST endpoints. Authentication itself is handled by Flask-Login; these
helpers only check the logged-in user's role.
"""

from functools import wraps
from flask import request, jsonify, current_app
from flask_login import current_user
from app.extensions import db, login
from app.exceptions import AuthorizationDenied, ValidationFailed
from app.logging_config import log_security_event
from app.models import Role
from app.permissions import coerce_role
from app.security import InputSanitizer


def client_ip():
    return request.remote_addr


def roles_required(*roles):
    """
    Decorator to require one of the given roles.

    Anonymous users get the login manager's 401 response.

    Usage:
        @bp.route('/articles', methods=['POST'])
        @roles_required(Role.AUTHOR, Role.ADMIN)
        def create_article():
            pass
    """
    allowed = set(roles)

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                return login.unauthorized()

            if coerce_role(current_user.role) not in allowed:
                log_security_event(
                    'PERMISSION_DENIED',
                    user_id=current_user.id,
                    ip_address=client_ip(),
                    description=f"{request.method} {request.path} requires one of: "
                                f"{', '.join(sorted(role.value for role in allowed))}"
                )
                return api_error('You do not have permission to perform this action', 403)

            return f(*args, **kwargs)

        return decorated_function

    return decorator


def api_admin_required(f):
    """
    Decorator to require an admin session.

    Shorthand for @roles_required(Role.ADMIN)
    """
    return roles_required(Role.ADMIN)(f)


def ensure_permission(allowed, message='You do not have permission to perform this action'):
    """Raise AuthorizationDenied (403) unless `allowed` is truthy."""
    if not allowed:
        raise AuthorizationDenied(message)


# Helper functions for request data

def get_json_body():
    """The request's JSON object, or {} when the body is empty."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationFailed('Request body must be a JSON object')
    return data


def get_pagination_args():
    """
    Read `page` and `per_page` (or `limit`) from the query string.

    Returns:
        tuple: (page, per_page) with per_page capped at MAX_PAGE_SIZE
    """
    default_size = current_app.config.get('DEFAULT_PAGE_SIZE', 10)
    max_size = current_app.config.get('MAX_PAGE_SIZE', 100)

    raw_page = request.args.get('page', 1)
    raw_size = request.args.get('per_page', request.args.get('limit', default_size))
    try:
        page = InputSanitizer.sanitize_positive_integer(raw_page)
        per_page = InputSanitizer.sanitize_positive_integer(raw_size)
    except ValueError:
        raise ValidationFailed('page and per_page must be positive integers')

    return page, min(per_page, max_size)


def get_bool_arg(name, default=None):
    raw = request.args.get(name)
    if raw is None:
        return default
    try:
        return InputSanitizer.sanitize_boolean(raw)
    except ValueError:
        raise ValidationFailed(f'{name} must be true or false')


# Helper functions for API responses

def api_success(data=None, message=None, status_code=200):
    """
    Create a standardized success API response.

    Args:
        data: Response data (optional)
        message: Success message (optional)
        status_code: HTTP status code (default: 200)

    Returns:
        tuple: (response, status_code)
    """
    response = {}

    if message:
        response['message'] = message

    if data is not None:
        response['data'] = data

    return jsonify(response), status_code


def api_error(message, code=400, details=None):
    """
    Create a standardized error API response.

    Returns:
        tuple: (response, status_code)
    """
    response = {
        'error': {
            'code': code,
            'message': message
        }
    }

    if details:
        response['error']['details'] = details

    return jsonify(response), code


def api_paginated_response(items, page, per_page, total_count, message=None):
    """
    Create a paginated API response.

    Args:
        items: List of serialized items for current page
        page: Current page number
        per_page: Items per page
        total_count: Total number of items

    Returns:
        tuple: (response, status_code)
    """
    total_pages = (total_count + per_page - 1) // per_page

    response = {
        'data': items,
        'pagination': {
            'page': page,
            'per_page': per_page,
            'total_items': total_count,
            'total_pages': total_pages,
            'has_next': page < total_pages,
            'has_prev': page > 1
        }
    }

    if message:
        response['message'] = message

    return jsonify(response), 200


def paginate_query(query, serialize=None):
    """
    Run a select() through db.paginate using the request's pagination args.

    Args:
        query: SQLAlchemy select of a single entity
        serialize: Callable applied to each row (default: row.to_dict())

    Returns:
        tuple: (items, page, per_page, total_count)
    """
    page, per_page = get_pagination_args()
    pagination = db.paginate(query, page=page, per_page=per_page, error_out=False)
    serialize = serialize or (lambda row: row.to_dict())
    return [serialize(row) for row in pagination.items], page, per_page, pagination.total or 0
