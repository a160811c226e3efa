from functools import wraps
from flask import g, jsonify, request
from truthnode.errors import (
    ConflictError, NotFoundError, PermissionDeniedError, ValidationError,
)
from truthnode.services.user_service import UserService

user_service = UserService()

_ERROR_STATUS = (
    (NotFoundError, 404),
    (PermissionDeniedError, 403),
    (ConflictError, 409),
    (ValidationError, 400),
)


def error_response(error):
    """Translate a service error into a JSON error response."""
    for exc_type, code in _ERROR_STATUS:
        if isinstance(error, exc_type):
            return jsonify({'error': str(error)}), code
    raise error


def _extract_bearer_token():
    auth_header = request.headers.get('Authorization', '')
    if auth_header.lower().startswith('bearer '):
        return auth_header.split(' ', 1)[1].strip()
    return None


def require_user(func):
    """Resolve the bearer token to a user and expose it as g.current_user."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        token = _extract_bearer_token()
        if not token:
            return jsonify({'error': 'Authentication required'}), 401

        user = user_service.user_for_token(token)
        if user is None:
            return jsonify({'error': 'Invalid or expired token'}), 401

        g.current_user = user
        return func(*args, **kwargs)

    return wrapper
