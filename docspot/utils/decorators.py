from functools import wraps
from flask import g, jsonify
from docspot.utils.session import current_user


def require_role(*roles):
    """
    Decorator to require specific roles
    Usage: @require_role('doctor', 'patient')

    Stores the user on g.user for the view.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            """
            Require that the current JWT-authenticated user has one of the given roles.
            Must be used together with @jwt_required() on the route.
            """
            user = current_user()
            if not user:
                return jsonify({
                    'success': False,
                    'error': 'Authentication required'
                }), 401

            if roles and user.role not in roles:
                return jsonify({
                    'success': False,
                    'error': f'Permission denied. Required roles: {", ".join(roles)}'
                }), 403

            g.user = user
            return f(*args, **kwargs)
        return decorated_function
    return decorator
