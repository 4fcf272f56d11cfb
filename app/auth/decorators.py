from functools import wraps
from flask_login import current_user

from app.errors import Forbidden, Unauthorized
from app.models.user import Role


def roles_required(*roles):
    """Decorator to restrict a view to users holding one of ``roles``.

    Args:
        *roles: Role values allowed to call the view

    Returns:
        decorator: Wraps the view function

    Raises:
        Unauthorized: If no user is logged in
        Forbidden: If the user's role is not listed
    """
    allowed = {Role(r).value for r in roles}

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                raise Unauthorized()
            if current_user.role not in allowed:
                raise Forbidden()
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def admin_required(f):
    """Decorator to restrict access to admin users only."""
    return roles_required(Role.ADMIN)(f)
