"""
Route decorators for authentication and authorization.
Provides admin-only access control for routes.
"""

from functools import wraps
from flask import flash, abort
from flask_login import login_required, current_user

from utils.messages import MESSAGES
from utils.permissions import can_administer


def admin_required(func):
    """
    Decorator to require the admin role for a route.

    Usage:
        @admin_bp.route('/users')
        @login_required
        @admin_required
        def users():
            ...

    Anonymous users are redirected by login_required; authenticated
    non-admins get a 403.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        if not can_administer(current_user):
            flash(MESSAGES['permission_denied'], 'error')
            abort(403)
        return func(*args, **kwargs)
    return wrapper


# Re-export login_required for convenience
__all__ = ['login_required', 'admin_required']
