"""Middleware for authentication context."""
from functools import wraps
from flask import session, g, current_app

from bizdesk.database import get_session
from bizdesk.exceptions import AuthenticationError
from bizdesk.models import AppUser


def load_current_user():
    """
    Load the logged-in user into g (Flask's per-request global).

    Called before each request. Sets g.user and g.user_role when the session
    cookie names an active user.
    """
    g.user = None
    g.user_role = None

    user_id = session.get('user_id')
    if not user_id:
        return

    try:
        user = get_session().query(AppUser).filter_by(id=user_id, active=True).first()
    except Exception as e:
        current_app.logger.error(f"Error in load_current_user: {e}")
        raise

    if user is None:
        # Stale cookie (user deleted or deactivated)
        session.pop('user_id', None)
        return

    g.user = user
    g.user_role = user.role


def require_login(f):
    """Decorator: require a logged-in user (401 otherwise)."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('user') is None:
            raise AuthenticationError('Please log in to continue')
        return f(*args, **kwargs)
    return decorated_function
