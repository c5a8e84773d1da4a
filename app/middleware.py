"""Middleware for the authenticated operator context."""
from functools import wraps
from flask import session, g, current_app
from app.database import get_session
from app.exceptions import UnauthorizedError
from app.models import AppUser


def load_operator():
    """
    Load the current operator into g (Flask's per-request global).

    Authentication itself happens upstream; it leaves the operator id in
    the session as ``user_id``. Sets g.user and g.user_id when that id
    belongs to an active user.
    """
    g.user = None
    g.user_id = None

    try:
        user_id = session.get('user_id')
        if user_id:
            user = get_session().get(AppUser, user_id)
            if user and user.active:
                g.user = user
                g.user_id = user.id
    except Exception as e:
        # Avoid crashing the whole app if context loading fails
        current_app.logger.error(f"Error in load_operator: {e}")


def require_login(f):
    """Decorator: Require an authenticated operator (401 JSON otherwise)."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('user') is None:
            raise UnauthorizedError('Não autorizado')
        return f(*args, **kwargs)
    return decorated_function
