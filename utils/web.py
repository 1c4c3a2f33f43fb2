# utils/web.py
"""
Request helpers shared by the page blueprints
"""
from functools import wraps

from flask import current_app, redirect, session, url_for


def get_registry():
    return current_app.extensions["opportunity_registry"]


def get_users():
    return current_app.extensions["user_directory"]


def get_census():
    return current_app.extensions["census_client"]


def current_user():
    """Session snapshot of the logged-in user, or None"""
    return session.get("user")


def login_user(user):
    session.clear()
    session["user"] = get_users().session_snapshot(user)


def update_session_joined(joined_events):
    """Keep the session snapshot in step after a join or leave from this browser"""
    user = session.get("user")
    if user is not None and joined_events is not None:
        user["joined_events"] = list(joined_events)
        session["user"] = user


def login_required(view):
    """Redirect anonymous visitors to the login page"""
    @wraps(view)
    def wrapped(*args, **kwargs):
        if current_user() is None:
            return redirect(url_for("users.login"))
        return view(*args, **kwargs)

    return wrapped


def parse_sort(value):
    """Map a ?sort= query value to ascending (True), descending (False) or None"""
    if value is None or value == "":
        return None
    return value.lower() == "true"
