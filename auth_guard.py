# auth_guard.py
from __future__ import annotations

from functools import wraps

from flask import request, jsonify, g, current_app, session, redirect, url_for, flash

from db import db
from models.app_user import AppUser

__all__ = ["login_required", "load_current_user"]

SESSION_KEY = "app_user_id"


def load_current_user() -> AppUser | None:
    """Resolve the signed-in user from the session into g.user (None when anonymous)."""
    uid = session.get(SESSION_KEY)
    user = db.session.get(AppUser, uid) if uid is not None else None
    if uid is not None and user is None:
        # stale cookie for a deleted profile
        session.pop(SESSION_KEY, None)
    g.user = user
    return user


def login_required(f):
    """
    Guard for authoring views.

    Honors AUTHORING_REQUIRES_LOGIN; anonymous HTML requests are sent to the
    login page, JSON requests get a 401.
    """
    @wraps(f)
    def wrapped(*args, **kwargs):
        if not current_app.config.get("AUTHORING_REQUIRES_LOGIN", True):
            load_current_user()
            return f(*args, **kwargs)

        user = load_current_user()
        if user is None:
            if request.is_json or request.path.startswith("/api/"):
                return jsonify(error="Sign in required"), 401
            flash("Please sign in to add bus information.", "error")
            return redirect(url_for("auth.login", next=request.full_path.rstrip("?")))

        current_app.logger.info(
            "[guard] %s %s uid=%s user=%s ip=%s",
            request.method, request.path, user.id, user.email or "—", request.remote_addr,
        )
        return f(*args, **kwargs)

    return wrapped
