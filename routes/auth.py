# routes/auth.py
from __future__ import annotations

from flask import Blueprint, request, jsonify, current_app, render_template, session, redirect, url_for, flash
from sqlalchemy.exc import SQLAlchemyError

import firebase_init
from auth_guard import SESSION_KEY, load_current_user
from db import db
from models.app_user import AppUser

__all__ = ["auth_bp"]
auth_bp = Blueprint("auth", __name__)


def _safe_next(target: str | None) -> str:
    t = (target or "").strip()
    if t.startswith("/") and not t.startswith("//"):
        return t
    return url_for("directory.home")


def _upsert_profile(claims: dict) -> AppUser:
    uid = claims.get("uid") or claims.get("user_id") or claims.get("sub")
    user = AppUser.query.filter_by(firebase_uid=uid).first()
    if user is None:
        user = AppUser(firebase_uid=uid)
        db.session.add(user)
    user.email        = claims.get("email") or None
    user.display_name = claims.get("name") or None
    user.photo_url    = claims.get("picture") or None
    db.session.commit()
    return user


@auth_bp.route("/login", methods=["GET"])
def login():
    if load_current_user() is not None:
        return redirect(_safe_next(request.args.get("next")))
    cfg = current_app.config
    return render_template(
        "login.html",
        next_url=_safe_next(request.args.get("next")),
        firebase_config={
            "apiKey": cfg.get("FIREBASE_WEB_API_KEY"),
            "authDomain": cfg.get("FIREBASE_AUTH_DOMAIN"),
            "projectId": cfg.get("FIREBASE_PROJECT_ID"),
        },
    )


@auth_bp.route("/auth/session", methods=["POST"])
def create_session():
    """
    POST /auth/session  {"id_token": "<Firebase ID token>"}
      Verifies the token with Firebase, upserts the local profile and
      stores its id in the signed session cookie.
    """
    data = request.get_json(silent=True) or {}
    id_token = (data.get("id_token") or "").strip()
    if not id_token:
        return jsonify(error="Missing id_token"), 400

    try:
        claims = firebase_init.verify_id_token(id_token, current_app.config)
    except Exception as e:
        current_app.logger.info("[auth] token rejected: %s", e)
        return jsonify(error="Invalid token"), 401

    try:
        user = _upsert_profile(claims)
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("[auth] profile upsert failed uid=%s", claims.get("uid"))
        return jsonify(error="Could not sign you in right now"), 500

    session.clear()
    session[SESSION_KEY] = user.id
    session.permanent = True
    current_app.logger.info("[auth] signed in uid=%s email=%s", user.id, user.email)
    return jsonify(id=user.id, name=user.name, email=user.email), 200


@auth_bp.route("/auth/logout", methods=["POST"])
def logout():
    session.pop(SESSION_KEY, None)
    if request.is_json:
        return jsonify(success=True), 200
    flash("Signed out.", "success")
    return redirect(url_for("directory.home"))
