#!/usr/bin/env python
"""Authentication utilities and Flask-Login integration.

Sessions ride on Flask's signed, HTTP-only session cookie. API clients that
cannot hold cookies may send ``Authorization: Bearer <token>`` instead, where
the token is an itsdangerous signature over the user id and session version.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from flask import current_app, jsonify
from flask_login import LoginManager
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

logger = logging.getLogger(__name__)

login_manager = LoginManager()
login_manager.session_protection = "strong"
login_manager.login_message = None

_TOKEN_SALT = "moodmix-session-token"


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=_TOKEN_SALT)


def issue_session_token(user) -> str:
    """Signed bearer token identifying ``user`` for the current session version."""
    return _serializer().dumps({"id": user.id, "v": user.session_version or 0})


def load_user_from_token(token: str):
    from src.database.db_manager import User, db

    max_age = int(current_app.config.get("SESSION_LIFETIME_DAYS", 7)) * 24 * 60 * 60
    try:
        payload = _serializer().loads(token, max_age=max_age)
    except SignatureExpired:
        logger.info("Rejected expired bearer token")
        return None
    except BadSignature:
        logger.warning("Rejected bearer token with invalid signature")
        return None
    if not isinstance(payload, dict) or not payload.get("id"):
        return None
    try:
        user = db.session.get(User, int(payload["id"]))
    except (TypeError, ValueError):
        return None
    if user is None or (user.session_version or 0) != payload.get("v"):
        return None
    return user


def init_auth(app):
    """Attach Flask-Login to the Flask app and register the auth blueprint."""
    from src.database.db_manager import User, db
    from src.interfaces.http.routes.auth import auth_bp

    days = int(app.config.get("SESSION_LIFETIME_DAYS", 7))
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(days=days)
    app.config["REMEMBER_COOKIE_DURATION"] = timedelta(days=days)

    login_manager.init_app(app)
    login_manager.login_view = "auth.login"

    @login_manager.user_loader
    def load_user(session_id: str) -> User | None:
        raw_id, _, raw_version = str(session_id).partition(":")
        try:
            user = db.session.get(User, int(raw_id))
            version = int(raw_version or 0)
        except (TypeError, ValueError):
            return None
        if user is None or (user.session_version or 0) != version:
            return None
        return user

    @login_manager.request_loader
    def load_user_from_request(request) -> User | None:
        header = request.headers.get("Authorization", "")
        if not header.startswith("Bearer "):
            return None
        token = header.split(" ", 1)[1].strip()
        return load_user_from_token(token) if token else None

    @login_manager.unauthorized_handler
    def _unauthorized():
        return jsonify({"error": "No token provided. Unauthorized.", "code": "authentication_required"}), 401

    app.register_blueprint(auth_bp)

    return login_manager


__all__ = ["login_manager", "init_auth", "issue_session_token", "load_user_from_token"]
