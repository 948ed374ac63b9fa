#!/usr/bin/env python
"""Spotify OAuth login, session and profile endpoints."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from flask import Blueprint, current_app, jsonify, redirect, request
from flask_login import current_user, login_required, login_user, logout_user
from pydantic import ValidationError as PydanticValidationError

from src.auth import issue_session_token
from src.database.db_manager import User, db
from src.errors import MoodMixError
from src.models.dto import PreferencesUpdate
from src.provider import Credential, CredentialStore, LoginToken


logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _format_validation_errors(exc: PydanticValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for item in exc.errors():
        field = ".".join(str(part) for part in item.get("loc") or ()) or "form"
        errors.setdefault(field, item.get("msg") or "Invalid value.")
    return errors


def _first_image_url(images: List[Dict[str, Any]] | None) -> str | None:
    for image in images or []:
        if image and image.get("url"):
            return image["url"]
    return None


def _upsert_user(profile: Dict[str, Any], credential: Credential, store: CredentialStore) -> User:
    email = (profile.get("email") or "").strip().lower()
    if not email:
        raise ValueError("Spotify profile has no email address")
    name = profile.get("display_name") or email.split("@")[0]

    user = User.query.filter_by(email=email).first()
    if user is None:
        user = User(
            email=email,
            name=name,
            auth_provider="spotify",
            free_generation_limit=current_app.config.get("FREE_GENERATION_LIMIT", 6),
            preferences={"genres": [], "moods": []},
        )
        db.session.add(user)
        logger.info("Creating user for Spotify account %s", profile.get("id"))
    user.name = name
    user.avatar_url = _first_image_url(profile.get("images"))
    # New rows need an id before the store can write the token pair
    db.session.flush()
    store.save(user.id, credential)
    return user


@auth_bp.route("/login", methods=["GET"])
def login():
    tokens = current_app.extensions["token_service"]
    return redirect(tokens.authorize_url())


@auth_bp.route("/callback", methods=["GET"])
def callback():
    code = request.args.get("code")
    if request.args.get("error"):
        logger.warning("Spotify authorization denied: %s", request.args.get("error"))
        return jsonify({"error": "Spotify login failed"}), 400

    tokens = current_app.extensions["token_service"]
    client = current_app.extensions["spotify_client"]
    try:
        token_info = tokens.exchange_code(code)
        credential = Credential(
            access_token=token_info["access_token"],
            refresh_token=token_info.get("refresh_token") or "",
        )
        profile = client.get_profile(LoginToken(credential.access_token))
        user = _upsert_user(profile, credential, client.credential_store)
    except (MoodMixError, ValueError, KeyError) as exc:
        db.session.rollback()
        logger.warning("Spotify login failed: %s", exc)
        return jsonify({"error": "Spotify login failed"}), 400
    except Exception:
        db.session.rollback()
        logger.exception("Unexpected error during Spotify callback")
        return jsonify({"error": "Spotify login failed"}), 400

    login_user(user, remember=True)
    logger.info("User %s logged in via Spotify", user.id)
    return jsonify(
        {
            "message": "Login successful",
            "data": user.to_dict(),
            "token": issue_session_token(user),
        }
    ), 200


@auth_bp.route("/api/me", methods=["GET"])
@login_required
def me():
    service = current_app.extensions["playlist_service"]
    profile = service.profile(current_user)
    return jsonify({"data": profile}), 200


@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    user = current_user._get_current_object()
    current_app.extensions["spotify_client"].credential_store.clear(user.id)
    # Invalidates the remember cookie and every bearer token issued so far
    user.session_version = (user.session_version or 0) + 1
    db.session.commit()
    logout_user()
    logger.info("User %s logged out", user.id)
    return jsonify({"message": "Logged out successfully"}), 200


@auth_bp.route("/preferences", methods=["PATCH"])
@login_required
def update_preferences():
    data = request.get_json(silent=True) or {}
    try:
        update = PreferencesUpdate.model_validate(data)
    except PydanticValidationError as exc:
        return jsonify({"errors": _format_validation_errors(exc)}), 400

    prefs = dict(current_user.preferences or {})
    if update.genres is not None:
        prefs["genres"] = update.genres
    if update.moods is not None:
        prefs["moods"] = update.moods
    # JSON columns only notice reassignment
    current_user.preferences = prefs
    db.session.commit()
    return jsonify({"data": current_user.to_dict()}), 200


__all__ = ["auth_bp"]
