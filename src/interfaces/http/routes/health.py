from __future__ import annotations

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text

from src.database.db_manager import db

health_bp = Blueprint("health_bp", __name__)


def _spotify_configured() -> bool:
    tokens = current_app.extensions.get("token_service")
    settings = getattr(tokens, "settings", None)
    return bool(settings is not None and settings.has_client_credentials)


@health_bp.route("/ping")
def ping():
    return jsonify({"status": "ok", "message": "pong"}), 200


@health_bp.route("/healthz")
def healthz():
    status = 200
    checks = {}

    try:
        db.session.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as exc:  # pragma: no cover - DB failure path
        status = 503
        checks["database"] = f"error: {exc}"

    checks["spotify"] = "configured" if _spotify_configured() else "unconfigured"

    overall = "ok" if status == 200 else "degraded"
    return jsonify({"status": overall, "checks": checks}), status


@health_bp.route("/readyz")
def readyz():
    ready = _spotify_configured() and "playlist_service" in current_app.extensions
    payload = {
        "status": "ready" if ready else "blocked",
        "spotify_configured": _spotify_configured(),
    }
    return jsonify(payload), 200 if ready else 503
