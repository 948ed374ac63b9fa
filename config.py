#!/usr/bin/env python
# config.py
import os
from typing import List

# This assumes config.py is at the root of your project
basedir = os.path.abspath(os.path.dirname(__file__))


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _get_csv_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name)
    source = raw if raw is not None else default
    return [token.strip() for token in source.split(",") if token and token.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'moodmix-dev-secret-change-me'

    # Database
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'src', 'database', 'instance', 'moodmix.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Spotify application credentials
    SPOTIPY_CLIENT_ID = os.environ.get('SPOTIPY_CLIENT_ID')
    SPOTIPY_CLIENT_SECRET = os.environ.get('SPOTIPY_CLIENT_SECRET')
    SPOTIPY_REDIRECT_URI = os.environ.get('SPOTIPY_REDIRECT_URI') or 'http://localhost:5000/auth/callback'

    # Spotify Web API
    SPOTIFY_API_BASE_URL = os.getenv('SPOTIFY_API_BASE_URL', 'https://api.spotify.com/v1')
    SPOTIFY_MARKET = os.getenv('SPOTIFY_MARKET', 'US')
    SPOTIFY_HTTP_TIMEOUT_SECONDS = _get_float('SPOTIFY_HTTP_TIMEOUT_SECONDS', 15.0)
    # Scopes requested on login; top-read powers personalization, modify-* powers publishing
    SPOTIFY_SCOPES = [
        'user-read-email',
        'user-read-private',
        'user-top-read',
        'playlist-read-private',
        'playlist-modify-private',
        'playlist-modify-public',
    ]

    # Session transport (Flask-Login over the signed session cookie)
    SESSION_LIFETIME_DAYS = max(1, _get_int('SESSION_LIFETIME_DAYS', 7))
    SESSION_COOKIE_SECURE = _get_bool('SESSION_COOKIE_SECURE', False)
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    REMEMBER_COOKIE_HTTPONLY = True
    REMEMBER_COOKIE_SAMESITE = 'Lax'

    # Generation defaults
    DEFAULT_TRACK_COUNT = max(1, _get_int('DEFAULT_TRACK_COUNT', 20))
    MAX_TRACK_COUNT = max(1, _get_int('MAX_TRACK_COUNT', 100))
    FREE_GENERATION_LIMIT = max(0, _get_int('FREE_GENERATION_LIMIT', 6))

    # HTTP surface
    CORS_ALLOWED_ORIGINS = _get_csv_list('CORS_ALLOWED_ORIGINS', 'http://localhost:3000')
    OAUTH_REDIRECT_ALLOWLIST = _get_csv_list('OAUTH_REDIRECT_ALLOWLIST', '')
    ENABLE_RATE_LIMITING = _get_bool('ENABLE_RATE_LIMITING', False)
    RATE_LIMIT_REQUESTS = _get_int('RATE_LIMIT_REQUESTS', 60)
    RATE_LIMIT_WINDOW_SECONDS = _get_int('RATE_LIMIT_WINDOW_SECONDS', 60)
    CONTENT_SECURITY_POLICY = os.getenv('CONTENT_SECURITY_POLICY', '')

    # Observability
    OTEL_EXPORTER_OTLP_ENDPOINT = os.getenv('OTEL_EXPORTER_OTLP_ENDPOINT')
    OTEL_EXPORTER_OTLP_HEADERS = os.getenv('OTEL_EXPORTER_OTLP_HEADERS')
    OTEL_EXPORTER_OTLP_INSECURE = _get_bool('OTEL_EXPORTER_OTLP_INSECURE', True)
    OTEL_SERVICE_NAME = os.getenv('OTEL_SERVICE_NAME', 'moodmix')

    # Runtime behavior
    # Turn Flask debug on/off from env; default off to avoid noisy console
    DEBUG = _get_bool('DEBUG', False)
    # Control console logging; when disabled, logs go only to file
    ENABLE_CONSOLE_LOGS = _get_bool('ENABLE_CONSOLE_LOGS', False)
