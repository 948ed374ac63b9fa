import os
import logging
from datetime import datetime

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Flask specific imports ---
from flask import Flask, jsonify

from config import Config
from src.database.db_manager import initialize_database
from src.auth import init_auth
from src.domain.playlists import PlaylistService
from src.errors import MoodMixError
from src.interfaces.http.middleware import (
    install_cors,
    install_csp,
    install_rate_limiter,
    install_redirect_allowlist,
    install_request_ids,
)
from src.interfaces.http.routes import playlist_bp, health_bp
from src.observability import configure_structured_logging, metrics_blueprint, init_tracing
from src.provider import DefaultCredentialStore, SpotifyApiClient, TokenService
from src.settings import load_provider_settings


logger = logging.getLogger(__name__)


def configure_logging(log_dir: str) -> str:
    """
    Configure root logging with:
      - FileHandler (INFO+) to a new file per run: log-YYYY-MM-DD-HH-MM-SS
      - StreamHandler (WARNING+) to console when ENABLE_CONSOLE_LOGS is on
      - Werkzeug/Flask loggers routed to root

    Returns the path to the created log file.
    """
    os.makedirs(log_dir, exist_ok=True)

    timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
    log_path = os.path.join(log_dir, f"log-{timestamp}")

    root = logging.getLogger()
    root.setLevel(logging.INFO)

    # Preserve structured handlers; remove existing FileHandlers to avoid duplicates
    root.handlers = [h for h in root.handlers if not isinstance(h, logging.FileHandler)]

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    file_handler = logging.FileHandler(log_path, encoding='utf-8')
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    if Config.ENABLE_CONSOLE_LOGS:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    for name in ("werkzeug", "flask.app"):
        _l = logging.getLogger(name)
        _l.setLevel(logging.INFO)
        _l.handlers = []
        _l.propagate = True

    return log_path


def create_app(config_overrides=None, *, http_session=None, token_service=None):
    """Build the Flask app.

    ``http_session`` replaces the ``requests.Session`` used for Spotify Web API
    calls and ``token_service`` the accounts-service wrapper; tests inject
    fakes for both.
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    app.config['OAUTH_REDIRECT_ALLOWLIST'] = tuple(Config.OAUTH_REDIRECT_ALLOWLIST)
    if config_overrides:
        app.config.update(config_overrides)

    configure_structured_logging(app)
    init_tracing(app)

    install_request_ids(app)
    install_cors(app, app.config['CORS_ALLOWED_ORIGINS'])
    install_redirect_allowlist(app, app.config['OAUTH_REDIRECT_ALLOWLIST'])
    if app.config['ENABLE_RATE_LIMITING']:
        install_rate_limiter(app, app.config['RATE_LIMIT_REQUESTS'], app.config['RATE_LIMIT_WINDOW_SECONDS'])
    install_csp(app, app.config.get('CONTENT_SECURITY_POLICY'))

    @app.errorhandler(MoodMixError)
    def _handle_moodmix_error(err: MoodMixError):
        if err.status_code >= 500:
            app.logger.error("Request failed: %s", err.message)
        else:
            app.logger.info("Request rejected (%s): %s", err.code, err.message)
        return jsonify(err.to_dict()), err.status_code

    initialize_database(app)
    init_auth(app)

    # Spotify wiring: one token service and one API client per app
    provider_settings = load_provider_settings(
        {
            "client_id": app.config.get('SPOTIPY_CLIENT_ID'),
            "client_secret": app.config.get('SPOTIPY_CLIENT_SECRET'),
            "redirect_uri": app.config.get('SPOTIPY_REDIRECT_URI'),
            "api_base_url": app.config.get('SPOTIFY_API_BASE_URL'),
            "market": app.config.get('SPOTIFY_MARKET'),
            "timeout_seconds": app.config.get('SPOTIFY_HTTP_TIMEOUT_SECONDS'),
        }
    )
    tokens = token_service or TokenService(provider_settings)
    spotify_client = SpotifyApiClient(
        provider_settings,
        tokens,
        DefaultCredentialStore(),
        session=http_session,
    )
    app.extensions['token_service'] = tokens
    app.extensions['spotify_client'] = spotify_client
    app.extensions['playlist_service'] = PlaylistService(spotify_client, tokens)

    if not provider_settings.has_client_credentials:
        app.logger.warning("Spotify client ID / secret not set; login and generation will fail.")

    # --- Register Blueprints ---
    app.register_blueprint(playlist_bp)
    app.register_blueprint(metrics_blueprint)
    app.register_blueprint(health_bp)

    return app


if __name__ == '__main__':
    # In debug with the reloader, only the child process configures file logging
    debug_mode = bool(Config.DEBUG)
    log_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'src', 'log')
    if not debug_mode or os.environ.get('WERKZEUG_RUN_MAIN') == 'true':
        log_file_path = configure_logging(log_dir)
        logger.info("File logging initialized at %s", log_file_path)

    app = create_app()
    # Route app.logger through root handlers, keep levels consistent
    app.logger.handlers = []
    app.logger.setLevel(logging.INFO)
    app.logger.propagate = True
    logger.info("Starting Flask application...")
    app.run(debug=Config.DEBUG, host='0.0.0.0', port=5000, threaded=True)
