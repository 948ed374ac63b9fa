import os
import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path so 'app', 'config', and 'src' import correctly
_TESTS_DIR = os.path.dirname(__file__)
_ROOT_DIR = os.path.abspath(os.path.join(_TESTS_DIR, os.pardir))
if _ROOT_DIR not in sys.path:
    sys.path.insert(0, _ROOT_DIR)

from tests.support import factories as test_factories
from tests.support import stubs as test_stubs


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path_factory):
    """Ensure a clean env for tests with per-test sqlite files."""
    db_dir = tmp_path_factory.mktemp("db")
    db_path = Path(db_dir) / "test.sqlite"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path.as_posix()}")
    monkeypatch.setenv("SPOTIPY_CLIENT_ID", "test-client-id")
    monkeypatch.setenv("SPOTIPY_CLIENT_SECRET", "test-client-secret")
    monkeypatch.delenv("OTEL_EXPORTER_OTLP_ENDPOINT", raising=False)
    yield


@pytest.fixture
def spotify_http():
    """Scripted Spotify Web API transport shared by the app under test."""
    return test_stubs.FakeSession()


@pytest.fixture
def token_service():
    return test_stubs.FakeTokenService()


@pytest.fixture
def app(spotify_http, token_service):
    import app as app_module

    application = app_module.create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret",
            "SQLALCHEMY_DATABASE_URI": os.environ["DATABASE_URL"],
            "SPOTIPY_CLIENT_ID": "test-client-id",
            "SPOTIPY_CLIENT_SECRET": "test-client-secret",
            "ENABLE_RATE_LIMITING": False,
        },
        http_session=spotify_http,
        token_service=token_service,
    )
    yield application

    from src.database.db_manager import db

    with application.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture
def app_context(app):
    with app.app_context():
        yield app


@pytest.fixture
def db_session(app_context):
    from src.database.db_manager import db

    test_factories.set_session(db.session)
    try:
        yield db.session
    finally:
        db.session.rollback()
        db.session.remove()
        test_factories.reset_session()


@pytest.fixture
def factories(db_session):
    yield test_factories


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(app, client):
    """Authenticate ``client`` as ``user`` with a signed bearer token."""
    from src.auth import issue_session_token

    def _login(user):
        with app.app_context():
            token = issue_session_token(user)
        client.environ_base["HTTP_AUTHORIZATION"] = f"Bearer {token}"
        return token

    return _login
