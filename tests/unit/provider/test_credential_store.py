import pytest

from src.database.db_manager import User, db
from src.provider import Credential, DefaultCredentialStore, SpotifyApiClient, UserCredential
from tests.support.stubs import FakeResponse


@pytest.mark.unit
def test_refresh_persists_new_access_token(app, factories, spotify_http):
    user = factories.UserFactory(spotify_access_token="stale", spotify_refresh_token="keep-me")
    spotify_http.script("GET", "/me", FakeResponse(401), FakeResponse(200, {"id": "me"}))
    client: SpotifyApiClient = app.extensions["spotify_client"]

    client.get_profile(UserCredential(user.id, Credential("stale", "keep-me")))

    db.session.expire_all()
    stored = db.session.get(User, user.id)
    assert stored.spotify_access_token == "refreshed-access"
    assert stored.spotify_refresh_token == "keep-me"


@pytest.mark.unit
def test_get_returns_none_for_disconnected_user(factories):
    user = factories.UserFactory(spotify_access_token=None, spotify_refresh_token=None)
    assert DefaultCredentialStore().get(user.id) is None


@pytest.mark.unit
def test_update_skips_users_without_a_refresh_token(factories):
    user = factories.UserFactory(spotify_access_token=None, spotify_refresh_token=None)

    DefaultCredentialStore().update_access_token(user.id, "orphan-access")

    db.session.expire_all()
    assert db.session.get(User, user.id).spotify_access_token is None


@pytest.mark.unit
def test_save_replaces_the_pair_and_get_reads_it_back(factories):
    user = factories.UserFactory()
    store = DefaultCredentialStore()

    store.save(user.id, Credential("new-access", "new-refresh"))

    db.session.expire_all()
    assert store.get(user.id) == Credential("new-access", "new-refresh")


@pytest.mark.unit
def test_save_requires_both_tokens(factories):
    user = factories.UserFactory()
    with pytest.raises(ValueError):
        DefaultCredentialStore().save(user.id, Credential("access", ""))

    db.session.expire_all()
    assert db.session.get(User, user.id).spotify_access_token == "stored-access"


@pytest.mark.unit
def test_clear_removes_the_pair(factories):
    user = factories.UserFactory()

    DefaultCredentialStore().clear(user.id)

    db.session.expire_all()
    stored = db.session.get(User, user.id)
    assert stored.spotify_access_token is None
    assert stored.spotify_refresh_token is None
    assert stored.spotify_connected is False
