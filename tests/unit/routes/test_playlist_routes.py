import pytest

from src.database.db_manager import Draft, PublishedPlaylist, db
from tests.support.stubs import FakeResponse, features_payload, search_payload, spotify_track


def _script_search(spotify_http, n=8):
    tracks = [spotify_track(f"s{i}") for i in range(n)]
    spotify_http.script("GET", "/search", FakeResponse(200, search_payload(tracks)))
    spotify_http.script(
        "GET",
        "/audio-features",
        FakeResponse(200, features_payload([{"id": t["id"], "energy": 0.1, "valence": 0.2} for t in tracks])),
    )


@pytest.mark.unit
def test_generate_without_login_returns_transient_draft(client, spotify_http):
    _script_search(spotify_http)

    resp = client.post("/api/playlists/generate", json={"mood": "sad", "genres": ["rnb"], "count": 5})

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["message"] == "Playlist generated successfully."
    assert body["data"]["status"] == "draft"
    assert body["data"]["genres"] == ["r-n-b"]
    assert len(body["data"]["tracks"]) == 5


@pytest.mark.unit
def test_generate_defaults_count(client, spotify_http):
    _script_search(spotify_http, n=30)

    resp = client.post("/api/playlists/generate", json={"mood": "sad", "genres": ["pop"]})

    assert len(resp.get_json()["data"]["tracks"]) == 20


@pytest.mark.unit
@pytest.mark.parametrize(
    "payload",
    [
        {"genres": ["pop"]},
        {"mood": "chill"},
        {"mood": "chill", "genres": []},
        {"mood": "chill", "genres": ["pop"], "count": 0},
    ],
)
def test_generate_validation_errors_are_400(client, payload):
    resp = client.post("/api/playlists/generate", json=payload)

    assert resp.status_code == 400
    assert resp.get_json()["code"] == "validation_error"


@pytest.mark.unit
def test_generate_with_no_candidates_is_404(client, spotify_http):
    spotify_http.script("GET", "/search", FakeResponse(200, search_payload([])))

    resp = client.post("/api/playlists/generate", json={"mood": "chill", "genres": ["pop"]})

    assert resp.status_code == 404
    assert resp.get_json() == {"error": "No tracks found.", "code": "no_candidates"}


@pytest.mark.unit
def test_delete_track_updates_owned_draft(client, factories, login):
    draft = factories.DraftFactory()
    login(draft.owner)

    resp = client.delete("/api/playlists/draft/track", json={"draftId": draft.id, "trackId": "t1"})

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["message"] == "Track deleted."
    assert [t["id"] for t in body["data"]["tracks"]] == ["t0", "t2"]


@pytest.mark.unit
def test_delete_track_on_unknown_draft_is_404(client, factories, login):
    login(factories.UserFactory())

    resp = client.delete("/api/playlists/draft/track", json={"draftId": "draft_missing", "trackId": "t1"})

    assert resp.status_code == 404
    assert resp.get_json()["error"] == "Draft not found."


@pytest.mark.unit
def test_draft_routes_require_login(client):
    assert client.delete("/api/playlists/draft/track", json={"draftId": "d", "trackId": "t"}).status_code == 401
    assert client.post("/api/playlists/draft/push", json={"draftId": "d"}).status_code == 401
    assert client.get("/api/playlists/history").status_code == 401


@pytest.mark.unit
def test_push_publishes_and_archives(app, client, factories, login, spotify_http):
    draft = factories.DraftFactory()
    draft_id, user_id = draft.id, draft.user_id
    login(draft.owner)
    spotify_http.script("POST", "/me/playlists", FakeResponse(201, {"id": "pl-9", "name": "chill playlist"}))
    spotify_http.script("POST", "/playlists/pl-9/tracks", FakeResponse(201, {"snapshot_id": "x"}))

    resp = client.post("/api/playlists/draft/push", json={"draftId": draft_id})

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["message"] == "Playlist pushed to Spotify."
    assert body["data"]["spotify_playlist_id"] == "pl-9"
    assert body["data"]["track_count"] == 3
    with app.app_context():
        assert db.session.get(Draft, draft_id) is None
        assert PublishedPlaylist.query.filter_by(user_id=user_id).count() == 1


@pytest.mark.unit
def test_push_upstream_failure_is_502_and_keeps_draft(app, client, factories, login, spotify_http):
    draft = factories.DraftFactory()
    draft_id = draft.id
    login(draft.owner)
    spotify_http.script("POST", "/me/playlists", FakeResponse(500, {"error": "boom"}))

    resp = client.post("/api/playlists/draft/push", json={"draftId": draft_id})

    assert resp.status_code == 502
    with app.app_context():
        assert db.session.get(Draft, draft_id) is not None


@pytest.mark.unit
def test_history_lists_published_playlists(client, factories, login):
    record = factories.PublishedPlaylistFactory()
    login(record.owner)

    resp = client.get("/api/playlists/history")

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert [item["spotify_playlist_id"] for item in data] == [record.spotify_playlist_id]


@pytest.mark.unit
def test_empty_history_and_drafts(client, factories, login):
    login(factories.UserFactory())

    history = client.get("/api/playlists/history").get_json()
    drafts = client.get("/api/playlists/drafts").get_json()

    assert history == {"message": "No playlist history found", "data": []}
    assert drafts == {"message": "No drafts found", "data": []}


@pytest.mark.unit
def test_drafts_route_lists_only_own_drafts(client, factories, login):
    mine = factories.DraftFactory()
    factories.DraftFactory()
    login(mine.owner)

    data = client.get("/api/playlists/drafts").get_json()["data"]

    assert [d["id"] for d in data] == [mine.id]
