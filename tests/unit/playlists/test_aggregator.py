import threading

import pytest

from src.domain.playlists import CandidateAggregator, dedupe_tracks
from src.errors import NoCandidates, UpstreamAuthExpired, UpstreamUnavailable
from src.provider import AppToken, Credential, UserCredential
from tests.support.stubs import spotify_track


class ScriptedClient:
    """Fake API client keyed by operation; values may be lists or exceptions."""

    def __init__(self, top_tracks=None, top_artists=None, artist_tracks=None, search=None):
        self.top = {"tracks": top_tracks or [], "artists": top_artists or []}
        self.artist_tracks = artist_tracks or {}
        self.search = search or {}
        self.queries = []
        self.top_threads = set()

    def get_top_items(self, auth, kind, limit=5):
        self.top_threads.add(threading.get_ident())
        value = self.top[kind]
        if isinstance(value, Exception):
            raise value
        return value

    def get_artist_top_tracks(self, auth, artist_id):
        value = self.artist_tracks.get(artist_id, [])
        if isinstance(value, Exception):
            raise value
        return value

    def search_tracks(self, auth, query, limit=50):
        self.queries.append(query)
        value = self.search.get(query, [])
        if isinstance(value, Exception):
            raise value
        return value


def _user():
    return UserCredential(1, Credential("a", "r"))


@pytest.mark.unit
def test_dedupe_keeps_first_occurrence_and_drops_missing_ids():
    tracks = [{"id": "a", "n": 1}, {"id": "b"}, {"id": "a", "n": 2}, {"name": "no id"}, None]
    assert dedupe_tracks(tracks) == [{"id": "a", "n": 1}, {"id": "b"}]


@pytest.mark.unit
def test_app_token_only_searches_normalized_genres():
    client = ScriptedClient(search={"r-n-b chill": [spotify_track("s1")], "hip-hop chill": [spotify_track("s2")]})

    pool = CandidateAggregator(client).collect("chill", ["rnb", "hiphop", "edm"], AppToken("t"))

    assert client.queries == ["r-n-b chill", "hip-hop chill"]
    assert pool.seed_genres == ["r-n-b", "hip-hop"]
    assert [t["id"] for t in pool.tracks] == ["s1", "s2"]
    assert pool.personalized is False


@pytest.mark.unit
def test_personalized_sources_merge_before_search_and_dedupe():
    client = ScriptedClient(
        top_tracks=[spotify_track("t1"), spotify_track("t2")],
        top_artists=[{"id": "ar1", "name": "One"}],
        artist_tracks={"ar1": [spotify_track(f"a{i}") for i in range(8)] + [spotify_track("t1")]},
        search={"pop party": [spotify_track("t2"), spotify_track("s1")]},
    )

    pool = CandidateAggregator(client).collect("party", ["pop"], _user())

    ids = [t["id"] for t in pool.tracks]
    assert ids == ["t1", "t2", "a0", "a1", "a2", "a3", "a4", "s1"]
    assert pool.personalized is True


@pytest.mark.unit
def test_personalization_failures_are_independent():
    client = ScriptedClient(
        top_tracks=UpstreamAuthExpired("expired"),
        top_artists=[{"id": "ar1"}, {"id": "ar2"}],
        artist_tracks={"ar1": UpstreamUnavailable("down"), "ar2": [spotify_track("a2")]},
        search={"jazz focus": UpstreamUnavailable("down")},
    )

    pool = CandidateAggregator(client).collect("focus", ["jazz"], _user())

    assert [t["id"] for t in pool.tracks] == ["a2"]


@pytest.mark.unit
def test_empty_pool_raises_no_candidates():
    client = ScriptedClient(search={"pop chill": []})
    with pytest.raises(NoCandidates):
        CandidateAggregator(client).collect("chill", ["pop"], AppToken("t"))


@pytest.mark.unit
def test_top_items_run_off_the_request_thread():
    client = ScriptedClient(top_tracks=[spotify_track("t1")])

    CandidateAggregator(client).collect("chill", ["pop"], _user())

    assert threading.get_ident() not in client.top_threads


@pytest.mark.unit
def test_worker_threads_see_the_flask_app(app_context):
    from flask import current_app, has_app_context

    seen = []

    class ContextClient(ScriptedClient):
        def get_top_items(self, auth, kind, limit=5):
            seen.append(has_app_context() and current_app.name)
            return []

    client = ContextClient(search={"pop chill": [spotify_track("s1")]})
    CandidateAggregator(client).collect("chill", ["pop"], _user())

    assert seen == [app_context.name, app_context.name]
