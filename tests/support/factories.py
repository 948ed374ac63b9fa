"""Factory Boy factories for database models used in tests."""

import factory
from factory.alchemy import SQLAlchemyModelFactory

from src.database.db_manager import Draft, PublishedPlaylist, User
from tests.support.stubs import spotify_track


def _public_track(n: int) -> dict:
    raw = spotify_track(f"t{n}")
    return {
        "id": raw["id"],
        "name": raw["name"],
        "artist": "Artist",
        "uri": raw["uri"],
        "image": raw["album"]["images"][0]["url"],
        "preview": None,
    }


class _BaseFactory(SQLAlchemyModelFactory):
    class Meta:
        abstract = True
        sqlalchemy_session = None
        sqlalchemy_session_persistence = "commit"


class UserFactory(_BaseFactory):
    class Meta:
        model = User

    name = factory.Sequence(lambda n: f"Listener {n}")
    email = factory.Sequence(lambda n: f"listener{n}@example.com")
    auth_provider = "spotify"
    plan = "free"
    free_generations_used = 0
    free_generation_limit = 6
    preferences = factory.LazyFunction(lambda: {"genres": [], "moods": []})
    spotify_access_token = "stored-access"
    spotify_refresh_token = "stored-refresh"
    session_version = 0


class DraftFactory(_BaseFactory):
    class Meta:
        model = Draft

    id = factory.Sequence(lambda n: f"draft_{n:04d}")
    owner = factory.SubFactory(UserFactory)
    mood = "chill"
    genres = factory.LazyFunction(lambda: ["pop"])
    count = 3
    tracks = factory.LazyFunction(lambda: [_public_track(n) for n in range(3)])
    status = "draft"


class PublishedPlaylistFactory(_BaseFactory):
    class Meta:
        model = PublishedPlaylist

    owner = factory.SubFactory(UserFactory)
    spotify_playlist_id = factory.Sequence(lambda n: f"pl{n}")
    name = "chill playlist"
    mood = "chill"
    genres = factory.LazyFunction(lambda: ["pop"])
    tracks = factory.LazyFunction(lambda: [_public_track(0)])


_FACTORIES = [UserFactory, DraftFactory, PublishedPlaylistFactory]


def set_session(session):
    for factory_cls in _FACTORIES:
        factory_cls._meta.sqlalchemy_session = session


def reset_session():
    for factory_cls in _FACTORIES:
        factory_cls._meta.sqlalchemy_session = None


__all__ = [
    "UserFactory",
    "DraftFactory",
    "PublishedPlaylistFactory",
    "set_session",
    "reset_session",
]
