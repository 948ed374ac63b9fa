#!/usr/bin/env python
"""
Publishing a draft to Spotify.

The provider playlist is created first, tracks are added in sequential
batches of at most 100, and only then is the history record written and the
draft removed (one transaction). A failure after creation leaves the draft
in place but does not delete the playlist on Spotify; the provider id is
logged so it can be reconciled by hand.
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Sequence

from src.database.db_manager import Draft, PublishedPlaylist
from src.errors import UpstreamUnavailable
from src.provider import MAX_TRACKS_PER_ADD, SpotifyApiClient, UserCredential
from .repository import PlaylistHistoryRepository


logger = logging.getLogger(__name__)


def batched(items: Sequence[str], size: int = MAX_TRACKS_PER_ADD) -> Iterator[List[str]]:
    if size <= 0:
        raise ValueError("batch size must be positive")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


def playlist_name(mood: str) -> str:
    return f"{mood} playlist"


class Publisher:
    def __init__(self, client: SpotifyApiClient, history: PlaylistHistoryRepository) -> None:
        self.client = client
        self.history = history

    def publish(self, draft: Draft, auth: UserCredential) -> PublishedPlaylist:
        draft_id = draft.id
        created = self.client.create_playlist(
            auth,
            playlist_name(draft.mood),
            description=f"Generated by MoodMix - mood: {draft.mood}",
            public=False,
        )
        spotify_playlist_id = created.get("id")
        if not spotify_playlist_id:
            raise UpstreamUnavailable("Spotify did not return a playlist id.")
        name = created.get("name") or playlist_name(draft.mood)
        logger.info("Created Spotify playlist %s for draft %s", spotify_playlist_id, draft_id)

        uris = [t["uri"] for t in (draft.tracks or []) if t.get("uri")]
        try:
            for batch in batched(uris):
                self.client.add_tracks(auth, spotify_playlist_id, batch)
            record = self.history.archive(draft, spotify_playlist_id=spotify_playlist_id, name=name)
        except Exception:
            logger.error(
                "Publishing draft %s failed after Spotify playlist %s was created; draft kept",
                draft_id,
                spotify_playlist_id,
                exc_info=True,
            )
            raise

        logger.info("Draft %s published as %s (%s tracks)", draft_id, spotify_playlist_id, len(uris))
        return record


__all__ = ["Publisher", "batched", "playlist_name"]
