#!/usr/bin/env python
"""
Candidate aggregation: personalized picks plus per-genre keyword search.

Sources are tried independently; an upstream failure narrows the pool
instead of failing the request. The merged pool is deduplicated by track id
in first-seen order.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Sequence

from flask import current_app, has_app_context

from src.errors import NoCandidates, UpstreamError
from src.provider import AuthContext, SpotifyApiClient, UserCredential
from .vocabulary import seed_genres


logger = logging.getLogger(__name__)

TOP_ITEMS_LIMIT = 5
ARTIST_TOP_TRACKS_KEPT = 5
SEARCH_LIMIT = 50

RawTrack = Dict[str, Any]


def dedupe_tracks(tracks: Iterable[RawTrack]) -> List[RawTrack]:
    """Keep the first occurrence of each track id; drop entries without one."""
    seen = set()
    unique: List[RawTrack] = []
    for track in tracks:
        track_id = (track or {}).get("id")
        if not track_id or track_id in seen:
            continue
        seen.add(track_id)
        unique.append(track)
    return unique


def _with_app_context(fn: Callable[[], Any]) -> Callable[[], Any]:
    """Bind ``fn`` to the current Flask app so worker threads can persist refreshed tokens."""
    if not has_app_context():
        return fn
    app = current_app._get_current_object()

    def runner():
        with app.app_context():
            return fn()

    return runner


@dataclass
class CandidatePool:
    mood: str
    seed_genres: List[str]
    tracks: List[RawTrack] = field(default_factory=list)
    personalized: bool = False

    def __len__(self) -> int:
        return len(self.tracks)


class CandidateAggregator:
    def __init__(self, client: SpotifyApiClient) -> None:
        self.client = client

    def _fetch_top(self, auth: UserCredential, kind: str) -> List[Dict[str, Any]]:
        try:
            return self.client.get_top_items(auth, kind, limit=TOP_ITEMS_LIMIT)
        except UpstreamError as exc:
            logger.warning("Failed to fetch user's top %s: %s", kind, exc)
            return []

    def _personalized(self, auth: UserCredential) -> List[RawTrack]:
        logger.info("Fetching top tracks & artists for user %s", auth.user_id)
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="top-items") as pool:
            tracks_future = pool.submit(_with_app_context(lambda: self._fetch_top(auth, "tracks")))
            artists_future = pool.submit(_with_app_context(lambda: self._fetch_top(auth, "artists")))
            top_tracks = tracks_future.result()
            top_artists = artists_future.result()

        collected: List[RawTrack] = list(top_tracks)
        for artist in top_artists:
            artist_id = artist.get("id")
            if not artist_id:
                continue
            try:
                artist_top = self.client.get_artist_top_tracks(auth, artist_id)
            except UpstreamError as exc:
                logger.warning("Couldn't fetch top tracks for %s: %s", artist.get("name") or artist_id, exc)
                continue
            collected.extend(artist_top[:ARTIST_TOP_TRACKS_KEPT])
        return collected

    def _search(self, auth: AuthContext, mood: str, genres: Sequence[str]) -> List[RawTrack]:
        collected: List[RawTrack] = []
        for genre in genres:
            query = f"{genre} {mood}"
            try:
                collected.extend(self.client.search_tracks(auth, query, limit=SEARCH_LIMIT))
            except UpstreamError as exc:
                logger.warning("Search failed for %s: %s", genre, exc)
        return collected

    def collect(self, mood: str, genres: Sequence[str], auth: AuthContext) -> CandidatePool:
        seeds = seed_genres(genres)
        personalized = isinstance(auth, UserCredential)

        candidates: List[RawTrack] = []
        if personalized:
            candidates.extend(self._personalized(auth))
        candidates.extend(self._search(auth, mood, seeds))

        unique = dedupe_tracks(candidates)
        logger.info("Candidate pool size: %s (from %s collected)", len(unique), len(candidates))
        if not unique:
            raise NoCandidates("No tracks found.")
        return CandidatePool(mood=mood, seed_genres=seeds, tracks=unique, personalized=personalized)


__all__ = ["CandidateAggregator", "CandidatePool", "dedupe_tracks"]
