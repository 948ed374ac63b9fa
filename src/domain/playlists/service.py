#!/usr/bin/env python
"""
Request-scoped playlist workflows: generate, edit, publish and list.

Auth is resolved once per request into a :class:`UserCredential` (connected
user) or a fresh :class:`AppToken` (everyone else) and threaded through every
Spotify call made while serving it.
"""

from __future__ import annotations

import logging
import random
from typing import Any, Dict, List, Optional, Sequence

from src.database.db_manager import Draft, PublishedPlaylist, User
from src.errors import NotFound, UpstreamAuthExpired, ValidationError
from src.observability.metrics import record_generation, record_publish
from src.observability.tracing import tracer
from src.provider import (
    AppToken,
    AuthContext,
    Credential,
    CredentialStore,
    SpotifyApiClient,
    TokenService,
    UserCredential,
)
from .aggregator import CandidateAggregator
from .assembler import DraftAssembler
from .filtering import AttributeFilter
from .publisher import Publisher
from .repository import DraftRepository, PlaylistHistoryRepository


logger = logging.getLogger(__name__)


class PlaylistService:
    def __init__(
        self,
        client: SpotifyApiClient,
        tokens: TokenService,
        *,
        drafts: Optional[DraftRepository] = None,
        history: Optional[PlaylistHistoryRepository] = None,
        credentials: Optional[CredentialStore] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.client = client
        self.tokens = tokens
        self.credentials = credentials or client.credential_store
        self.drafts = drafts or DraftRepository()
        self.history = history or PlaylistHistoryRepository()
        self.aggregator = CandidateAggregator(client)
        self.attribute_filter = AttributeFilter(client)
        self.assembler = DraftAssembler(self.drafts, rng=rng)
        self.publisher = Publisher(client, self.history)

    # ------------------------------------------------------------------
    # Auth resolution
    # ------------------------------------------------------------------
    def _stored_credential(self, user: Optional[User]) -> Optional[Credential]:
        return self.credentials.get(user.id) if user is not None else None

    def resolve_auth(self, user: Optional[User]) -> AuthContext:
        credential = self._stored_credential(user)
        if credential is not None:
            logger.info("User %s connected to Spotify (token present)", user.id)
            return UserCredential(user_id=user.id, credential=credential)
        logger.info("No user token; using app client credentials for Spotify requests")
        return AppToken(self.tokens.app_token())

    def require_user_auth(self, user: Optional[User]) -> UserCredential:
        credential = self._stored_credential(user)
        if credential is None:
            raise UpstreamAuthExpired("User not connected to Spotify.")
        return UserCredential(user_id=user.id, credential=credential)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def profile(self, user: Optional[User]) -> Dict[str, Any]:
        credential = self._stored_credential(user)
        if credential is None:
            raise NotFound("User not found or not connected to Spotify")
        return self.client.get_profile(UserCredential(user_id=user.id, credential=credential))

    def generate(
        self,
        mood: str,
        genres: Sequence[str],
        count: int,
        user: Optional[User] = None,
    ) -> Dict[str, Any]:
        if not mood or not genres:
            raise ValidationError("Mood + at least one genre required.")
        if count < 1:
            raise ValidationError("Count must be at least 1.")

        auth = self.resolve_auth(user)
        try:
            with tracer.start_as_current_span("playlist.aggregate"):
                pool = self.aggregator.collect(mood, genres, auth)
            with tracer.start_as_current_span("playlist.filter"):
                narrowed = self.attribute_filter.narrow(mood, pool.tracks, auth)
            draft = self.assembler.assemble(
                mood=mood,
                seed_genres=pool.seed_genres,
                pool=narrowed,
                count=count,
                user_id=user.id if user is not None else None,
            )
        except Exception:
            record_generation("failure")
            raise
        record_generation("success", pool_size=len(pool))
        return draft

    def _owned_draft(self, user: Optional[User], draft_id: str) -> Draft:
        if user is None:
            raise UpstreamAuthExpired("Not authenticated.")
        draft = self.drafts.get_for_user(user.id, draft_id)
        if draft is None:
            raise NotFound("Draft not found.")
        return draft

    def delete_track(self, user: Optional[User], draft_id: str, track_id: str) -> Draft:
        draft = self._owned_draft(user, draft_id)
        removed = self.drafts.remove_track(draft, track_id)
        logger.info("Removed %s entries of track %s from draft %s", removed, track_id, draft_id)
        return draft

    def push(self, user: Optional[User], draft_id: str) -> PublishedPlaylist:
        auth = self.require_user_auth(user)
        draft = self._owned_draft(user, draft_id)
        try:
            record = self.publisher.publish(draft, auth)
        except Exception:
            record_publish("failure")
            raise
        record_publish("success")
        return record

    def list_history(self, user: User) -> List[PublishedPlaylist]:
        return self.history.list_for_user(user.id)

    def list_drafts(self, user: User) -> List[Draft]:
        return self.drafts.list_drafts(user.id)


__all__ = ["PlaylistService"]
