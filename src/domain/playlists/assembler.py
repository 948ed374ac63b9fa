#!/usr/bin/env python
"""Random sampling of the candidate pool into a draft playlist."""

from __future__ import annotations

import logging
import random
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from src.models.dto import TrackDTO
from .repository import DraftRepository


logger = logging.getLogger(__name__)

DraftPayload = Dict[str, Any]


def new_draft_id() -> str:
    return f"draft_{uuid.uuid4().hex}"


class DraftAssembler:
    def __init__(self, repository: DraftRepository, rng: Optional[random.Random] = None) -> None:
        self.repository = repository
        self.rng = rng or random.Random()

    def sample(self, pool: Sequence[Dict[str, Any]], count: int) -> List[Dict[str, Any]]:
        """Uniformly shuffle a copy of ``pool`` and take the first ``count``."""
        shuffled = list(pool)
        self.rng.shuffle(shuffled)
        return shuffled[: max(0, count)]

    def assemble(
        self,
        *,
        mood: str,
        seed_genres: Sequence[str],
        pool: Sequence[Dict[str, Any]],
        count: int,
        user_id: Optional[int] = None,
    ) -> DraftPayload:
        selected = self.sample(pool, count)
        tracks: List[Dict[str, Any]] = []
        seen = set()
        for raw in selected:
            track = TrackDTO.from_spotify(raw)
            if track.id in seen:
                continue
            seen.add(track.id)
            tracks.append(track.model_dump())

        draft: DraftPayload = {
            "id": new_draft_id(),
            "mood": mood,
            "genres": list(seed_genres),
            "count": count,
            "tracks": tracks,
            "status": "draft",
            "created_at": datetime.utcnow(),
        }

        if user_id is None:
            logger.info("Returning transient draft %s (%s tracks)", draft["id"], len(tracks))
            return _serializable(draft)

        self.repository.add(user_id, draft)
        logger.info("Draft %s saved for user %s (%s tracks)", draft["id"], user_id, len(tracks))
        return _serializable(draft)


def _serializable(draft: DraftPayload) -> DraftPayload:
    payload = dict(draft)
    payload["created_at"] = draft["created_at"].isoformat()
    return payload


__all__ = ["DraftAssembler", "new_draft_id"]
