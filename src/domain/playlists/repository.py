from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import update

from src.database.db_manager import Draft, PublishedPlaylist, User, db


logger = logging.getLogger(__name__)


class DraftRepository:
    """Drafts keyed by id, each owned by one user."""

    def add(self, user_id: int, payload: Dict[str, Any]) -> Draft:
        draft = Draft(
            id=payload["id"],
            user_id=user_id,
            mood=payload["mood"],
            genres=list(payload["genres"]),
            count=payload["count"],
            tracks=list(payload["tracks"]),
            status=payload.get("status", "draft"),
            created_at=payload.get("created_at") or datetime.utcnow(),
        )
        try:
            db.session.add(draft)
            db.session.execute(
                update(User)
                .where(User.id == user_id)
                .values(free_generations_used=User.free_generations_used + 1)
            )
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return draft

    def get_for_user(self, user_id: int, draft_id: str) -> Optional[Draft]:
        if not draft_id:
            return None
        return Draft.query.filter_by(id=draft_id, user_id=user_id).first()

    def list_drafts(self, user_id: int) -> List[Draft]:
        return (
            Draft.query.filter_by(user_id=user_id, status="draft")
            .order_by(Draft.created_at.desc())
            .all()
        )

    def remove_track(self, draft: Draft, track_id: str) -> int:
        """Drop every entry with ``track_id``; returns how many were removed."""
        before = list(draft.tracks or [])
        remaining = [t for t in before if t.get("id") != track_id]
        removed = len(before) - len(remaining)
        if removed:
            # Reassign so the JSON column is flagged dirty
            draft.tracks = remaining
            try:
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise
        return removed


class PlaylistHistoryRepository:
    """Append-only record of drafts published to Spotify."""

    def list_for_user(self, user_id: int) -> List[PublishedPlaylist]:
        return (
            PublishedPlaylist.query.filter_by(user_id=user_id)
            .order_by(PublishedPlaylist.created_at.desc(), PublishedPlaylist.id.desc())
            .all()
        )

    def archive(self, draft: Draft, *, spotify_playlist_id: str, name: str) -> PublishedPlaylist:
        """Persist the history record and delete the draft in one transaction."""
        record = PublishedPlaylist(
            user_id=draft.user_id,
            spotify_playlist_id=spotify_playlist_id,
            name=name,
            mood=draft.mood,
            genres=list(draft.genres or []),
            tracks=list(draft.tracks or []),
            created_at=datetime.utcnow(),
        )
        try:
            db.session.add(record)
            db.session.delete(draft)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return record


__all__ = ["DraftRepository", "PlaylistHistoryRepository"]
