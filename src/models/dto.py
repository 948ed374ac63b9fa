#!/usr/bin/env python
"""
Pydantic DTOs for the playlist API.

Tracks are snapshots of Spotify track objects in the shape the frontend
consumes; request payloads validate the generate / draft endpoints.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from config import Config


class TrackDTO(BaseModel):
    """Public track shape stored in drafts and published history."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    artist: str = ""
    uri: str
    image: Optional[str] = None
    preview: Optional[str] = None

    @classmethod
    def from_spotify(cls, track: Dict[str, Any]) -> "TrackDTO":
        artists = track.get("artists") or []
        images = (track.get("album") or {}).get("images") or []
        return cls(
            id=track["id"],
            name=track.get("name") or "",
            artist=", ".join(a.get("name") for a in artists if a and a.get("name")),
            uri=track.get("uri") or f"spotify:track:{track['id']}",
            image=(images[0] or {}).get("url") if images else None,
            preview=track.get("preview_url") or None,
        )


class GenerateRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    mood: str = Field(min_length=1, max_length=64)
    genres: List[str] = Field(min_length=1)
    count: int = Field(default=Config.DEFAULT_TRACK_COUNT, ge=1, le=Config.MAX_TRACK_COUNT)

    @field_validator("mood", mode="before")
    @classmethod
    def _strip_mood(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("genres", mode="before")
    @classmethod
    def _clean_genres(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        return [g.strip() for g in value if isinstance(g, str) and g.strip()]


class DraftTrackRequest(BaseModel):
    draft_id: str = Field(alias="draftId", min_length=1)
    track_id: str = Field(alias="trackId", min_length=1)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PushDraftRequest(BaseModel):
    draft_id: str = Field(alias="draftId", min_length=1)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PreferencesUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    genres: Optional[List[str]] = Field(default=None, max_length=20)
    moods: Optional[List[str]] = Field(default=None, max_length=20)

    @field_validator("genres", "moods", mode="before")
    @classmethod
    def _dedupe(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        cleaned: List[str] = []
        for item in value:
            if not isinstance(item, str):
                raise ValueError("Preference entries must be strings")
            token = item.strip().lower()
            if token and token not in cleaned:
                cleaned.append(token)
        return cleaned


__all__ = [
    "TrackDTO",
    "GenerateRequest",
    "DraftTrackRequest",
    "PushDraftRequest",
    "PreferencesUpdate",
]
