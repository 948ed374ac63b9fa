#!/usr/bin/env python
"""
Validated Spotify provider settings.

Merges defaults from config.Config with optional runtime overrides and hands
the result to the token service and the Web API client.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from config import Config


class ProviderSettings(BaseModel):
    """Spotify application credentials and Web API options."""

    model_config = ConfigDict(extra="ignore")

    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    redirect_uri: str
    scopes: List[str] = Field(default_factory=list)

    api_base_url: str = "https://api.spotify.com/v1"
    market: str = "US"
    timeout_seconds: float = 15.0

    @field_validator("client_id", "client_secret", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("scopes", mode="before")
    @classmethod
    def _normalize_scopes(cls, value: object) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            tokens = value.replace(",", " ").split()
        else:
            tokens = [str(token).strip() for token in value]  # type: ignore[union-attr]
        normalized: List[str] = []
        for token in tokens:
            if token and token not in normalized:
                normalized.append(token)
        return normalized

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("market")
    @classmethod
    def _upper_market(cls, value: str) -> str:
        value = (value or "US").strip().upper()
        return value or "US"

    @field_validator("timeout_seconds", mode="before")
    @classmethod
    def _coerce_timeout(cls, value: object) -> float:
        try:
            timeout = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 15.0
        return max(1.0, min(timeout, 120.0))

    @property
    def has_client_credentials(self) -> bool:
        return bool(self.client_id and self.client_secret)

    @property
    def scope_string(self) -> str:
        return " ".join(self.scopes)


def load_provider_settings(overrides: Optional[Dict[str, Any]] = None) -> ProviderSettings:
    """Load provider settings from Config, applying optional overrides."""
    data: Dict[str, Any] = {
        "client_id": Config.SPOTIPY_CLIENT_ID,
        "client_secret": Config.SPOTIPY_CLIENT_SECRET,
        "redirect_uri": Config.SPOTIPY_REDIRECT_URI,
        "scopes": list(Config.SPOTIFY_SCOPES),
        "api_base_url": Config.SPOTIFY_API_BASE_URL,
        "market": Config.SPOTIFY_MARKET,
        "timeout_seconds": Config.SPOTIFY_HTTP_TIMEOUT_SECONDS,
    }
    if overrides:
        data.update(overrides)
    return ProviderSettings.model_validate(data)


__all__ = ["ProviderSettings", "load_provider_settings"]
