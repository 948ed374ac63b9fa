#!/usr/bin/env python
"""Spotify accounts-service grants (authorization code, refresh, client credentials)."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests
from spotipy.cache_handler import MemoryCacheHandler
from spotipy.oauth2 import SpotifyClientCredentials, SpotifyOAuth, SpotifyOauthError

from src.errors import UpstreamAuthExpired, UpstreamUnavailable
from src.settings import ProviderSettings


logger = logging.getLogger(__name__)

TokenInfo = Dict[str, Any]


class TokenService:
    """Thin wrapper around spotipy's OAuth managers.

    Managers are built per call with an in-memory cache handler so no token
    is shared between users or written to a ``.cache`` file.
    """

    def __init__(self, settings: ProviderSettings) -> None:
        self.settings = settings

    def _require_client_credentials(self) -> None:
        if not self.settings.has_client_credentials:
            raise UpstreamUnavailable("Spotify client ID / secret are not configured.")

    def _oauth_manager(self, state: Optional[str] = None) -> SpotifyOAuth:
        self._require_client_credentials()
        return SpotifyOAuth(
            client_id=self.settings.client_id,
            client_secret=self.settings.client_secret,
            redirect_uri=self.settings.redirect_uri,
            scope=self.settings.scope_string,
            state=state,
            cache_handler=MemoryCacheHandler(),
            open_browser=False,
            requests_timeout=self.settings.timeout_seconds,
        )

    def authorize_url(self, state: Optional[str] = None) -> str:
        return self._oauth_manager(state=state).get_authorize_url()

    def exchange_code(self, code: str) -> TokenInfo:
        """Run the ``authorization_code`` grant; returns the token payload."""
        if not code:
            raise UpstreamAuthExpired("Missing authorization code.")
        try:
            token_info = self._oauth_manager().get_access_token(code, as_dict=True, check_cache=False)
        except SpotifyOauthError as exc:
            logger.warning("Spotify code exchange failed: %s", exc)
            raise UpstreamAuthExpired("Spotify login failed.") from exc
        except requests.RequestException as exc:
            logger.error("Spotify accounts service unreachable during code exchange: %s", exc)
            raise UpstreamUnavailable("Spotify accounts service unavailable.") from exc
        if not token_info or not token_info.get("access_token"):
            raise UpstreamAuthExpired("Spotify login returned no access token.")
        return token_info

    def refresh(self, refresh_token: str) -> TokenInfo:
        """Run the ``refresh_token`` grant once. No retry."""
        if not refresh_token:
            raise UpstreamAuthExpired("No refresh token available.")
        try:
            token_info = self._oauth_manager().refresh_access_token(refresh_token)
        except SpotifyOauthError as exc:
            logger.warning("Spotify token refresh rejected: %s", exc)
            raise UpstreamAuthExpired("Failed to refresh Spotify token.") from exc
        except requests.RequestException as exc:
            logger.error("Spotify accounts service unreachable during refresh: %s", exc)
            raise UpstreamAuthExpired("Failed to refresh Spotify token.") from exc
        if not token_info or not token_info.get("access_token"):
            raise UpstreamAuthExpired("No new access token returned.")
        return token_info

    def app_token(self) -> str:
        """Fetch a fresh client-credentials token for unauthenticated work."""
        self._require_client_credentials()
        manager = SpotifyClientCredentials(
            client_id=self.settings.client_id,
            client_secret=self.settings.client_secret,
            cache_handler=MemoryCacheHandler(),
            requests_timeout=self.settings.timeout_seconds,
        )
        try:
            token = manager.get_access_token(as_dict=False, check_cache=False)
        except SpotifyOauthError as exc:
            logger.error("Spotify client-credentials grant failed: %s", exc)
            raise UpstreamUnavailable("Could not obtain a Spotify app token.") from exc
        except requests.RequestException as exc:
            logger.error("Spotify accounts service unreachable: %s", exc)
            raise UpstreamUnavailable("Could not obtain a Spotify app token.") from exc
        if not token:
            raise UpstreamUnavailable("Could not obtain a Spotify app token.")
        return token


__all__ = ["TokenService", "TokenInfo"]
