#!/usr/bin/env python
"""
Spotify Web API client with transparent, single-shot token refresh.

Every call is authorized by an :data:`AuthContext`. A 401 on a user
credential triggers exactly one ``refresh_token`` grant, the new access token
is written into the credential in place and persisted, and the call is
retried once. Anything else propagates immediately.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from src.errors import UpstreamAuthExpired, UpstreamUnavailable
from src.observability.metrics import record_token_refresh, record_upstream_failure
from src.settings import ProviderSettings
from .credentials import AuthContext, CredentialStore, UserCredential
from .oauth import TokenService


logger = logging.getLogger(__name__)

# Provider limit for POST /playlists/{id}/tracks
MAX_TRACKS_PER_ADD = 100
# Provider limit for GET /audio-features
MAX_AUDIO_FEATURE_IDS = 100


class SpotifyApiClient:
    def __init__(
        self,
        settings: ProviderSettings,
        tokens: TokenService,
        credential_store: CredentialStore,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.settings = settings
        self.tokens = tokens
        self.credential_store = credential_store
        self.session = session or requests.Session()

    # ------------------------------------------------------------------
    # Core request path
    # ------------------------------------------------------------------
    def _absolute(self, url: str) -> str:
        if url.startswith("http://") or url.startswith("https://"):
            return url
        return f"{self.settings.api_base_url}/{url.lstrip('/')}"

    def _send(self, method: str, url: str, token: str, params=None, json=None) -> requests.Response:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        try:
            return self.session.request(
                method.upper(),
                url,
                headers=headers,
                params=params,
                json=json,
                timeout=self.settings.timeout_seconds,
            )
        except requests.RequestException as exc:
            record_upstream_failure("transport")
            logger.warning("Spotify %s %s failed: %s", method.upper(), url, exc)
            raise UpstreamUnavailable("Spotify is unreachable.") from exc

    def _decode(self, response: requests.Response, method: str, url: str) -> Dict[str, Any]:
        status = response.status_code
        if status < 200 or status >= 300:
            record_upstream_failure(str(status))
            logger.warning("Spotify %s %s returned HTTP %s", method.upper(), url, status)
            raise UpstreamUnavailable(
                f"Spotify request failed with HTTP {status}.",
                upstream_status=status,
            )
        if status == 204 or not response.content:
            return {}
        try:
            body = response.json()
        except ValueError as exc:
            record_upstream_failure("decode")
            raise UpstreamUnavailable("Spotify returned a malformed response.", upstream_status=status) from exc
        return body if isinstance(body, dict) else {"items": body}

    def _refresh(self, auth: UserCredential) -> str:
        logger.info("Access token expired for user %s; refreshing Spotify token", auth.user_id)
        try:
            token_info = self.tokens.refresh(auth.credential.refresh_token)
        except UpstreamAuthExpired:
            record_token_refresh("failure")
            logger.error("Failed to refresh Spotify token for user %s", auth.user_id)
            raise

        new_access = token_info["access_token"]
        rotated_refresh = token_info.get("refresh_token")
        if rotated_refresh == auth.credential.refresh_token:
            rotated_refresh = None

        auth.credential.access_token = new_access
        if rotated_refresh:
            auth.credential.refresh_token = rotated_refresh
        try:
            self.credential_store.update_access_token(auth.user_id, new_access, rotated_refresh)
        except Exception as exc:
            # The in-memory credential is already updated; the retry can still proceed
            logger.error("Could not persist refreshed token for user %s: %s", auth.user_id, exc, exc_info=True)
        record_token_refresh("success")
        logger.info("Spotify token refreshed for user %s, retrying request", auth.user_id)
        return new_access

    def call(
        self,
        method: str,
        url: str,
        auth: AuthContext,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Issue one Web API request, refreshing a user credential at most once."""
        target = self._absolute(url)
        response = self._send(method, target, auth.bearer, params=params, json=json)
        if response.status_code != 401:
            return self._decode(response, method, target)

        if not isinstance(auth, UserCredential) or not auth.can_refresh:
            record_upstream_failure("401")
            raise UpstreamAuthExpired("Spotify rejected the access token.", upstream_status=401)

        new_token = self._refresh(auth)
        retry = self._send(method, target, new_token, params=params, json=json)
        if retry.status_code == 401:
            record_upstream_failure("401")
            logger.error("Spotify still rejects the refreshed token for user %s", auth.user_id)
            raise UpstreamAuthExpired("Spotify authorization expired.", upstream_status=401)
        return self._decode(retry, method, target)

    # ------------------------------------------------------------------
    # Endpoint helpers
    # ------------------------------------------------------------------
    def get_profile(self, auth: AuthContext) -> Dict[str, Any]:
        return self.call("get", "/me", auth)

    def get_top_items(self, auth: AuthContext, kind: str, limit: int = 5) -> List[Dict[str, Any]]:
        if kind not in ("tracks", "artists"):
            raise ValueError(f"Unsupported top item type: {kind}")
        body = self.call("get", f"/me/top/{kind}", auth, params={"limit": limit})
        return list(body.get("items") or [])

    def get_artist_top_tracks(self, auth: AuthContext, artist_id: str) -> List[Dict[str, Any]]:
        body = self.call(
            "get",
            f"/artists/{artist_id}/top-tracks",
            auth,
            params={"market": self.settings.market},
        )
        return list(body.get("tracks") or [])

    def search_tracks(self, auth: AuthContext, query: str, limit: int = 50) -> List[Dict[str, Any]]:
        body = self.call(
            "get",
            "/search",
            auth,
            params={"q": query, "type": "track", "limit": limit, "market": self.settings.market},
        )
        return list((body.get("tracks") or {}).get("items") or [])

    def get_audio_features(self, auth: AuthContext, track_ids: Sequence[str]) -> List[Dict[str, Any]]:
        ids = [tid for tid in track_ids if tid][:MAX_AUDIO_FEATURE_IDS]
        if not ids:
            return []
        body = self.call("get", "/audio-features", auth, params={"ids": ",".join(ids)})
        return [f for f in (body.get("audio_features") or []) if f]

    def create_playlist(
        self,
        auth: AuthContext,
        name: str,
        *,
        description: str = "",
        public: bool = False,
    ) -> Dict[str, Any]:
        return self.call(
            "post",
            "/me/playlists",
            auth,
            json={"name": name, "description": description, "public": public},
        )

    def add_tracks(self, auth: AuthContext, playlist_id: str, uris: Sequence[str]) -> Dict[str, Any]:
        if len(uris) > MAX_TRACKS_PER_ADD:
            raise ValueError(f"At most {MAX_TRACKS_PER_ADD} tracks can be added per request")
        return self.call("post", f"/playlists/{playlist_id}/tracks", auth, json={"uris": list(uris)})


__all__ = ["SpotifyApiClient", "MAX_TRACKS_PER_ADD", "MAX_AUDIO_FEATURE_IDS"]
