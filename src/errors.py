#!/usr/bin/env python
"""Error taxonomy shared by the provider client, playlist domain and HTTP layer."""

from __future__ import annotations

from typing import Any, Dict, Optional


class MoodMixError(Exception):
    """Base error carrying an HTTP status and a short machine-readable code."""

    status_code = 500
    code = "internal_error"
    default_message = "Unexpected error."

    def __init__(self, message: Optional[str] = None, *, status_code: Optional[int] = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "code": self.code}


class UpstreamError(MoodMixError):
    """Raised when a call to the Spotify Web API or accounts service fails."""

    status_code = 502
    code = "upstream_error"
    default_message = "Spotify request failed."

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        upstream_status: Optional[int] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.upstream_status = upstream_status


class UpstreamAuthExpired(UpstreamError):
    """Authorization failed and could not be recovered with one refresh."""

    status_code = 401
    code = "upstream_auth_expired"
    default_message = "Spotify authorization expired."


class UpstreamUnavailable(UpstreamError):
    """Non-authorization upstream failure; never retried."""

    status_code = 502
    code = "upstream_unavailable"
    default_message = "Spotify is unavailable."


class ValidationError(MoodMixError):
    status_code = 400
    code = "validation_error"
    default_message = "Invalid request."

    def __init__(self, message: Optional[str] = None, *, errors: Optional[Dict[str, str]] = None) -> None:
        super().__init__(message)
        self.errors = dict(errors or {})

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        if self.errors:
            payload["errors"] = self.errors
        return payload


class NotFound(MoodMixError):
    status_code = 404
    code = "not_found"
    default_message = "Not found."


class NoCandidates(MoodMixError):
    status_code = 404
    code = "no_candidates"
    default_message = "No tracks found."


__all__ = [
    "MoodMixError",
    "UpstreamError",
    "UpstreamAuthExpired",
    "UpstreamUnavailable",
    "ValidationError",
    "NotFound",
    "NoCandidates",
]
