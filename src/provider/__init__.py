"""Spotify provider integration (credentials, OAuth grants, Web API client)."""

from .credentials import (
    AppToken,
    AuthContext,
    Credential,
    CredentialStore,
    DefaultCredentialStore,
    LoginToken,
    UserCredential,
)
from .oauth import TokenService
from .client import SpotifyApiClient, MAX_TRACKS_PER_ADD

__all__ = [
    "AppToken",
    "AuthContext",
    "Credential",
    "CredentialStore",
    "DefaultCredentialStore",
    "LoginToken",
    "UserCredential",
    "TokenService",
    "SpotifyApiClient",
    "MAX_TRACKS_PER_ADD",
]
