#!/usr/bin/env python
"""Spotify credentials: the per-user token pair, the auth variant and its store."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from sqlalchemy import update

from src.database.db_manager import User, db


logger = logging.getLogger(__name__)


@dataclass
class Credential:
    """OAuth access/refresh pair. Mutated in place when a refresh succeeds."""

    access_token: str
    refresh_token: str

    @classmethod
    def from_user(cls, user: Optional[User]) -> Optional["Credential"]:
        if user is None or not user.spotify_access_token or not user.spotify_refresh_token:
            return None
        return cls(access_token=user.spotify_access_token, refresh_token=user.spotify_refresh_token)


@dataclass
class UserCredential:
    """Auth resolved from a connected user; refreshable through its refresh token."""

    user_id: int
    credential: Credential

    @property
    def bearer(self) -> str:
        return self.credential.access_token

    @property
    def can_refresh(self) -> bool:
        return bool(self.credential.refresh_token)


@dataclass(frozen=True)
class AppToken:
    """Client-credentials token; cannot be refreshed with a user refresh token."""

    access_token: str

    @property
    def bearer(self) -> str:
        return self.access_token

    @property
    def can_refresh(self) -> bool:
        return False


@dataclass(frozen=True)
class LoginToken:
    """User access token fresh from the code exchange, before a local user row exists.

    Good for the profile lookup that finds or creates that row. There is no
    stored credential to update yet, so a 401 is terminal.
    """

    access_token: str

    @property
    def bearer(self) -> str:
        return self.access_token

    @property
    def can_refresh(self) -> bool:
        return False


AuthContext = Union[UserCredential, AppToken, LoginToken]


class CredentialStore:
    """Interface for reading and persisting per-user Spotify credentials."""

    def get(self, user_id: int) -> Optional[Credential]:  # pragma: no cover - interface
        raise NotImplementedError

    def save(self, user_id: int, credential: Credential) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def update_access_token(
        self, user_id: int, access_token: str, refresh_token: Optional[str] = None
    ) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def clear(self, user_id: int) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class DefaultCredentialStore(CredentialStore):
    """Credential store backed by the ``users`` table."""

    def get(self, user_id: int) -> Optional[Credential]:
        return Credential.from_user(db.session.get(User, user_id))

    def save(self, user_id: int, credential: Credential) -> None:
        if not credential.access_token or not credential.refresh_token:
            raise ValueError("A Spotify credential needs both an access and a refresh token")
        self._write(
            user_id,
            spotify_access_token=credential.access_token,
            spotify_refresh_token=credential.refresh_token,
        )

    def update_access_token(self, user_id: int, access_token: str, refresh_token: Optional[str] = None) -> None:
        if not access_token:
            raise ValueError("Refusing to store an empty access token")
        values = {"spotify_access_token": access_token}
        if refresh_token:
            values["spotify_refresh_token"] = refresh_token
        # Only touch rows that already hold a full pair
        stmt = (
            update(User)
            .where(User.id == user_id, User.spotify_refresh_token.isnot(None))
            .values(**values)
        )
        try:
            result = db.session.execute(stmt)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        if not result.rowcount:
            logger.warning("No stored Spotify credential to update for user %s", user_id)

    def clear(self, user_id: int) -> None:
        self._write(user_id, spotify_access_token=None, spotify_refresh_token=None)

    def _write(self, user_id: int, **values) -> None:
        try:
            db.session.execute(update(User).where(User.id == user_id).values(**values))
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise


__all__ = [
    "Credential",
    "UserCredential",
    "AppToken",
    "LoginToken",
    "AuthContext",
    "CredentialStore",
    "DefaultCredentialStore",
]
