# src/database/db_manager.py
import logging
import os
from datetime import datetime

from flask_login import UserMixin
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import CheckConstraint, ForeignKey
from sqlalchemy.engine import make_url
from sqlalchemy.orm import relationship

# Initialize the SQLAlchemy object
db = SQLAlchemy()
logger = logging.getLogger(__name__)

DRAFT_STATUSES = ("draft", "confirmed")


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    avatar_url = db.Column(db.String(512), nullable=True)
    auth_provider = db.Column(db.String(16), nullable=False, default="spotify")
    plan = db.Column(db.String(16), nullable=False, default="free")
    free_generations_used = db.Column(db.Integer, nullable=False, default=0)
    free_generation_limit = db.Column(db.Integer, nullable=False, default=6)
    ai_generations_used = db.Column(db.Integer, nullable=False, default=0)
    preferences = db.Column(db.JSON, nullable=True)

    # Spotify credential; both columns are set together or both NULL
    spotify_access_token = db.Column(db.Text, nullable=True)
    spotify_refresh_token = db.Column(db.Text, nullable=True)
    # Bumped on logout so previously issued bearer tokens stop resolving
    session_version = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    drafts = relationship(
        "Draft",
        back_populates="owner",
        cascade="all, delete-orphan",
        order_by="Draft.created_at.desc()",
        lazy=True,
    )
    published_playlists = relationship(
        "PublishedPlaylist",
        back_populates="owner",
        cascade="all, delete-orphan",
        lazy=True,
    )

    __table_args__ = (
        CheckConstraint("auth_provider IN ('google', 'spotify')", name="ck_users_auth_provider"),
        CheckConstraint("plan IN ('free', 'pro')", name="ck_users_plan"),
        CheckConstraint(
            "(spotify_access_token IS NULL AND spotify_refresh_token IS NULL)"
            " OR (spotify_access_token IS NOT NULL AND spotify_refresh_token IS NOT NULL)",
            name="ck_users_spotify_credential_pair",
        ),
    )

    @property
    def spotify_connected(self) -> bool:
        return bool(self.spotify_access_token and self.spotify_refresh_token)

    def get_id(self) -> str:
        # Flask-Login alternative id: logout bumps the version and orphans old cookies
        return f"{self.id}:{self.session_version or 0}"

    def to_dict(self) -> dict:
        prefs = self.preferences or {}
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "avatar": self.avatar_url,
            "auth_provider": self.auth_provider,
            "plan": self.plan,
            "free_generations_used": self.free_generations_used,
            "free_generation_limit": self.free_generation_limit,
            "ai_generations_used": self.ai_generations_used,
            "preferences": {
                "genres": list(prefs.get("genres") or []),
                "moods": list(prefs.get("moods") or []),
            },
            "spotify_connected": self.spotify_connected,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return f"<User {self.email}>"


class Draft(db.Model):
    __tablename__ = "drafts"

    id = db.Column(db.String(64), primary_key=True)
    user_id = db.Column(
        db.Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    mood = db.Column(db.String(64), nullable=False)
    genres = db.Column(db.JSON, nullable=False)  # list[str], at most two
    count = db.Column(db.Integer, nullable=False)
    tracks = db.Column(db.JSON, nullable=False)  # list[dict], unique by id
    status = db.Column(db.String(16), nullable=False, default="draft")
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    owner = relationship("User", back_populates="drafts")

    __table_args__ = (
        CheckConstraint("status IN ('draft', 'confirmed')", name="ck_drafts_status"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "mood": self.mood,
            "genres": list(self.genres or []),
            "count": self.count,
            "tracks": list(self.tracks or []),
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<Draft {self.id} ({self.mood}, {len(self.tracks or [])} tracks)>"


class PublishedPlaylist(db.Model):
    __tablename__ = "published_playlists"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    spotify_playlist_id = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    mood = db.Column(db.String(64), nullable=True)
    genres = db.Column(db.JSON, nullable=True)
    tracks = db.Column(db.JSON, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    owner = relationship("User", back_populates="published_playlists")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "spotify_playlist_id": self.spotify_playlist_id,
            "name": self.name,
            "mood": self.mood,
            "genres": list(self.genres or []),
            "tracks": list(self.tracks or []),
            "track_count": len(self.tracks or []),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<PublishedPlaylist {self.name} ({self.spotify_playlist_id})>"


def initialize_database(app):
    """
    Initializes the SQLAlchemy extension with the Flask app instance
    and creates all database tables if they don't already exist.
    """
    db.init_app(app)
    # Ensure the instance folder exists for SQLite database file
    instance_path = app.instance_path
    if not os.path.exists(instance_path):
        os.makedirs(instance_path)
        logger.info("Created instance folder: %s", instance_path)

    # Ensure the directory for the configured SQLite file exists
    try:
        uri = app.config.get('SQLALCHEMY_DATABASE_URI')
        if uri:
            url = make_url(uri)
            # Only handle file-based SQLite (not :memory:)
            if url.get_backend_name() == 'sqlite' and url.database and url.database != ':memory:':
                db_dir = os.path.dirname(url.database)
                if db_dir and not os.path.exists(db_dir):
                    os.makedirs(db_dir, exist_ok=True)
                    logger.info("Created SQLite DB directory: %s", db_dir)
    except Exception as e:
        # Don't block app startup on path parsing issues; log and continue
        logger.warning("Could not ensure SQLite directory exists: %s", e)

    # Create database tables within the application context
    with app.app_context():
        db.create_all()
        logger.info("Database tables created or already exist.")


__all__ = [
    "db",
    "User",
    "Draft",
    "PublishedPlaylist",
    "DRAFT_STATUSES",
    "initialize_database",
]
