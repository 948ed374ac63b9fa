"""Playlist domain: candidate aggregation, mood filtering, drafts and publishing."""

from .aggregator import CandidateAggregator, CandidatePool, dedupe_tracks
from .assembler import DraftAssembler
from .filtering import AttributeFilter, apply_constraints, track_matches
from .publisher import Publisher, batched
from .repository import DraftRepository, PlaylistHistoryRepository
from .service import PlaylistService
from .vocabulary import mood_constraints, normalize_genre, seed_genres

__all__ = [
    "CandidateAggregator",
    "CandidatePool",
    "dedupe_tracks",
    "DraftAssembler",
    "AttributeFilter",
    "apply_constraints",
    "track_matches",
    "Publisher",
    "batched",
    "DraftRepository",
    "PlaylistHistoryRepository",
    "PlaylistService",
    "mood_constraints",
    "normalize_genre",
    "seed_genres",
]
