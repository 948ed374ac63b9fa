#!/usr/bin/env python
"""Genre normalization and mood-to-audio-feature constraint tables."""

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

Range = Tuple[float, float]
Constraints = Dict[str, Range]

MAX_SEED_GENRES = 2

# UI tag -> Spotify genre code
GENRE_CODES: Dict[str, str] = {
    "rnb": "r-n-b",
    "hiphop": "hip-hop",
    "edm": "edm",
    "pop": "pop",
    "soul": "soul",
    "rock": "rock",
    "jazz": "jazz",
    "classical": "classical",
    "afrobeat": "afrobeat",
}

# Inclusive [min, max] ranges over Spotify audio features
MOOD_CONSTRAINTS: Dict[str, Constraints] = {
    "chill": {"energy": (0.0, 0.5), "danceability": (0.4, 0.6), "valence": (0.4, 0.6)},
    "sad": {"energy": (0.0, 0.3), "valence": (0.0, 0.4)},
    "party": {"energy": (0.7, 1.0), "danceability": (0.7, 1.0), "valence": (0.6, 1.0)},
    "focus": {"energy": (0.3, 0.6), "instrumentalness": (0.5, 1.0)},
    "hype": {"energy": (0.8, 1.0), "valence": (0.7, 1.0)},
}


def normalize_genre(tag: str) -> str:
    key = str(tag).strip().lower()
    return GENRE_CODES.get(key, key)


def seed_genres(tags: Iterable[str]) -> List[str]:
    """Normalize tags and keep the first two non-empty results."""
    seeds: List[str] = []
    for tag in tags:
        genre = normalize_genre(tag)
        if not genre:
            continue
        seeds.append(genre)
        if len(seeds) == MAX_SEED_GENRES:
            break
    return seeds


def mood_constraints(mood: str) -> Constraints:
    """Constraints for ``mood``; unknown moods get none (no filtering)."""
    return dict(MOOD_CONSTRAINTS.get(str(mood).strip().lower(), {}))


__all__ = [
    "GENRE_CODES",
    "MOOD_CONSTRAINTS",
    "MAX_SEED_GENRES",
    "Constraints",
    "normalize_genre",
    "seed_genres",
    "mood_constraints",
]
