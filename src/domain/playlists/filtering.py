#!/usr/bin/env python
"""Mood filtering over Spotify audio features, with fallback to the full pool."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from src.errors import UpstreamError
from src.provider import AuthContext, SpotifyApiClient
from src.provider.client import MAX_AUDIO_FEATURE_IDS
from .vocabulary import Constraints, mood_constraints


logger = logging.getLogger(__name__)

FeatureMap = Dict[str, Dict[str, Any]]


def track_matches(features: Optional[Mapping[str, Any]], constraints: Constraints) -> bool:
    """True when every constrained feature is numeric and inside its inclusive range.

    With no constraints every track passes; with constraints, missing feature
    data is a non-match.
    """
    if not constraints:
        return True
    if not features:
        return False
    for attribute, (low, high) in constraints.items():
        value = features.get(attribute)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        if not low <= value <= high:
            return False
    return True


def apply_constraints(
    pool: Sequence[Dict[str, Any]],
    features: Mapping[str, Mapping[str, Any]],
    constraints: Constraints,
) -> List[Dict[str, Any]]:
    """Filter ``pool``; an empty result falls back to the unfiltered pool."""
    if not constraints:
        return list(pool)
    filtered = [t for t in pool if track_matches(features.get(t.get("id")), constraints)]
    if not filtered:
        logger.info("Mood filter removed all %s candidates; using unfiltered pool", len(pool))
        return list(pool)
    return filtered


class AttributeFilter:
    def __init__(self, client: SpotifyApiClient) -> None:
        self.client = client

    def fetch_features(self, auth: AuthContext, pool: Sequence[Dict[str, Any]]) -> FeatureMap:
        ids = [t["id"] for t in pool if t.get("id")][:MAX_AUDIO_FEATURE_IDS]
        try:
            rows = self.client.get_audio_features(auth, ids)
        except UpstreamError as exc:
            logger.warning("Audio-features fetch failed: %s", exc)
            return {}
        return {row["id"]: row for row in rows if row.get("id")}

    def narrow(self, mood: str, pool: Sequence[Dict[str, Any]], auth: AuthContext) -> List[Dict[str, Any]]:
        constraints = mood_constraints(mood)
        if not constraints:
            return list(pool)
        features = self.fetch_features(auth, pool)
        narrowed = apply_constraints(pool, features, constraints)
        logger.info("Mood '%s' filter kept %s of %s candidates", mood, len(narrowed), len(pool))
        return narrowed


__all__ = ["AttributeFilter", "apply_constraints", "track_matches"]
