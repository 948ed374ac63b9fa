from __future__ import annotations

from flask import Blueprint, Response
from prometheus_client import Counter, Histogram, generate_latest

metrics_blueprint = Blueprint("metrics_bp", __name__)

CONTENT_TYPE_LATEST = "text/plain; version=0.0.4; charset=utf-8"

PLAYLIST_GENERATIONS = Counter(
    "moodmix_playlist_generations_total",
    "Playlist generation requests by outcome.",
    ["outcome"],
)
PLAYLIST_PUBLISHES = Counter(
    "moodmix_playlist_publish_total",
    "Draft publish attempts by outcome.",
    ["outcome"],
)
TOKEN_REFRESHES = Counter(
    "moodmix_spotify_token_refresh_total",
    "Spotify refresh_token grants by outcome.",
    ["outcome"],
)
UPSTREAM_FAILURES = Counter(
    "moodmix_spotify_upstream_failure_total",
    "Failed Spotify Web API calls by reason (HTTP status, transport, decode).",
    ["reason"],
)
CANDIDATE_POOL_SIZE = Histogram(
    "moodmix_candidate_pool_size",
    "Deduplicated candidate pool size per generation.",
    buckets=(0, 5, 10, 25, 50, 75, 100, 150, float("inf")),
)


def record_generation(outcome: str, pool_size: int | None = None) -> None:
    PLAYLIST_GENERATIONS.labels(outcome=outcome).inc()
    if pool_size is not None:
        CANDIDATE_POOL_SIZE.observe(pool_size)


def record_publish(outcome: str) -> None:
    PLAYLIST_PUBLISHES.labels(outcome=outcome).inc()


def record_token_refresh(outcome: str) -> None:
    TOKEN_REFRESHES.labels(outcome=outcome).inc()


def record_upstream_failure(reason: str) -> None:
    UPSTREAM_FAILURES.labels(reason=reason).inc()


@metrics_blueprint.route("/metrics")
def metrics_endpoint() -> Response:
    return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)
