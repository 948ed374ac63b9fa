#!/usr/bin/env python
"""Request-level hooks: request ids, CORS, redirect allowlist, rate limiting, CSP."""

from __future__ import annotations

import logging
import threading
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict, Iterable, Optional
from urllib.parse import urlparse
from uuid import uuid4

from flask import Flask, g, jsonify, request
from flask_cors import CORS


logger = logging.getLogger(__name__)


def _policy_violation(policy: str, error: str, message: str, status: int):
    return jsonify({"error": error, "policy": policy, "message": message}), status


def install_request_ids(app: Flask) -> None:
    @app.before_request
    def _assign_request_id():
        g.request_id = request.headers.get("X-Request-ID") or uuid4().hex

    @app.after_request
    def _echo_request_id(response):
        request_id = getattr(g, "request_id", None)
        if request_id:
            response.headers.setdefault("X-Request-ID", request_id)
        return response


def install_cors(app: Flask, origins: Iterable[str]) -> None:
    """Credentialed CORS for the JSON API and auth endpoints; wildcards are ignored."""
    allowed = sorted({o.strip() for o in origins if o and o.strip() and o.strip() != "*"})
    resource = {"origins": allowed}
    CORS(app, resources={r"/api/*": resource, r"/auth/*": resource}, supports_credentials=True)


def origin_of(url: str) -> Optional[str]:
    """``scheme://host[:port]`` of ``url``, or None when it is not absolute."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if not parsed.scheme or not parsed.netloc:
        return None
    return f"{parsed.scheme}://{parsed.netloc}"


def install_redirect_allowlist(app: Flask, allowlist: Iterable[str]) -> None:
    allowed = {o.rstrip("/") for o in allowlist if o}
    if not allowed:
        return

    @app.before_request
    def _check_redirect_target():
        if not (request.endpoint or "").startswith("auth."):
            return None
        target = request.args.get("redirect") or request.args.get("redirect_uri")
        if not target or origin_of(target) in allowed:
            return None
        logger.warning("Blocked OAuth redirect to %s", target)
        return _policy_violation(
            "redirect_allowlist",
            "policy_violation",
            "Redirect URI is not permitted for this deployment.",
            400,
        )


class SlidingWindowLimiter:
    """Per-client request log; at most ``limit`` hits inside any ``window`` seconds."""

    def __init__(self, limit: int, window: float, clock: Callable[[], float] = time.time) -> None:
        self.limit = limit
        self.window = window
        self.clock = clock
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()

    def allow(self, client_id: str) -> bool:
        now = self.clock()
        with self._lock:
            hits = self._hits[client_id]
            while hits and hits[0] <= now - self.window:
                hits.popleft()
            if len(hits) >= self.limit:
                return False
            hits.append(now)
            return True


def _client_id() -> str:
    forwarded = request.headers.get("X-Forwarded-For", "")
    return (forwarded or request.remote_addr or "unknown").split(",")[0].strip()


def install_rate_limiter(app: Flask, limit: int, window: float) -> Optional[SlidingWindowLimiter]:
    if limit <= 0 or window <= 0:
        return None
    limiter = SlidingWindowLimiter(limit, window)
    app.extensions["rate_limiter"] = limiter

    @app.before_request
    def _rate_limit():
        # CORS preflight is free
        if request.method == "OPTIONS" or limiter.allow(_client_id()):
            return None
        logger.warning("Rate limit exceeded for %s on %s", _client_id(), request.path)
        return _policy_violation("rate_limit", "rate_limited", "Too many requests. Please slow down.", 429)

    return limiter


def install_csp(app: Flask, policy: Optional[str]) -> None:
    if not policy:
        return

    @app.after_request
    def _content_security_policy(response):
        response.headers.setdefault("Content-Security-Policy", policy)
        return response


__all__ = [
    "SlidingWindowLimiter",
    "install_cors",
    "install_csp",
    "install_rate_limiter",
    "install_redirect_allowlist",
    "install_request_ids",
    "origin_of",
]
