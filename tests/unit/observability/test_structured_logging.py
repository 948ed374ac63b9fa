import json
import logging

import pytest

from src.observability.logging import JsonFormatter, RequestContextFilter, scrub_secrets


@pytest.mark.unit
@pytest.mark.parametrize(
    "raw, leaked",
    [
        ("Authorization: Bearer abc.def-123", "abc.def-123"),
        ("{'access_token': 'tok-1', 'expires_in': 3600}", "tok-1"),
        ("refresh_token=r-2&grant_type=refresh_token", "r-2"),
        ("GET /auth/callback?code=secret-code&state=x", "secret-code"),
    ],
)
def test_scrub_secrets_redacts_tokens(raw, leaked):
    cleaned = scrub_secrets(raw)
    assert leaked not in cleaned
    assert "[redacted]" in cleaned


@pytest.mark.unit
def test_scrub_secrets_leaves_plain_text():
    assert scrub_secrets("Candidate pool size: 42") == "Candidate pool size: 42"


@pytest.mark.unit
def test_json_formatter_includes_request_context(app):
    record = logging.LogRecord("moodmix.test", logging.INFO, __file__, 1, "token refresh for %s", ("u1",), None)
    with app.test_request_context("/api/playlists/generate", method="POST", headers={"X-Request-ID": "rid-1"}):
        from flask import g

        g.request_id = "rid-1"
        RequestContextFilter().filter(record)

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "token refresh for u1"
    assert payload["request_id"] == "rid-1"
    assert payload["path"] == "/api/playlists/generate"
    assert payload["method"] == "POST"
    assert payload["user_id"] is None


@pytest.mark.unit
def test_filter_outside_request_sets_empty_context():
    record = logging.LogRecord("moodmix.test", logging.INFO, __file__, 1, "boot", (), None)

    assert RequestContextFilter().filter(record) is True
    assert record.request_id is None
    assert record.path is None
