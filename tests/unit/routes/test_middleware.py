import pytest

from src.interfaces.http.middleware import SlidingWindowLimiter, origin_of


class _Clock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.mark.unit
def test_limiter_blocks_after_limit_and_recovers_when_window_slides():
    clock = _Clock()
    limiter = SlidingWindowLimiter(limit=2, window=10, clock=clock)

    assert limiter.allow("1.2.3.4")
    clock.now += 4
    assert limiter.allow("1.2.3.4")
    assert not limiter.allow("1.2.3.4")

    # first hit ages out, second is still inside the window
    clock.now += 6
    assert limiter.allow("1.2.3.4")
    assert not limiter.allow("1.2.3.4")


@pytest.mark.unit
def test_limiter_tracks_clients_independently():
    limiter = SlidingWindowLimiter(limit=1, window=60, clock=_Clock())

    assert limiter.allow("a")
    assert limiter.allow("b")
    assert not limiter.allow("a")


@pytest.mark.unit
@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://app.example.com/after-login?x=1", "https://app.example.com"),
        ("http://localhost:3000/", "http://localhost:3000"),
        ("/relative/path", None),
        ("not a url", None),
    ],
)
def test_origin_of(url, expected):
    assert origin_of(url) == expected


@pytest.mark.unit
def test_request_id_generated_when_missing(client):
    resp = client.get("/ping")

    assert len(resp.headers["X-Request-ID"]) == 32
