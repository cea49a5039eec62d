"""Tests for the fixed-window rate limiter."""

import asyncio

import pytest
from fastapi import HTTPException
from starlette.requests import Request

from podbook import rate_limiter


class FakePipeline:
    def __init__(self, counts: dict) -> None:
        self.counts = counts
        self.key = None

    def incr(self, key):
        self.key = key

    def expire(self, key, seconds):
        pass

    def execute(self):
        self.counts[self.key] = self.counts.get(self.key, 0) + 1
        return [self.counts[self.key], True]


class FakeRedis:
    def __init__(self) -> None:
        self.counts = {}

    def pipeline(self):
        return FakePipeline(self.counts)


def _request(ip: str = "203.0.113.7", forwarded: str = None) -> Request:
    headers = [(b"x-forwarded-for", forwarded.encode())] if forwarded else []
    return Request({"type": "http", "headers": headers, "client": (ip, 1234), "method": "GET", "path": "/"})


class TestRateLimiter:
    """Tests for rate limiting."""

    def test_counts_within_window(self) -> None:
        """Requests beyond the limit in one window are refused."""
        client = FakeRedis()
        results = [rate_limiter.check_rate_limit("k", 2, 60, client)[0] for _ in range(3)]
        assert results == [True, True, False]

    def test_client_ip_prefers_forwarded_header(self) -> None:
        """The first forwarded address is the client."""
        assert rate_limiter.client_ip(_request(forwarded="198.51.100.1, 10.0.0.1")) == "198.51.100.1"
        assert rate_limiter.client_ip(_request()) == "203.0.113.7"

    def test_over_limit_is_429(self, monkeypatch) -> None:
        """Exceeding the limit answers 429 with Retry-After."""
        client = FakeRedis()
        monkeypatch.setattr(rate_limiter, "get_redis_client", lambda: client)
        limiter = rate_limiter.create_rate_limiter(limit=1, window_seconds=60, key_prefix="test")

        asyncio.run(limiter(_request()))
        with pytest.raises(HTTPException) as exc_info:
            asyncio.run(limiter(_request()))
        assert exc_info.value.status_code == 429
        assert "Retry-After" in exc_info.value.headers

    def test_redis_outage_fails_closed(self, monkeypatch) -> None:
        """Without Redis the limiter refuses with 503."""

        def broken():
            raise ConnectionError("redis down")

        monkeypatch.setattr(rate_limiter, "get_redis_client", broken)
        limiter = rate_limiter.create_rate_limiter(limit=10, window_seconds=60)
        with pytest.raises(HTTPException) as exc_info:
            asyncio.run(limiter(_request()))
        assert exc_info.value.status_code == 503
