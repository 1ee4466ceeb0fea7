"""Tests for the token bucket limiter and its middleware integration."""

from lockbox.core.config import settings
from lockbox.middleware.request_context import RateLimiter, rate_limiter


class TestRateLimiter:
    """Bucket arithmetic with an injected clock, no HTTP."""

    def test_allows_within_limit(self):
        decision = RateLimiter().hit("client-a", per_minute=60, now=0.0)
        assert decision.allowed is True
        assert decision.retry_after == 0.0

    def test_denies_after_exhaustion(self):
        limiter = RateLimiter()
        for _ in range(60):
            limiter.hit("client-a", per_minute=60, now=0.0)

        decision = limiter.hit("client-a", per_minute=60, now=0.0)
        assert decision.allowed is False
        assert decision.retry_after > 0

    def test_refills_over_time(self):
        limiter = RateLimiter()
        for _ in range(60):
            limiter.hit("client-a", per_minute=60, now=0.0)

        assert limiter.hit("client-a", per_minute=60, now=2.0).allowed is True

    def test_separate_keys_independent(self):
        limiter = RateLimiter()
        for _ in range(60):
            limiter.hit("client-a", per_minute=60, now=0.0)

        assert limiter.hit("client-b", per_minute=60, now=0.0).allowed is True

    def test_zero_limit_always_allows(self):
        assert RateLimiter().hit("any", per_minute=0, now=0.0).allowed is True

    def test_idle_buckets_are_swept(self):
        limiter = RateLimiter(sweep_every=2, max_idle=10.0)
        limiter.hit("old", per_minute=60, now=0.0)
        limiter.hit("new", per_minute=60, now=100.0)
        assert "old" not in limiter.buckets
        assert "new" in limiter.buckets

    def test_reset(self):
        limiter = RateLimiter()
        limiter.hit("client-a", per_minute=60, now=0.0)
        limiter.reset()
        assert limiter.buckets == {}


class TestRateLimitMiddleware:

    def test_returns_429_in_envelope(self, client, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_per_minute", 2)
        for _ in range(2):
            assert client.get("/gpgkeys.json").status_code == 401

        resp = client.get("/gpgkeys.json")
        assert resp.status_code == 429
        assert "retry-after" in resp.headers
        data = resp.json()
        assert data["header"]["status"] == "error"
        assert data["header"]["message"] == "Too many requests."
        assert data["body"]["retry_after"] > 0

    def test_health_probes_are_exempt(self, client, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_per_minute", 1)
        for _ in range(3):
            assert client.get("/health").status_code == 200
            assert client.get("/healthcheck/status.json").status_code == 200

    def test_forwarded_clients_have_their_own_bucket(self, client, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_per_minute", 1)
        client.get("/gpgkeys.json", headers={"X-Forwarded-For": "10.0.0.1"})
        assert client.get("/gpgkeys.json", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 429
        assert client.get("/gpgkeys.json", headers={"X-Forwarded-For": "10.0.0.2, 10.0.0.9"}).status_code == 401
        assert "10.0.0.2" in rate_limiter.buckets
