from __future__ import annotations

import pytest
import requests

from intake.common.http import HttpClient, HttpRequestError, RateLimiter, RetryConfig, RetryableHttpError
from tests.fixtures.fakes import FakeResponse


def test_http_get_json_success(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))

    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(200, {"ok": True}))
    payload = client.get_json("https://example.com", category="forms")

    assert payload == {"ok": True}


def test_http_retryable_status_raises_retryable_error(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(503, {"x": 1}))

    with pytest.raises(RetryableHttpError):
        client.get_json("https://example.com", category="forms")


def test_http_client_error_is_not_retried(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=3, multiplier=0, max_wait=0))
    calls = []

    def fake_request(**kwargs):
        calls.append(kwargs)
        return FakeResponse(401, {"message": "bad key"})

    monkeypatch.setattr(client.session, "request", fake_request)

    with pytest.raises(HttpRequestError) as excinfo:
        client.get_json("https://example.com", category="forms")
    assert not isinstance(excinfo.value, RetryableHttpError)
    assert excinfo.value.status == 401
    assert len(calls) == 1


def test_http_retries_then_succeeds(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=3, multiplier=0, max_wait=0))
    responses = [FakeResponse(429), FakeResponse(200, {"content": []})]
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: responses.pop(0))

    assert client.get_json("https://example.com", category="submissions") == {"content": []}


def test_http_network_failure_is_retryable(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))

    def boom(**_kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(client.session, "request", boom)

    with pytest.raises(RetryableHttpError):
        client.get_json("https://example.com", category="forms")


def test_http_invalid_json_raises(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(200, raises_json=True))

    with pytest.raises(HttpRequestError):
        client.get_json("https://example.com", category="forms")


def test_http_get_bytes_returns_content_and_type(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    response = FakeResponse(200, content=b"%PDF", headers={"Content-Type": "application/pdf; charset=binary"})
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: response)

    assert client.get_bytes("https://files.example/a.pdf", category="downloads") == (b"%PDF", "application/pdf")


def test_http_post_form_sends_urlencoded_body(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    seen = {}

    def fake_request(**kwargs):
        seen.update(kwargs)
        return FakeResponse(200, {"content": {"1": "https://hook"}})

    monkeypatch.setattr(client.session, "request", fake_request)
    client.post_form_json("https://example.com/hooks", category="webhooks", data={"webhookURL": "https://hook"})

    assert seen["method"] == "POST"
    assert seen["data"] == {"webhookURL": "https://hook"}
    assert seen["headers"]["Content-Type"] == "application/x-www-form-urlencoded"


def test_rate_limiter_ignores_unlimited_categories():
    limiter = RateLimiter({"forms": 0.5, "downloads": 0.0})
    limiter.acquire("downloads")
    limiter.acquire("unknown")
    assert limiter.buckets == {}


def test_rate_limiter_spaces_calls_in_one_category(monkeypatch):
    now = [100.0]
    sleeps = []

    def fake_sleep(seconds):
        sleeps.append(seconds)
        now[0] += seconds

    monkeypatch.setattr("intake.common.http.time.monotonic", lambda: now[0])
    monkeypatch.setattr("intake.common.http.time.sleep", fake_sleep)

    limiter = RateLimiter({"forms": 0.5})
    limiter.acquire("forms")
    limiter.acquire("forms")

    assert sleeps == [pytest.approx(0.5)]
