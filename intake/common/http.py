"""HTTP client with retries, timeouts, and category-aware rate limiting."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from types import TracebackType
from typing import Any

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from intake.common.constants import USER_AGENT
from intake.common.errors import UpstreamError

RETRYABLE_STATUS_CODES = {408, 425, 429, 500, 502, 503, 504}
BODY_EXCERPT_CHARS = 500


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 10.0
    read: float = 10.0


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 3
    multiplier: float = 1.0
    max_wait: float = 10.0


class HttpRequestError(UpstreamError):
    error_code = "HTTP_ERROR"


class RetryableHttpError(HttpRequestError):
    pass


class TokenBucket:
    def __init__(self, rate_per_sec: float, capacity: float | None = None) -> None:
        self.rate_per_sec = rate_per_sec
        self.capacity = capacity if capacity is not None else rate_per_sec
        self.tokens = self.capacity
        self.updated_at = time.monotonic()
        self.lock = threading.Lock()

    def acquire(self, tokens: float = 1.0) -> None:
        while True:
            with self.lock:
                now = time.monotonic()
                elapsed = now - self.updated_at
                self.tokens = min(self.capacity, self.tokens + elapsed * self.rate_per_sec)
                self.updated_at = now
                if self.tokens >= tokens:
                    self.tokens -= tokens
                    return
                deficit = tokens - self.tokens
                wait_for = max(deficit / self.rate_per_sec, 0.01)
            time.sleep(wait_for)


class RateLimiter:
    """Named token buckets, one per call category, each enforcing a minimum interval."""

    def __init__(self, min_intervals: dict[str, float] | None = None) -> None:
        self.min_intervals = dict(min_intervals or {})
        self.buckets: dict[str, TokenBucket] = {}
        self.lock = threading.Lock()

    def acquire(self, category: str, tokens: float = 1.0) -> None:
        interval = self.min_intervals.get(category)
        if not interval:
            return
        with self.lock:
            bucket = self.buckets.get(category)
            if bucket is None:
                bucket = TokenBucket(rate_per_sec=1.0 / interval, capacity=1.0)
                self.buckets[category] = bucket
        bucket.acquire(tokens=tokens)


class HttpClient:
    def __init__(
        self,
        *,
        timeout: TimeoutConfig | None = None,
        retry: RetryConfig | None = None,
        limiter: RateLimiter | None = None,
    ) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.retry = retry or RetryConfig()
        self.limiter = limiter or RateLimiter()
        self.session = requests.Session()

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _headers(self, headers: dict[str, str] | None, accept: str = "application/json") -> dict[str, str]:
        out = {"User-Agent": USER_AGENT, "Accept": accept}
        if headers:
            out.update(headers)
        return out

    def _raise_for_status_or_retry(self, response: requests.Response) -> None:
        status = response.status_code
        if status in RETRYABLE_STATUS_CODES:
            raise RetryableHttpError(
                f"Retryable HTTP status: {status}",
                status=status,
                body=_body_excerpt(response),
            )
        if status >= 400:
            raise HttpRequestError(f"HTTP status: {status}", status=status, body=_body_excerpt(response))

    def _send(
        self,
        method: str,
        url: str,
        *,
        category: str,
        params: dict[str, Any] | None,
        data: dict[str, Any] | None,
        headers: dict[str, str],
        timeout: TimeoutConfig | None,
    ) -> requests.Response:
        req_timeout = timeout or self.timeout
        self.limiter.acquire(category)
        try:
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                data=data,
                headers=headers,
                timeout=(req_timeout.connect, req_timeout.read),
            )
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise RetryableHttpError(f"Network failure for {url}: {exc}") from exc
        except requests.RequestException as exc:
            raise HttpRequestError(f"Request failed for {url}: {exc}") from exc
        self._raise_for_status_or_retry(response)
        return response

    def _with_retry(self, func):
        return retry(
            stop=stop_after_attempt(self.retry.max_attempts),
            wait=wait_exponential_jitter(
                initial=self.retry.multiplier,
                max=self.retry.max_wait,
                jitter=1.0,
            ),
            retry=retry_if_exception_type(RetryableHttpError),
            reraise=True,
        )(func)

    def request_json(
        self,
        method: str,
        url: str,
        *,
        category: str,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> dict[str, Any]:
        def _wrapped() -> dict[str, Any]:
            response = self._send(
                method,
                url,
                category=category,
                params=params,
                data=data,
                headers=self._headers(headers),
                timeout=timeout,
            )
            try:
                return response.json()
            except ValueError as exc:
                raise HttpRequestError(f"Invalid JSON payload from {url}", status=response.status_code) from exc

        return self._with_retry(_wrapped)()

    def get_json(
        self,
        url: str,
        *,
        category: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> dict[str, Any]:
        return self.request_json(
            "GET",
            url,
            category=category,
            params=params,
            headers=headers,
            timeout=timeout,
        )

    def post_form_json(
        self,
        url: str,
        *,
        category: str,
        data: dict[str, Any],
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> dict[str, Any]:
        merged = {"Content-Type": "application/x-www-form-urlencoded"}
        if headers:
            merged.update(headers)
        return self.request_json(
            "POST",
            url,
            category=category,
            data=data,
            headers=merged,
            timeout=timeout,
        )

    def get_bytes(
        self,
        url: str,
        *,
        category: str,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> tuple[bytes, str | None]:
        def _wrapped() -> tuple[bytes, str | None]:
            response = self._send(
                "GET",
                url,
                category=category,
                params=None,
                data=None,
                headers=self._headers(headers, accept="*/*"),
                timeout=timeout,
            )
            content_type = response.headers.get("Content-Type")
            if content_type:
                content_type = content_type.split(";")[0].strip() or None
            return response.content, content_type

        return self._with_retry(_wrapped)()


def _body_excerpt(response: requests.Response) -> str | None:
    try:
        text = response.text
    except (AttributeError, ValueError):
        return None
    if text is None:
        return None
    return text[:BODY_EXCERPT_CHARS]
