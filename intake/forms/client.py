"""Forms provider API client."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator

from intake.common.errors import UpstreamError
from intake.common.http import HttpClient, TimeoutConfig
from intake.forms.answers import Submission, decode_submission


@dataclass(frozen=True)
class Form:
    id: str
    title: str
    status: str | None
    created_at: str | None
    count: int
    url: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "status": self.status,
            "created_at": self.created_at,
            "count": self.count,
            "url": self.url,
        }


def _content(payload: dict, url: str) -> Any:
    if not isinstance(payload, dict) or "content" not in payload:
        raise UpstreamError(f"Unexpected payload shape from {url}")
    return payload["content"]


class FormsApiClient:
    def __init__(
        self,
        http_client: HttpClient,
        *,
        base_url: str,
        api_key: str,
        page_size: int = 1000,
        timeout: TimeoutConfig | None = None,
    ) -> None:
        self.http = http_client
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.page_size = page_size
        self.timeout = timeout or TimeoutConfig(connect=10, read=10)

    def _headers(self) -> dict[str, str]:
        return {"APIKEY": self.api_key}

    def list_forms(self, limit: int = 1000) -> list[Form]:
        url = f"{self.base_url}/forms"
        payload = self.http.get_json(
            url,
            category="forms",
            params={"limit": limit, "orderby": "created_at"},
            headers=self._headers(),
            timeout=self.timeout,
        )
        forms = []
        for item in _content(payload, url) or []:
            forms.append(
                Form(
                    id=str(item.get("id")),
                    title=item.get("title") or "",
                    status=item.get("status"),
                    created_at=item.get("created_at"),
                    count=int(item.get("count") or 0),
                    url=item.get("url"),
                )
            )
        return forms

    def iter_submissions(self, form_id: str, limit: int | None = None) -> Iterator[Submission]:
        """Yield submissions page by page until a short page or ``limit`` is reached."""
        url = f"{self.base_url}/forms/{form_id}/submissions"
        offset = 0
        yielded = 0
        while True:
            page_size = self.page_size if limit is None else min(self.page_size, limit - yielded)
            if page_size <= 0:
                return
            payload = self.http.get_json(
                url,
                category="submissions",
                params={"limit": page_size, "offset": offset},
                headers=self._headers(),
                timeout=self.timeout,
            )
            page = _content(payload, url) or []
            for raw in page:
                yield decode_submission(raw, form_id=form_id)
                yielded += 1
            if len(page) < page_size:
                return
            offset += len(page)

    def list_submissions(self, form_id: str, limit: int | None = None) -> list[Submission]:
        return list(self.iter_submissions(form_id, limit=limit))

    def get_questions(self, form_id: str) -> dict[str, dict]:
        url = f"{self.base_url}/forms/{form_id}/questions"
        payload = self.http.get_json(
            url,
            category="questions",
            headers=self._headers(),
            timeout=self.timeout,
        )
        content = _content(payload, url) or {}
        return {str(key): dict(value) for key, value in content.items()}

    def register_webhook(self, form_id: str, webhook_url: str) -> dict:
        url = f"{self.base_url}/forms/{form_id}/webhooks"
        payload = self.http.post_form_json(
            url,
            category="webhooks",
            data={"webhookURL": webhook_url},
            headers=self._headers(),
            timeout=self.timeout,
        )
        return _content(payload, url)

    def wait_between_forms(self) -> None:
        self.http.limiter.acquire("forms")
