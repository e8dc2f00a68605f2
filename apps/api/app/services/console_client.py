"""Async HTTP client used by console tooling against the recruitment API.

Reads (forms, submissions, analytics) are retryable and supersedable: each
logical channel keeps one live ``CancellationToken`` and starting a newer fetch
cancels the older one, whose result is then dropped. Submissions and uploads
are sent exactly once.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

import httpx

from app.core.config import settings
from app.services.http_service import request_with_retries

logger = logging.getLogger(__name__)


CSRF_HEADER = {"X-Requested-With": "XMLHttpRequest"}


class CancellationToken:
    """Advisory cancel flag for one in-flight fetch."""

    def __init__(self, channel: str):
        self.channel = channel
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ServerError(Exception):
    """API call failed after any retries it was allowed."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")

    @property
    def retryable(self) -> bool:
        return self.status_code >= 500


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, str):
        return detail
    if isinstance(detail, dict) and isinstance(detail.get("message"), str):
        return detail["message"]
    return response.reason_phrase


class ConsoleClient:
    def __init__(
        self,
        base_url: str | None = None,
        session_token: str | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        max_retries: int | None = None,
        retry_base_delay: float | None = None,
        timeout: float | None = None,
    ):
        headers = {"Authorization": f"Bearer {session_token}"} if session_token else {}
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.API_BASE_URL,
            headers=headers,
            transport=transport,
            timeout=timeout if timeout is not None else settings.CLIENT_TIMEOUT_SECONDS,
        )
        self.max_retries = settings.CLIENT_MAX_RETRIES if max_retries is None else max_retries
        self.retry_base_delay = (
            settings.CLIENT_RETRY_BASE_DELAY if retry_base_delay is None else retry_base_delay
        )
        self._tokens: dict[str, CancellationToken] = {}

    async def __aenter__(self) -> "ConsoleClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        for token in self._tokens.values():
            token.cancel()
        self._tokens.clear()
        await self._client.aclose()

    # -------------------------------------------------------------------------
    # Supersession
    # -------------------------------------------------------------------------

    def begin(self, channel: str) -> CancellationToken:
        """Start a fetch on ``channel``, cancelling whatever was in flight there."""
        previous = self._tokens.get(channel)
        if previous is not None:
            previous.cancel()
        token = CancellationToken(channel)
        self._tokens[channel] = token
        return token

    def cancel(self, channel: str) -> None:
        token = self._tokens.pop(channel, None)
        if token is not None:
            token.cancel()

    def _finish(self, token: CancellationToken) -> None:
        if self._tokens.get(token.channel) is token:
            del self._tokens[token.channel]

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    @staticmethod
    def _parse(response: httpx.Response) -> Any | None:
        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise ServerError(response.status_code, _error_message(response))
        if response.headers.get("content-type", "").startswith("application/json"):
            return response.json()
        return response.text

    async def _read(self, channel: str, path: str, params: dict[str, Any] | None = None) -> Any | None:
        token = self.begin(channel)
        clean_params = {k: v for k, v in (params or {}).items() if v is not None}
        try:
            response = await request_with_retries(
                lambda: self._client.get(path, params=clean_params),
                max_retries=self.max_retries,
                base_delay=self.retry_base_delay,
            )
            if token.cancelled:
                logger.debug("Dropping superseded %s fetch", channel)
                return None
            return self._parse(response)
        except (ServerError, httpx.RequestError):
            if token.cancelled:
                logger.debug("Dropping failed superseded %s fetch", channel)
                return None
            raise
        finally:
            self._finish(token)

    # -------------------------------------------------------------------------
    # Reads (retryable, supersedable)
    # -------------------------------------------------------------------------

    async def fetch_forms(
        self,
        *,
        search: str | None = None,
        role: str | None = None,
        is_active: bool | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> dict[str, Any] | None:
        return await self._read(
            "forms",
            "/admin/recruitment-forms",
            {
                "search": search,
                "role": role,
                "is_active": None if is_active is None else str(is_active).lower(),
                "page": page,
                "per_page": per_page,
            },
        )

    async def fetch_form(self, form_id: uuid.UUID | str) -> dict[str, Any] | None:
        return await self._read("form", f"/admin/recruitment-forms/{form_id}")

    async def fetch_submissions(
        self,
        form_id: uuid.UUID | str | None = None,
        *,
        status: str | None = None,
        search: str | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> dict[str, Any] | None:
        return await self._read(
            "submissions",
            "/admin/recruitment-responses",
            {
                "form_id": str(form_id) if form_id else None,
                "status": status,
                "search": search,
                "page": page,
                "per_page": per_page,
            },
        )

    async def fetch_analytics(self, form_id: uuid.UUID | str) -> dict[str, Any] | None:
        return await self._read("analytics", f"/admin/recruitment-forms/{form_id}/analytics")

    # -------------------------------------------------------------------------
    # Writes (never retried)
    # -------------------------------------------------------------------------

    async def submit(
        self,
        form_id: uuid.UUID | str,
        *,
        applicant_name: str,
        applicant_email: str,
        answers: list[dict[str, str]],
        applicant_phone: str | None = None,
    ) -> dict[str, Any] | None:
        """Create a submission. One attempt only, so a retry can never duplicate it."""
        response = await self._client.post(
            f"/recruitment/{form_id}/submit",
            json={
                "applicant_name": applicant_name,
                "applicant_email": applicant_email,
                "applicant_phone": applicant_phone,
                "answers": answers,
            },
        )
        return self._parse(response)

    async def upload(
        self,
        form_id: uuid.UUID | str,
        field_id: str,
        *,
        filename: str,
        content: bytes,
        content_type: str,
    ) -> dict[str, Any] | None:
        response = await self._client.post(
            f"/recruitment/{form_id}/uploads",
            data={"field_id": field_id},
            files={"file": (filename, content, content_type)},
        )
        return self._parse(response)

    async def update_status(
        self,
        submission_id: uuid.UUID | str,
        status: str,
        review_notes: str | None = None,
    ) -> dict[str, Any] | None:
        response = await self._client.put(
            f"/admin/recruitment-responses/{submission_id}",
            json={"status": status, "review_notes": review_notes},
            headers=CSRF_HEADER,
        )
        return self._parse(response)
