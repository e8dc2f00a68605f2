"""Structured logging helpers (PII-safe)."""

import logging
from typing import Any

from app.core.config import settings


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger once for the API process and the CLI."""
    resolved = (level or settings.LOG_LEVEL or "INFO").upper()
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger().setLevel(resolved)


def build_log_context(
    *,
    user_id: str | None = None,
    form_id: str | None = None,
    submission_id: str | None = None,
    field_id: str | None = None,
    request_id: str | None = None,
    route: str | None = None,
    method: str | None = None,
) -> dict[str, Any]:
    """Return a PII-safe log context dict.

    Only identifiers go in here. Applicant names, emails and answers never do.
    """
    context: dict[str, Any] = {}
    if user_id:
        context["user_id"] = user_id
    if form_id:
        context["form_id"] = form_id
    if submission_id:
        context["submission_id"] = submission_id
    if field_id:
        context["field_id"] = field_id
    if request_id:
        context["request_id"] = request_id
    if route:
        context["route"] = route
    if method:
        context["method"] = method
    return context
