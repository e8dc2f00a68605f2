"""Local-disk upload collaborator for recruitment file fields.

``store_upload`` returns ``{file_path, url}``; the submission only ever keeps
the url as an opaque string answer.
"""

import hashlib
import logging
import os
import re
import uuid
from typing import BinaryIO

from app.core.config import settings
from app.core.structured_logging import build_log_context

logger = logging.getLogger(__name__)


ALLOWED_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp", "pdf", "doc", "docx"}
ALLOWED_MIME_TYPES = {
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}
UPLOAD_URL_PREFIX = "/uploads/recruitment"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_SAFE_SEGMENT = re.compile(r"^[A-Za-z0-9_-]{1,100}$")
_UNSAFE_SEGMENT_CHARS = re.compile(r"[^A-Za-z0-9_-]+")


class UploadRejectedError(ValueError):
    """File failed the upload checks."""


# =============================================================================
# Storage
# =============================================================================


def _get_local_storage_path() -> str:
    """Get local storage directory path."""
    path = settings.LOCAL_STORAGE_PATH
    os.makedirs(path, exist_ok=True)
    return path


def _safe_filename(filename: str) -> str:
    base = os.path.basename(filename)
    cleaned = _UNSAFE_FILENAME_CHARS.sub("_", base).strip("._")
    return cleaned or "upload"


def _field_segment(field_id: str) -> str:
    """Directory name for a field; ids with other characters get a slug plus hash."""
    if _SAFE_SEGMENT.match(field_id):
        return field_id
    slug = _UNSAFE_SEGMENT_CHARS.sub("_", field_id).strip("_")[:80] or "field"
    digest = hashlib.sha256(field_id.encode("utf-8")).hexdigest()[:12]
    return f"{slug}-{digest}"


def validate_upload(filename: str, content_type: str, file_size: int) -> None:
    """Check extension, MIME type and size; raise UploadRejectedError on failure."""
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if ext not in ALLOWED_EXTENSIONS:
        raise UploadRejectedError(f"File extension '.{ext}' not allowed")
    if content_type not in ALLOWED_MIME_TYPES:
        raise UploadRejectedError(f"Content type '{content_type}' not allowed")
    if file_size > settings.MAX_UPLOAD_SIZE_BYTES:
        max_mb = settings.MAX_UPLOAD_SIZE_BYTES / (1024 * 1024)
        raise UploadRejectedError(f"File size exceeds {max_mb:.0f} MB limit")


def store_upload(
    file: BinaryIO,
    *,
    filename: str,
    content_type: str,
    file_size: int,
    form_id: uuid.UUID,
    field_id: str,
) -> dict[str, str]:
    """
    Save an applicant's file under ``<storage>/<form_id>/<field segment>/``.

    Returns:
        {"file_path": storage key relative to the storage root, "url": public url}
    """
    if not field_id:
        raise UploadRejectedError("Field ID is required")
    validate_upload(filename, content_type, file_size)

    storage_key = f"{form_id}/{_field_segment(field_id)}/{uuid.uuid4().hex}_{_safe_filename(filename)}"
    path = os.path.join(_get_local_storage_path(), storage_key)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        file.seek(0)
        for chunk in iter(lambda: file.read(8192), b""):
            f.write(chunk)

    url = f"{settings.PUBLIC_BASE_URL.rstrip('/')}{UPLOAD_URL_PREFIX}/{storage_key}"
    logger.info(
        "Recruitment upload stored",
        extra=build_log_context(form_id=str(form_id), field_id=field_id),
    )
    return {"file_path": storage_key, "url": url}


def resolve_upload_path(storage_key: str) -> str | None:
    """Absolute path of a stored upload, or None when the key is unknown or escapes storage."""
    root = os.path.realpath(_get_local_storage_path())
    path = os.path.realpath(os.path.join(root, storage_key))
    if os.path.commonpath([root, path]) != root or path == root:
        return None
    if not os.path.isfile(path):
        return None
    return path
