"""Console download of applicant uploads kept on local storage."""

import logging
import os

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from app.core.deps import require_console_user
from app.core.structured_logging import build_log_context
from app.schemas.auth import UserSession
from app.services import upload_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix=upload_service.UPLOAD_URL_PREFIX, tags=["recruitment-uploads"])


@router.get("/{storage_key:path}")
def download_upload(
    storage_key: str,
    session: UserSession = Depends(require_console_user),
):
    """Serve a stored answer file to console users."""
    path = upload_service.resolve_upload_path(storage_key)
    if path is None:
        raise HTTPException(status_code=404, detail="File not found")

    logger.debug(
        "Recruitment upload downloaded",
        extra=build_log_context(user_id=str(session.user_id)),
    )
    # Stored names carry a hex prefix: "<hex>_<original name>"
    filename = os.path.basename(path).split("_", 1)[-1]
    return FileResponse(path, filename=filename)
