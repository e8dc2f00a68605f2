"""API routers."""

from app.routers.forms import router as forms_router
from app.routers.forms_public import router as forms_public_router
from app.routers.recruitment_responses import router as recruitment_responses_router
from app.routers.uploads import router as uploads_router

__all__ = [
    "forms_router",
    "forms_public_router",
    "recruitment_responses_router",
    "uploads_router",
]
