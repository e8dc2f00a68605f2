"""Service layer modules."""

# Import service modules (not individual functions) for cleaner access
from app.services import form_schema_service
from app.services import field_contracts
from app.services import submission_codec
from app.services import response_aggregator
from app.services import form_service
from app.services import form_submission_service
from app.services import upload_service

__all__ = [
    "form_schema_service",
    "field_contracts",
    "submission_codec",
    "response_aggregator",
    "form_service",
    "form_submission_service",
    "upload_service",
]
