"""Utility modules."""

from app.utils.datetime_parsing import as_utc, utc_now
from app.utils.normalization import (
    normalize_email,
    normalize_name,
    normalize_phone,
)
from app.utils.pagination import (
    PaginationParams,
    get_pagination,
    paginate_query,
)

__all__ = [
    # Datetime
    "as_utc",
    "utc_now",
    # Normalization
    "normalize_email",
    "normalize_name",
    "normalize_phone",
    # Pagination
    "PaginationParams",
    "get_pagination",
    "paginate_query",
]
