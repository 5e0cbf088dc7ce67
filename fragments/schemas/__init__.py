"""Pydantic schemas for API requests and responses."""

from fragments.schemas.common import (
    ErrorDetail,
    ErrorResponse,
    StatusResponse,
    create_error_response,
    create_success_response,
)
from fragments.schemas.fragments import (
    FragmentMetadata,
    FragmentResponse,
    ListFragmentsResponse,
)

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "StatusResponse",
    "create_error_response",
    "create_success_response",
    "FragmentMetadata",
    "FragmentResponse",
    "ListFragmentsResponse",
]
