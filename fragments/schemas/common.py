"""Common schemas used across multiple endpoints."""

from pydantic import BaseModel


class ErrorDetail(BaseModel):
    """Error code and message."""
    code: int
    message: str


class ErrorResponse(BaseModel):
    """Response model for errors."""
    status: str = "error"
    error: ErrorDetail


class StatusResponse(BaseModel):
    """Response model for operations with no body beyond the status."""
    status: str = "ok"


def create_success_response(**data) -> dict:
    """
    Build a success envelope.

    Returns:
        {"status": "ok", **data}
    """
    return {"status": "ok", **data}


def create_error_response(code: int, message: str) -> dict:
    """
    Build an error envelope.

    Returns:
        {"status": "error", "error": {"code": code, "message": message}}
    """
    return ErrorResponse(error=ErrorDetail(code=code, message=message)).model_dump()
