"""
Error response helpers.

All error responses share one envelope:
    { "success": false, "error": "<message>", "code": "<code>", "details": {...} }
"""
from typing import Any
from pydantic import BaseModel, Field


class StandardErrorResponse(BaseModel):
    """Standard error response envelope."""
    success: bool = Field(False, description="Always false for errors")
    error: str = Field(..., description="Human-readable error message")
    code: str = Field(..., description="Error code (e.g., 'not_found', 'provider_error')")
    details: dict[str, Any] | None = Field(default=None, description="Additional error context")


# OpenAPI documentation for the envelope on every authenticated router
ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status: {"model": StandardErrorResponse} for status in (400, 401, 404, 409, 422, 500, 502)
}


def error_response(message: str, code: str, details: Any = None) -> dict[str, Any]:
    """
    Create a standardized error payload.

    Args:
        message: Human-readable message (always a string)
        code: Machine-readable error code
        details: Optional extra context; omitted when empty

    Returns:
        dict: { "success": false, "error": <message>, "code": <code> }
    """
    response = {"success": False, "error": message, "code": code}
    if details:
        response["details"] = details
    return response
