"""Standard error response models for API documentation.

These appear in the OpenAPI docs; the handlers in api.error_handlers
produce bodies of exactly this shape.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Individual error detail for validation errors."""

    field: str = Field(description="Field that caused the error")
    message: str = Field(description="Error message")
    type: str = Field(description="Error type code")


class ErrorContent(BaseModel):
    """Error information container."""

    code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error message")
    details: Optional[dict[str, Any]] = Field(
        default=None,
        description="Additional error context",
    )


class ErrorResponse(BaseModel):
    """Standard error response format.

    Example:
        {
            "error": {
                "code": "NOT_FOUND",
                "message": "Generation not found"
            }
        }
    """

    error: ErrorContent = Field(description="Error information")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"error": {"code": "NOT_FOUND", "message": "Resource not found"}},
                {
                    "error": {
                        "code": "VALIDATION_ERROR",
                        "message": "Request validation failed",
                        "details": {
                            "errors": [
                                {
                                    "field": "body.formality",
                                    "message": "Input should be less than or equal to 5",
                                    "type": "less_than_equal",
                                }
                            ]
                        },
                    }
                },
            ]
        }
    }


# Documented on every authenticated router
COMMON_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Validation failed"},
    401: {"model": ErrorResponse, "description": "Authentication required"},
    404: {"model": ErrorResponse, "description": "Not found"},
}
