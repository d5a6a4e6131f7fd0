from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Error payload of the operator endpoints, returned under `detail`:
    {
        "error": "invalid_profile_id",
        "message": "Profile id must have the form provider:name, got 'work'",
        "code": 400,
        "details": {"profileId": "work"}
    }
    """

    error: str = Field(..., description="Machine-readable error type")
    message: str = Field(..., description="Human-readable error message")
    code: int = Field(..., description="HTTP status code for this error")
    details: Optional[Dict[str, Any]] = Field(
        default=None, description="Optional structured error details"
    )


def http_error(
    status_code: int,
    *,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> HTTPException:
    payload = ErrorResponse(
        error=error,
        message=message,
        code=status_code,
        details=details,
    )
    return HTTPException(status_code=status_code, detail=payload.model_dump())


def provider_not_found(name: str) -> HTTPException:
    return http_error(
        status.HTTP_404_NOT_FOUND,
        error="provider_not_found",
        message=f"Provider not found: {name}",
        details={"provider": name},
    )


def profile_not_found(profile_id: str) -> HTTPException:
    return http_error(
        status.HTTP_404_NOT_FOUND,
        error="profile_not_found",
        message=f"Profile not found: {profile_id}",
        details={"profileId": profile_id},
    )


def invalid_profile_id(profile_id: str, reason: str) -> HTTPException:
    """
    `reason` is the InvalidProfileId message from the profile store.
    """
    return http_error(
        status.HTTP_400_BAD_REQUEST,
        error="invalid_profile_id",
        message=reason,
        details={"profileId": profile_id},
    )


__all__ = [
    "ErrorResponse",
    "http_error",
    "invalid_profile_id",
    "profile_not_found",
    "provider_not_found",
]
