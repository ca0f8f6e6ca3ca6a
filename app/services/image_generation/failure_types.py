"""
Failure normalization for the generate-image endpoint.
Maps every error the handler can see onto (failure type, error, details, status).
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any

from app.services.image_generation.base import (
    ConfigError,
    EmptyResultError,
    InputError,
    RemoteError,
)


AUTH_FAILED_MESSAGE = "Authentication failed"
AUTH_FAILED_DETAILS = (
    "Your FAL_KEY may be invalid or expired. Please check your API key configuration."
)
UNKNOWN_ERROR_MESSAGE = "Unknown error occurred"


class FailureType(str, Enum):
    """Closed set of failure kinds; value doubles as the metrics label."""

    INPUT = "input"
    CONFIG = "config"
    AUTH = "auth"
    REMOTE = "remote"
    EMPTY_RESULT = "empty_result"
    UNKNOWN = "unknown"


@dataclass
class FailureInfo:
    failure_type: FailureType
    error: str
    details: str
    status_code: int

    def to_dict(self) -> dict[str, str]:
        return {"error": self.error, "details": self.details}


def _detail_text(detail: Any) -> str:
    """Provider detail may be a string, a list of validation errors or a dict."""
    if detail is None or detail == "":
        return ""
    if isinstance(detail, str):
        return detail
    if isinstance(detail, list):
        parts = []
        for item in detail:
            if isinstance(item, dict) and item.get("msg"):
                parts.append(str(item["msg"]))
            else:
                parts.append(str(item))
        return "; ".join(parts)
    if isinstance(detail, dict) and detail.get("detail"):
        return _detail_text(detail["detail"])
    return str(detail)


def classify_failure(exc: BaseException) -> FailureInfo:
    """Classify an exception caught at the handler boundary."""
    if isinstance(exc, InputError):
        return FailureInfo(FailureType.INPUT, exc.message, exc.details, exc.status_code)

    if isinstance(exc, ConfigError):
        return FailureInfo(FailureType.CONFIG, exc.message, exc.details, exc.status_code)

    if isinstance(exc, EmptyResultError):
        return FailureInfo(FailureType.EMPTY_RESULT, exc.message, exc.details or exc.message, 500)

    if isinstance(exc, RemoteError):
        detail = _detail_text(exc.detail)
        if exc.status == 401:
            details = AUTH_FAILED_DETAILS
            if detail:
                details += f" Details: {detail}"
            return FailureInfo(FailureType.AUTH, AUTH_FAILED_MESSAGE, details, 500)
        return FailureInfo(FailureType.REMOTE, exc.message, detail or str(exc), 500)

    message = str(exc)
    if message:
        return FailureInfo(FailureType.UNKNOWN, message, f"{type(exc).__name__}: {message}", 500)
    return FailureInfo(FailureType.UNKNOWN, UNKNOWN_ERROR_MESSAGE, repr(exc), 500)
