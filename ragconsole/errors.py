"""Structured exceptions for the ragconsole client.

Every failure leaving the request gateway is an ``ApiError``.  Its ``kind``
is fixed by the subclass, so callers branch on ``err.kind`` and never on
the message text.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

FALLBACK_MESSAGE = "Request failed"


class ErrorKind(str, Enum):
    AUTHN = "authn"
    AUTHZ = "authz"
    VALIDATION = "validation"
    TRANSPORT = "transport"
    UNKNOWN = "unknown"


class ApiError(Exception):
    """Base exception for all backend errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(
        self,
        status_code: int,
        message: str,
        detail: Any = None,
        request_id: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.detail = detail
        self.request_id = request_id
        super().__init__(f"[{status_code}] {message}")


class AuthError(ApiError):
    """401 Unauthorized — missing, invalid or expired credential."""

    kind = ErrorKind.AUTHN


class ForbiddenError(ApiError):
    """403 Forbidden — valid credential, insufficient role or scope."""

    kind = ErrorKind.AUTHZ


class ValidationError(ApiError):
    """400/422 — request rejected as malformed."""

    kind = ErrorKind.VALIDATION


class NotFoundError(ApiError):
    """404 Not Found — org, upload or key missing."""

    kind = ErrorKind.VALIDATION


class QuotaExceededError(ApiError):
    """429 Too Many Requests."""

    kind = ErrorKind.VALIDATION


class ServerError(ApiError):
    """500+ — server-side error."""

    kind = ErrorKind.UNKNOWN


class TransportError(ApiError):
    """No response at all: connection refused, DNS failure, timeout."""

    kind = ErrorKind.TRANSPORT


def _detail_message(detail: Any) -> Optional[str]:
    if isinstance(detail, str):
        return detail or None
    # FastAPI request validation: [{"loc": [...], "msg": "...", ...}, ...]
    if isinstance(detail, list):
        msgs = [d.get("msg") for d in detail if isinstance(d, dict) and d.get("msg")]
        if msgs:
            return "; ".join(str(m) for m in msgs)
    if detail is not None:
        return str(detail)
    return None


def error_from_response(
    status_code: int,
    body: Any,
    reason_phrase: Optional[str] = None,
    request_id: Optional[str] = None,
) -> ApiError:
    """Build the normalized error for a failed HTTP response.

    Message priority: body ``detail``, then status text, then the fixed
    fallback.
    """
    detail = body.get("detail") if isinstance(body, dict) else None
    message = _detail_message(detail) or reason_phrase or FALLBACK_MESSAGE

    if status_code == 401:
        return AuthError(status_code, message, body, request_id)
    if status_code == 403:
        return ForbiddenError(status_code, message, body, request_id)
    if status_code == 404:
        return NotFoundError(status_code, message, body, request_id)
    if status_code == 429:
        return QuotaExceededError(status_code, message, body, request_id)
    if status_code >= 500:
        return ServerError(status_code, message, body, request_id)
    if 400 <= status_code < 500:
        return ValidationError(status_code, message, body, request_id)
    return ApiError(status_code, message, body, request_id)


def error_from_transport(exc: BaseException, request_id: Optional[str] = None) -> TransportError:
    """Build the normalized error for a request that never got a response."""
    message = str(exc) or FALLBACK_MESSAGE
    return TransportError(0, message, None, request_id)
