"""ragconsole — session-aware client and console for the document QA service."""

__version__ = "1.0.0"

from ragconsole.async_client import AsyncRagClient  # noqa: E402
from ragconsole.credentials import CredentialStore, LocalStorage  # noqa: E402
from ragconsole.errors import (  # noqa: E402
    ApiError,
    AuthError,
    ErrorKind,
    ForbiddenError,
    NotFoundError,
    QuotaExceededError,
    ServerError,
    TransportError,
    ValidationError,
)

__all__ = [
    "AsyncRagClient",
    "CredentialStore",
    "LocalStorage",
    "ApiError",
    "AuthError",
    "ErrorKind",
    "ForbiddenError",
    "NotFoundError",
    "QuotaExceededError",
    "ServerError",
    "TransportError",
    "ValidationError",
]
