"""Utilities: request-ID helpers, safe logging."""

from __future__ import annotations

import re
import uuid

REDACTED = "***REDACTED***"

_BEARER_RE = re.compile(r"(Bearer\s+)\S+", re.IGNORECASE)


def generate_request_id() -> str:
    """Generate a short UUID4 hex string for X-Request-ID."""
    return uuid.uuid4().hex[:12]


def redact_text(text: str) -> str:
    """Replace bearer tokens in a text string."""
    if not text:
        return text
    return _BEARER_RE.sub(r"\1" + REDACTED, text)
