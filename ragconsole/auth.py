"""Bearer header handling for the ragconsole client."""

from __future__ import annotations

from typing import Dict, Optional


def build_auth_headers(token: Optional[str] = None) -> Dict[str, str]:
    """Return an Authorization header dict if a credential is available.

    Returns an empty dict when no credential is stored, so the request goes
    out unauthenticated.
    """
    if token:
        return {"Authorization": f"Bearer {token}"}
    return {}
