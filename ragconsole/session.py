"""Session resolution: who is the caller, right now?

Runs once per protected mount.  The outcome is either ``Authenticated``
(carrying the freshly resolved user) or ``Unauthenticated``.  Both are
terminal for that mount.

Fail-closed: any failure of the identity call, including a transport error
with no response at all, clears the stored credential.  An ambiguous
session is never treated as signed in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from ragconsole.async_client import AsyncRagClient
from ragconsole.errors import ApiError
from ragconsole.models import User

logger = logging.getLogger(__name__)

NO_CREDENTIAL = "no_credential"
REJECTED = "rejected"


@dataclass(frozen=True)
class Authenticated:
    user: User


@dataclass(frozen=True)
class Unauthenticated:
    reason: str
    error: Optional[ApiError] = None


SessionOutcome = Union[Authenticated, Unauthenticated]


async def resolve_session(client: AsyncRagClient) -> SessionOutcome:
    """Resolve the session behind the client's stored credential."""
    if client.credentials.get() is None:
        return Unauthenticated(NO_CREDENTIAL)
    try:
        user = await client.me()
    except ApiError as e:
        logger.info("Identity check failed (%s, status %d); signing out", e.kind.value, e.status_code)
        client.credentials.clear()
        return Unauthenticated(REJECTED, e)
    return Authenticated(user)
