"""Navigation, route gate and role dispatch.

The gate only checks *presence* of a credential, synchronously, before any
protected view is built.  Validity is decided afterwards by the session
resolver.  The dispatcher picks a console from the role resolved on this
mount; nothing is cached across navigations.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from ragconsole.credentials import CredentialStore
from ragconsole.models import User
from ragconsole.policy import HOME_PATH, LOGIN_PATH

logger = logging.getLogger(__name__)

VECTOR_PATH = "/vector"

_ORG_DETAIL_RE = re.compile(r"^/org/(?P<org_id>[^/]+)/?$")


class Navigator:
    """Current location plus history, the console's address bar."""

    def __init__(self, location: str = HOME_PATH) -> None:
        self.location = location
        self.history: List[str] = [location]

    def navigate(self, path: str, *, replace: bool = False) -> None:
        logger.debug("navigate %s -> %s%s", self.location, path, " (replace)" if replace else "")
        if replace and self.history:
            self.history[-1] = path
        else:
            self.history.append(path)
        self.location = path


class RouteGate:
    """Presence check on the credential; no network."""

    def __init__(self, credentials: CredentialStore) -> None:
        self._credentials = credentials

    def check(self) -> Optional[str]:
        """Return the login path when signed out, ``None`` to let the view mount."""
        if self._credentials.get() is None:
            return LOGIN_PATH
        return None


class View(str, Enum):
    ADMIN = "admin"
    TENANT = "tenant"


class RoleDispatcher:
    """Choose the console for a freshly resolved user."""

    @staticmethod
    def dispatch(user: User) -> View:
        return View.ADMIN if user.is_admin else View.TENANT


class RouteKind(str, Enum):
    LOGIN = "login"
    HOME = "home"
    ORG_DETAIL = "org_detail"
    VECTOR = "vector"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Route:
    kind: RouteKind
    org_id: Optional[str] = None

    @property
    def protected(self) -> bool:
        return self.kind in (RouteKind.HOME, RouteKind.ORG_DETAIL, RouteKind.VECTOR)


def match_route(path: str) -> Route:
    """Match a console path; unknown paths resolve to ``RouteKind.UNKNOWN``."""
    path = path.split("?", 1)[0] or HOME_PATH
    if path == LOGIN_PATH:
        return Route(RouteKind.LOGIN)
    if path == HOME_PATH:
        return Route(RouteKind.HOME)
    if path == VECTOR_PATH:
        return Route(RouteKind.VECTOR)
    m = _ORG_DETAIL_RE.match(path)
    if m:
        return Route(RouteKind.ORG_DETAIL, org_id=m.group("org_id"))
    return Route(RouteKind.UNKNOWN)


def org_detail_path(org_id: str) -> str:
    return f"/org/{org_id}"
