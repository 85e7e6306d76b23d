"""ConsoleApp — mounts a path through gate, session, dispatch and console.

Flow for a protected path::

    RouteGate (credential present?)  -> no:  /login
    resolve_session (GET /auth/me)   -> no:  credential cleared, /login
    RoleDispatcher / route match     -> console
    console.mount() (its own batch)  -> may redirect again

Redirects are followed until a view stays put.
"""

from __future__ import annotations

import logging
from typing import Optional

from ragconsole.async_client import AsyncRagClient
from ragconsole.consoles import (
    AdminConsole,
    Console,
    LoginView,
    OrgDetailConsole,
    TenantConsole,
    VectorStoreConsole,
)
from ragconsole.policy import HOME_PATH, LOGIN_PATH
from ragconsole.routing import Navigator, RoleDispatcher, RouteGate, RouteKind, View, match_route
from ragconsole.session import Authenticated, resolve_session

logger = logging.getLogger(__name__)

MAX_REDIRECTS = 8


class RedirectLoopError(RuntimeError):
    """Navigation kept redirecting without settling on a view."""


class ConsoleApp:
    def __init__(self, client: AsyncRagClient, navigator: Optional[Navigator] = None) -> None:
        self._client = client
        self.navigator = navigator or Navigator()
        self._gate = RouteGate(client.credentials)
        self.current: Optional[Console] = None

    @property
    def client(self) -> AsyncRagClient:
        return self._client

    async def open(self, path: Optional[str] = None) -> Console:
        """Navigate to ``path`` (or the current location) and mount its view."""
        if path is not None and path != self.navigator.location:
            self.navigator.navigate(path)
        for _ in range(MAX_REDIRECTS):
            location = self.navigator.location
            view = await self._mount(location)
            if view is not None and self.navigator.location == location:
                return view
        raise RedirectLoopError(f"Too many redirects, last location {self.navigator.location}")

    async def _mount(self, location: str) -> Optional[Console]:
        if self.current is not None:
            self.current.unmount()
            self.current = None

        route = match_route(location)
        if route.kind is RouteKind.UNKNOWN:
            self.navigator.navigate(HOME_PATH, replace=True)
            return None
        if route.kind is RouteKind.LOGIN:
            return await self._show(LoginView(self._client, self.navigator))

        redirect = self._gate.check()
        if redirect is not None:
            self.navigator.navigate(redirect, replace=True)
            return None

        outcome = await resolve_session(self._client)
        if not isinstance(outcome, Authenticated):
            self.navigator.navigate(LOGIN_PATH, replace=True)
            return None
        user = outcome.user

        if route.kind is RouteKind.ORG_DETAIL:
            view: Console = OrgDetailConsole(self._client, self.navigator, org_id=route.org_id)
        elif route.kind is RouteKind.VECTOR:
            view = VectorStoreConsole(self._client, self.navigator, user=user)
        elif RoleDispatcher.dispatch(user) is View.ADMIN:
            view = AdminConsole(self._client, self.navigator)
        else:
            view = TenantConsole(self._client, self.navigator)
        logger.debug("%s mounts %s for %s", location, type(view).__name__, user.email)
        return await self._show(view)

    async def _show(self, view: Console) -> Console:
        self.current = view
        await view.mount()
        return view

    def close(self) -> None:
        if self.current is not None:
            self.current.unmount()
            self.current = None
