"""Login / first-admin registration view."""

from __future__ import annotations

from ragconsole.consoles.base import Console
from ragconsole.errors import ApiError
from ragconsole.policy import HOME_PATH

MIN_PASSWORD_LENGTH = 8


class LoginView(Console):
    async def _load(self) -> None:
        # Already holding a credential: go straight home, validity is checked there.
        if self._client.credentials.get() is not None:
            self._nav.navigate(HOME_PATH, replace=True)

    async def login(self, email: str, password: str) -> bool:
        self.error = ""
        try:
            res = await self._client.login(email, password)
        except ApiError as e:
            self._set(error=e.message or "Login failed")
            return False
        self._client.credentials.set(res.access_token)
        self._nav.navigate(HOME_PATH)
        return True

    async def register(self, email: str, password: str) -> bool:
        if len(password) < MIN_PASSWORD_LENGTH:
            self.error = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            return False
        self.error = ""
        try:
            res = await self._client.register(email, password)
        except ApiError as e:
            self._set(error=e.message or "Registration failed")
            return False
        self._client.credentials.set(res.access_token)
        self._nav.navigate(HOME_PATH)
        return True
