"""Administrator console: every org at a glance, plus org + user registration."""

from __future__ import annotations

from typing import List, Optional

from ragconsole.consoles.base import Console, Status
from ragconsole.models import OrgWithUploadCount
from ragconsole.routing import VECTOR_PATH, org_detail_path


class AdminConsole(Console):
    is_home = True

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.orgs: List[OrgWithUploadCount] = []
        self.register_status: Optional[Status] = None
        self.default_prompt: Optional[str] = None
        self.prompt_error = ""

    async def _load(self) -> None:
        results = await self._batch(self._client.admin_dashboard())
        if results is None:
            return
        (dashboard,) = results
        self._set(orgs=dashboard.orgs)

    async def register_org_user(self, name: str, email: str, password: str) -> bool:
        """Create a tenant and its first user, then refresh the org list."""
        name, email = name.strip(), email.strip()
        if not name or not email or not password:
            return False
        self.register_status = None

        def failed(msg: str) -> None:
            self.register_status = Status(False, msg or "Failed to register org user")

        ok, _ = await self._action(lambda: self._client.register_org_user(name, email, password), failed)
        if not ok:
            return False
        self._set(register_status=Status(
            True, "Org and user created. They can log in with that email and password."
        ))
        def refresh_failed(msg: str) -> None:
            self.register_status = Status(True, f"Org and user created; refreshing the org list failed: {msg}")

        ok, dashboard = await self._action(self._client.admin_dashboard, refresh_failed)
        if ok:
            self._set(orgs=dashboard.orgs)
        return True

    async def load_default_prompt(self) -> Optional[str]:
        """Fetch the prompt used by orgs without an override."""
        self.prompt_error = ""

        def failed(msg: str) -> None:
            self.prompt_error = msg or "Failed to load default prompt"

        ok, res = await self._action(self._client.get_default_prompt, failed)
        if not ok:
            return None
        self._set(default_prompt=res.content)
        return res.content

    def open_org(self, org_id: str) -> None:
        self._nav.navigate(org_detail_path(org_id))

    def open_vector_store(self) -> None:
        self._nav.navigate(VECTOR_PATH)
