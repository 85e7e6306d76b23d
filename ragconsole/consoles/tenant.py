"""Tenant console: own org, uploads, questions and self-service API keys."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Union

from ragconsole.consoles.base import Console, Status
from ragconsole.models import ApiKeyInfo, Org, Upload

MAX_SELF_SERVICE_KEYS = 3


class TenantConsole(Console):
    is_home = True

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.org: Optional[Org] = None
        self.uploads: List[Upload] = []
        self.api_keys: List[ApiKeyInfo] = []
        self.new_api_key: Optional[str] = None
        self.api_key_status: Optional[Status] = None
        self.upload_status: Optional[Status] = None
        self.answer = ""
        self.query_error = ""

    async def _load(self) -> None:
        results = await self._batch(
            self._client.org_dashboard(),
            self._client.org_list_api_keys(),
        )
        if results is None:
            return
        dashboard, keys = results
        self._set(org=dashboard.org, uploads=dashboard.uploads, api_keys=keys.api_keys)

    @property
    def can_create_api_key(self) -> bool:
        return len(self.api_keys) < MAX_SELF_SERVICE_KEYS

    async def upload(self, file: Union[str, Path]) -> bool:
        if self.org is None:
            return False
        self.upload_status = None

        def failed(msg: str) -> None:
            self.upload_status = Status(False, msg or "Upload failed")

        org_id = self.org.id
        ok, res = await self._action(lambda: self._client.upload_document(org_id, file), failed)
        if not ok:
            return False
        done = f"{res.message} ({res.chunks_stored} chunks)"
        self._set(upload_status=Status(True, done))

        def refresh_failed(msg: str) -> None:
            self.upload_status = Status(True, f"{done}; refreshing the document list failed: {msg}")

        ok, dashboard = await self._action(self._client.org_dashboard, refresh_failed)
        if ok:
            self._set(uploads=dashboard.uploads)
        return True

    async def ask(self, question: str) -> Optional[str]:
        question = question.strip()
        if self.org is None or not question:
            return None
        self.query_error = ""
        self.answer = ""

        def failed(msg: str) -> None:
            self.query_error = msg or "Query failed"

        org_id = self.org.id
        ok, res = await self._action(lambda: self._client.query(org_id, question), failed)
        if not ok:
            return None
        self._set(answer=res.answer)
        return res.answer

    async def create_api_key(self) -> Optional[str]:
        """Create a key and return its secret; shown once, never fetchable again."""
        if self.org is None:
            return None
        self.new_api_key = None
        if not self.can_create_api_key:
            self.api_key_status = Status(False, f"Max {MAX_SELF_SERVICE_KEYS} keys")
            return None

        def failed(msg: str) -> None:
            self.api_key_status = Status(False, msg or "Failed to create API key")

        ok, res = await self._action(self._client.org_create_api_key, failed)
        if not ok:
            return None
        self._set(
            new_api_key=res.api_key,
            api_keys=[res.info()] + self.api_keys,
            api_key_status=Status(True, "API key created. Copy it now; it will not be shown again."),
        )
        return res.api_key
