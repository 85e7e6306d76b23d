"""Read-only vector store inspection (administrator)."""

from __future__ import annotations

from typing import Optional

from ragconsole.consoles.base import Console
from ragconsole.models import User, VectorStoreResponse
from ragconsole.policy import HOME_PATH


class VectorStoreConsole(Console):
    def __init__(self, *args, user: Optional[User] = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.user = user
        self.data: Optional[VectorStoreResponse] = None

    async def _load(self) -> None:
        # Convenience only; the server still rejects non-admin credentials.
        if self.user is not None and not self.user.is_admin:
            self._nav.navigate(HOME_PATH)
            return
        results = await self._batch(self._client.vector_store())
        if results is None:
            return
        (data,) = results
        self._set(data=data)

    def back(self) -> None:
        self._nav.navigate(HOME_PATH)
