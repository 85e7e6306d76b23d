"""Shared console machinery: mount batches, form actions, unmount safety."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple, TypeVar

from ragconsole.async_client import AsyncRagClient
from ragconsole.errors import ApiError, ErrorKind
from ragconsole.policy import LOGIN_PATH, Context, apply, classify
from ragconsole.routing import Navigator

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Status:
    """Inline feedback next to a form."""

    ok: bool
    message: str


def _pick_error(errors: Sequence[ApiError]) -> ApiError:
    """authn outranks authz, which outranks everything else."""
    for kind in (ErrorKind.AUTHN, ErrorKind.AUTHZ):
        for err in errors:
            if err.kind is kind:
                return err
    return errors[0]


class Console:
    """Base class for every view.

    Subclasses implement ``_load`` for their mount batch.  State is only
    written while mounted; a result arriving after ``unmount`` is dropped.
    """

    is_home = False

    def __init__(self, client: AsyncRagClient, navigator: Navigator) -> None:
        self._client = client
        self._nav = navigator
        self._mounted = False
        self.loading = True
        self.error = ""

    @property
    def mounted(self) -> bool:
        return self._mounted

    async def mount(self) -> None:
        self._mounted = True
        try:
            await self._load()
        finally:
            if self._mounted:
                self.loading = False

    def unmount(self) -> None:
        self._mounted = False

    async def _load(self) -> None:
        pass

    def sign_out(self) -> None:
        self._client.credentials.clear()
        self._nav.navigate(LOGIN_PATH)

    # ── Internal helpers ─────────────────────────────────────────

    def _set(self, **state: Any) -> bool:
        """Assign view state if still mounted; report whether it was applied."""
        if not self._mounted:
            logger.debug("%s: dropping result delivered after unmount", type(self).__name__)
            return False
        for name, value in state.items():
            setattr(self, name, value)
        return True

    async def _batch(self, *calls: Awaitable[Any]) -> Optional[List[Any]]:
        """Run the mount calls concurrently; all must succeed.

        On failure the mount policy decides: sign out, go home, or show the
        error inline.  Returns ``None`` when the view has nothing to show.
        """
        results = await asyncio.gather(*calls, return_exceptions=True)
        errors = [r for r in results if isinstance(r, BaseException)]
        if not errors:
            return list(results)
        for err in errors:
            if not isinstance(err, ApiError):
                raise err
        err = _pick_error(errors)  # type: ignore[arg-type]
        self._recover(err, Context.MOUNT)
        return None

    async def _action(
        self,
        call: Callable[[], Awaitable[T]],
        on_error: Callable[[str], None],
    ) -> Tuple[bool, Optional[T]]:
        """Run one user-initiated call; failures land in ``on_error`` inline."""
        try:
            result = await call()
        except ApiError as e:
            message = self._recover(e, Context.ACTION)
            if message is not None and self._mounted:
                on_error(message)
            return False, None
        return True, result

    def _recover(self, err: ApiError, context: Context) -> Optional[str]:
        recovery = classify(err, context, at_home=self.is_home)
        logger.info("%s: %s failure (%s) -> %s", type(self).__name__, err.kind.value, err.status_code, recovery.action.value)
        # The credential is cleared even after unmount; it must never outlive a 401.
        target = apply(recovery, self._client.credentials)
        if not self._mounted:
            return None
        if context is Context.MOUNT:
            self.error = recovery.message
        if target is not None:
            self._nav.navigate(target)
            return None
        return recovery.message
