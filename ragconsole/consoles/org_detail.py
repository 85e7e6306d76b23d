"""Org detail (administrator): prompt override, upload limits, widget key."""

from __future__ import annotations

from typing import List, Optional

from ragconsole.consoles.base import Console, Status
from ragconsole.models import ApiKeyInfo, OrgDetailResponse, SetOrgLimitsRequest
from ragconsole.policy import HOME_PATH


def _parse_limit(name: str, raw: str) -> Optional[int]:
    """Blank means "leave unchanged"; anything else must be a whole number."""
    raw = raw.strip()
    if not raw:
        return None
    try:
        return int(raw, 10)
    except ValueError:
        raise ValueError(f"{name} must be a whole number, got {raw!r}") from None


class OrgDetailConsole(Console):
    def __init__(self, *args, org_id: Optional[str] = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.org_id = org_id
        self.org: Optional[OrgDetailResponse] = None
        self.default_prompt = ""
        self.custom_prompt_input = ""
        self.prompt_status: Optional[Status] = None
        self.api_keys: List[ApiKeyInfo] = []
        self.new_api_key: Optional[str] = None
        self.api_key_status: Optional[Status] = None
        self.limits_max_pdfs = ""
        self.limits_max_chars = ""
        self.limits_upload_enabled = True
        self.limits_status: Optional[Status] = None

    async def _load(self) -> None:
        if not self.org_id:
            self._nav.navigate(HOME_PATH)
            return
        results = await self._batch(
            self._client.admin_get_org(self.org_id),
            self._client.get_default_prompt(),
            self._client.admin_list_api_keys(self.org_id),
        )
        if results is None:
            return
        org, prompt, keys = results
        if self._set(default_prompt=prompt.content, api_keys=keys.api_keys):
            self._apply_org(org)

    @property
    def has_custom_prompt(self) -> bool:
        """Whether the "Important" custom-prompt marker shows."""
        return self.org is not None and self.org.has_custom_prompt

    def _apply_org(self, org: OrgDetailResponse) -> None:
        self.org = org
        self.custom_prompt_input = org.custom_prompt or ""
        self.limits_max_pdfs = "" if org.max_pdfs is None else str(org.max_pdfs)
        self.limits_max_chars = "" if org.max_chars is None else str(org.max_chars)
        self.limits_upload_enabled = True if org.upload_enabled is None else org.upload_enabled

    # ── Prompt ───────────────────────────────────────────────────

    async def set_prompt(self, content: str) -> bool:
        """Save the org prompt; a blank prompt is the same as deleting it."""
        if not self.org_id:
            return False
        self.prompt_status = None
        value = content.strip() or None

        def failed(msg: str) -> None:
            self.prompt_status = Status(False, msg or "Failed to save")

        org_id = self.org_id
        ok, _ = await self._action(lambda: self._client.set_org_prompt(org_id, value), failed)
        if not ok:
            return False
        if self._set(custom_prompt_input=value or "", prompt_status=Status(True, "Org prompt saved.")):
            if self.org is not None:
                self.org = self.org.model_copy(update={"custom_prompt": value})
        return True

    async def delete_prompt(self) -> bool:
        if not self.org_id:
            return False
        self.prompt_status = None

        def failed(msg: str) -> None:
            self.prompt_status = Status(False, msg or "Failed to delete")

        org_id = self.org_id
        ok, _ = await self._action(lambda: self._client.set_org_prompt(org_id, None), failed)
        if not ok:
            return False
        if self._set(custom_prompt_input="", prompt_status=Status(True, "Custom org prompt deleted.")):
            if self.org is not None:
                self.org = self.org.model_copy(update={"custom_prompt": None})
        return True

    # ── Limits ───────────────────────────────────────────────────

    async def set_limits(
        self,
        max_pdfs: Optional[str] = None,
        max_chars: Optional[str] = None,
        upload_enabled: Optional[bool] = None,
    ) -> bool:
        """Save limits from form values, then re-read the org.

        Arguments left as ``None`` take the current form value.
        """
        if not self.org_id:
            return False
        self.limits_status = None
        if max_pdfs is not None:
            self.limits_max_pdfs = max_pdfs
        if max_chars is not None:
            self.limits_max_chars = max_chars
        if upload_enabled is not None:
            self.limits_upload_enabled = upload_enabled
        try:
            limits = SetOrgLimitsRequest(
                max_pdfs=_parse_limit("max_pdfs", self.limits_max_pdfs),
                max_chars=_parse_limit("max_chars", self.limits_max_chars),
                upload_enabled=self.limits_upload_enabled,
            )
        except ValueError as e:
            self.limits_status = Status(False, str(e))
            return False

        def failed(msg: str) -> None:
            self.limits_status = Status(False, msg or "Failed to save limits")

        org_id = self.org_id
        ok, _ = await self._action(lambda: self._client.set_org_limits(org_id, limits), failed)
        if not ok:
            return False
        self._set(limits_status=Status(True, "Limits saved."))
        def reload_failed(msg: str) -> None:
            self.limits_status = Status(True, f"Limits saved; reloading the org failed: {msg}")

        ok, org = await self._action(lambda: self._client.admin_get_org(org_id), reload_failed)
        if ok and self._mounted:
            self._apply_org(org)
        return True

    # ── API key ──────────────────────────────────────────────────

    async def create_api_key(self) -> Optional[str]:
        """Issue the org's widget key; the server revokes any previous one."""
        if not self.org_id:
            return None
        self.new_api_key = None

        def failed(msg: str) -> None:
            self.api_key_status = Status(False, msg or "Failed to create API key")

        org_id = self.org_id
        ok, res = await self._action(lambda: self._client.admin_create_api_key(org_id), failed)
        if not ok:
            return None
        self._set(
            new_api_key=res.api_key,
            api_keys=[res.info()],
            api_key_status=Status(True, "API key created. It replaces any previous key for this org."),
        )
        return res.api_key

    def back(self) -> None:
        self._nav.navigate(HOME_PATH)
