"""AsyncRagClient — asynchronous client for the document QA backend.

Every call goes through ``_request``: it reads the stored credential at send
time, attaches it as a bearer header, and turns every failure into a single
``ApiError`` shape.  There are no retries; a retry is always a fresh call
made by the user.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import httpx

from ragconsole.auth import build_auth_headers
from ragconsole.credentials import CredentialStore
from ragconsole.errors import error_from_response, error_from_transport
from ragconsole.models import (
    AdminDashboardResponse,
    CreateApiKeyResponse,
    DefaultPromptResponse,
    ListApiKeysResponse,
    LoginResponse,
    OkResponse,
    Org,
    OrgDashboardResponse,
    OrgDetailResponse,
    OrgListResponse,
    QueryResponse,
    SetOrgLimitsRequest,
    UploadResponse,
    User,
    VectorStoreResponse,
)
from ragconsole.utils import generate_request_id, redact_text

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://127.0.0.1:8000"


class AsyncRagClient:
    """Asynchronous client for the document QA API.

    Usage::

        import asyncio
        from ragconsole import AsyncRagClient, CredentialStore

        async def main():
            store = CredentialStore.at("~/.ragconsole/storage.json")
            async with AsyncRagClient(base_url="http://localhost:8000/api", credentials=store) as c:
                me = await c.me()
                print(me.role)

        asyncio.run(main())
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        credentials: Optional[CredentialStore] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize async client.

        Args:
            base_url: Backend base URL, may include a path prefix such as ``/api``
            credentials: Store holding the bearer credential; read on every call
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests plug in an ASGI app here)
        """
        self._base_url = base_url.rstrip("/")
        self._credentials = credentials if credentials is not None else CredentialStore()
        self._timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=transport,
        )

    @property
    def credentials(self) -> CredentialStore:
        return self._credentials

    # ── Internal helpers ─────────────────────────────────────────

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        headers.update(build_auth_headers(self._credentials.get()))
        if extra:
            headers.update(extra)
        if "x-request-id" not in {k.lower() for k in headers}:
            headers["X-Request-ID"] = generate_request_id()
        return headers

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send one request and normalize any failure into an ``ApiError``.

        The credential is captured when the headers are built, so a sign-out
        racing with this request does not change what it sends.
        """
        headers = self._headers(kwargs.pop("headers", None))
        request_id = headers["X-Request-ID"]
        try:
            resp = await self._client.request(method, path, headers=headers, **kwargs)
        except httpx.RequestError as e:
            logger.debug("%s %s -> transport error (%s) [%s]", method, path, redact_text(str(e)), request_id)
            raise error_from_transport(e, request_id) from e

        logger.debug("%s %s -> %d [%s]", method, path, resp.status_code, request_id)
        if resp.status_code < 400:
            return resp

        try:
            body = resp.json()
        except ValueError:
            body = resp.text
        raise error_from_response(
            resp.status_code,
            body,
            reason_phrase=resp.reason_phrase or None,
            request_id=resp.headers.get("x-request-id", request_id),
        )

    async def _get(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self._request("GET", path, **kwargs)

    async def _post(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self._request("POST", path, **kwargs)

    async def _put(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self._request("PUT", path, **kwargs)

    # ── Auth ─────────────────────────────────────────────────────

    async def register(self, email: str, password: str) -> LoginResponse:
        """POST /auth/register — first administrator account."""
        resp = await self._post("/auth/register", json={"email": email, "password": password})
        return LoginResponse(**resp.json())

    async def login(self, email: str, password: str) -> LoginResponse:
        """POST /auth/login"""
        resp = await self._post("/auth/login", json={"email": email, "password": password})
        return LoginResponse(**resp.json())

    async def me(self) -> User:
        """GET /auth/me — 401 on an invalid or expired credential."""
        resp = await self._get("/auth/me")
        return User(**resp.json())

    # ── Tenant scope (org resolved server-side from the credential) ──

    async def org_dashboard(self) -> OrgDashboardResponse:
        """GET /org/dashboard"""
        resp = await self._get("/org/dashboard")
        return OrgDashboardResponse(**resp.json())

    async def org_create_api_key(self) -> CreateApiKeyResponse:
        """POST /org/api-keys — self-service, at most 3 per org."""
        resp = await self._post("/org/api-keys")
        return CreateApiKeyResponse(**resp.json())

    async def org_list_api_keys(self) -> ListApiKeysResponse:
        """GET /org/api-keys"""
        resp = await self._get("/org/api-keys")
        return ListApiKeysResponse(**resp.json())

    async def upload_document(
        self,
        org_id: str,
        file: Union[str, Path],
        *,
        content_type: str = "application/pdf",
    ) -> UploadResponse:
        """POST /orgs/{org_id}/rag/upload — multipart ``file`` body."""
        path = Path(file)
        with open(path, "rb") as fh:
            resp = await self._post(
                f"/orgs/{org_id}/rag/upload",
                files={"file": (path.name, fh, content_type)},
            )
        return UploadResponse(**resp.json())

    async def query(self, org_id: str, question: str) -> QueryResponse:
        """POST /orgs/{org_id}/rag/query"""
        resp = await self._post(f"/orgs/{org_id}/rag/query", json={"question": question})
        return QueryResponse(**resp.json())

    # ── Administrator scope ──────────────────────────────────────

    async def admin_dashboard(self) -> AdminDashboardResponse:
        """GET /admin/dashboard — all orgs with upload counts."""
        resp = await self._get("/admin/dashboard")
        return AdminDashboardResponse(**resp.json())

    async def admin_list_orgs(self) -> OrgListResponse:
        """GET /admin/orgs"""
        resp = await self._get("/admin/orgs")
        return OrgListResponse(**resp.json())

    async def create_org(self, name: str) -> Org:
        """POST /orgs"""
        resp = await self._post("/orgs", json={"name": name})
        return Org(**resp.json())

    async def get_org(self, org_id: str) -> Org:
        """GET /orgs/{org_id}"""
        resp = await self._get(f"/orgs/{org_id}")
        return Org(**resp.json())

    async def admin_get_org(self, org_id: str) -> OrgDetailResponse:
        """GET /admin/orgs/{org_id} — org, uploads, prompt and limits."""
        resp = await self._get(f"/admin/orgs/{org_id}")
        return OrgDetailResponse(**resp.json())

    async def register_org_user(self, name: str, email: str, password: str) -> LoginResponse:
        """POST /auth/register-org — creates a tenant and its first user."""
        resp = await self._post(
            "/auth/register-org",
            json={"name": name, "email": email, "password": password},
        )
        return LoginResponse(**resp.json())

    async def get_default_prompt(self) -> DefaultPromptResponse:
        """GET /admin/prompt"""
        resp = await self._get("/admin/prompt")
        return DefaultPromptResponse(**resp.json())

    async def set_org_prompt(self, org_id: str, content: Optional[str]) -> OkResponse:
        """PUT /admin/orgs/{org_id}/prompt — ``None`` clears the org prompt."""
        resp = await self._put(f"/admin/orgs/{org_id}/prompt", json={"content": content})
        return OkResponse(**resp.json())

    async def set_org_limits(self, org_id: str, limits: SetOrgLimitsRequest) -> OkResponse:
        """PUT /admin/orgs/{org_id}/limits — unset fields are not sent."""
        resp = await self._put(
            f"/admin/orgs/{org_id}/limits",
            json=limits.model_dump(exclude_none=True),
        )
        return OkResponse(**resp.json())

    async def admin_create_api_key(self, org_id: str) -> CreateApiKeyResponse:
        """POST /admin/orgs/{org_id}/api-keys — replaces the org's previous key."""
        resp = await self._post(f"/admin/orgs/{org_id}/api-keys")
        return CreateApiKeyResponse(**resp.json())

    async def admin_list_api_keys(self, org_id: str) -> ListApiKeysResponse:
        """GET /admin/orgs/{org_id}/api-keys"""
        resp = await self._get(f"/admin/orgs/{org_id}/api-keys")
        return ListApiKeysResponse(**resp.json())

    async def vector_store(self) -> VectorStoreResponse:
        """GET /admin/vector — collection stats and recent chunk previews."""
        resp = await self._get("/admin/vector")
        return VectorStoreResponse(**resp.json())

    # ── Context Manager ─────────────────────────────────────────

    async def __aenter__(self) -> "AsyncRagClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
