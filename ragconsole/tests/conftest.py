"""Shared fixtures: an in-process fake backend and clients wired to it.

The fake backend is a small FastAPI app with the same routes and error
shapes as the real service.  Clients reach it through ``httpx.ASGITransport``
so no server process and no network are involved.
"""

from __future__ import annotations

import itertools
import uuid
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest
from fastapi import APIRouter, FastAPI, File, Header, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ragconsole.async_client import AsyncRagClient
from ragconsole.credentials import CredentialStore

API_BASE = "http://testserver/api"
CREATED_AT = "2026-01-01T00:00:00+00:00"
DEFAULT_PROMPT = "Answer only from the provided context."


class _Credentials(BaseModel):
    email: str
    password: str


class _RegisterOrg(BaseModel):
    name: str
    email: str
    password: str


class _OrgBody(BaseModel):
    name: str


class _PromptBody(BaseModel):
    content: Optional[str] = None


class _LimitsBody(BaseModel):
    max_pdfs: Optional[int] = None
    max_chars: Optional[int] = None
    upload_enabled: Optional[bool] = None


class _QueryBody(BaseModel):
    question: str


class FakeBackend:
    """In-memory stand-in for the document QA service."""

    def __init__(self) -> None:
        self.users: Dict[str, Dict[str, Any]] = {}
        self.tokens: Dict[str, str] = {}
        self.orgs: Dict[str, Dict[str, Any]] = {}
        self.uploads: List[Dict[str, Any]] = []
        self.keys: Dict[str, List[Dict[str, Any]]] = {}
        self.requests: List[Tuple[str, str, Optional[str]]] = []
        self.overrides: Dict[Tuple[str, str], Tuple[int, Any]] = {}
        self._upload_ids = itertools.count(1)
        self.app = self._build()

    # ── Seeding ─────────────────────────────────────────────────

    def add_user(self, email: str, password: str, role: str, org_id: Optional[str] = None) -> Dict[str, Any]:
        user = {"id": f"user_{uuid.uuid4().hex[:8]}", "email": email, "password": password,
                "role": role, "org_id": org_id}
        self.users[email] = user
        return user

    def add_org(self, name: str, **limits: Any) -> str:
        org_id = f"org_{uuid.uuid4().hex[:8]}"
        self.orgs[org_id] = {"id": org_id, "name": name, "created_at": CREATED_AT,
                             "custom_prompt": None, **limits}
        self.keys[org_id] = []
        return org_id

    def token_for(self, email: str) -> str:
        token = f"tok_{uuid.uuid4().hex}"
        self.tokens[token] = email
        return token

    def fail(self, method: str, path: str, status: int, detail: Any = "boom") -> None:
        """Make ``method path`` (path below /api) answer with an error."""
        self.overrides[(method, "/api" + path)] = (status, detail)

    def auth_headers_seen(self) -> List[Optional[str]]:
        return [auth for _, _, auth in self.requests]

    # ── Helpers ─────────────────────────────────────────────────

    def _user(self, authorization: Optional[str]) -> Dict[str, Any]:
        if not authorization or not authorization.startswith("Bearer "):
            raise HTTPException(status_code=401, detail="Not authenticated")
        email = self.tokens.get(authorization[len("Bearer "):])
        if email is None:
            raise HTTPException(status_code=401, detail="Invalid or expired token")
        return self.users[email]

    def _admin(self, authorization: Optional[str]) -> Dict[str, Any]:
        user = self._user(authorization)
        if user["role"] != "admin":
            raise HTTPException(status_code=403, detail="Admin access required")
        return user

    def _org(self, org_id: str) -> Dict[str, Any]:
        org = self.orgs.get(org_id)
        if org is None:
            raise HTTPException(status_code=404, detail="Organization not found")
        return org

    def _public_org(self, org: Dict[str, Any]) -> Dict[str, Any]:
        return {k: v for k, v in org.items() if k != "custom_prompt"}

    def _login_response(self, user: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "access_token": self.token_for(user["email"]),
            "token_type": "bearer",
            "user": {k: user[k] for k in ("id", "email", "role", "org_id")},
        }

    def _new_key(self, org_id: str) -> Dict[str, Any]:
        secret = f"rk_{uuid.uuid4().hex}"
        key = {"id": uuid.uuid4().hex[:8], "key_prefix": secret[:10], "created_at": CREATED_AT}
        self.keys[org_id].insert(0, key)
        return {"api_key": secret, "key_prefix": key["key_prefix"], "created_at": CREATED_AT}

    # ── App ─────────────────────────────────────────────────────

    def _build(self) -> FastAPI:
        app = FastAPI()
        api = APIRouter(prefix="/api")
        backend = self

        @app.middleware("http")
        async def record(request: Request, call_next):
            backend.requests.append(
                (request.method, request.url.path, request.headers.get("authorization"))
            )
            override = backend.overrides.get((request.method, request.url.path))
            if override is not None:
                status, detail = override
                return JSONResponse(status_code=status, content={"detail": detail})
            return await call_next(request)

        @api.post("/auth/register")
        def register(body: _Credentials):
            if body.email in backend.users:
                raise HTTPException(status_code=400, detail="Email already registered")
            return backend._login_response(backend.add_user(body.email, body.password, "admin"))

        @api.post("/auth/login")
        def login(body: _Credentials):
            user = backend.users.get(body.email)
            if user is None or user["password"] != body.password:
                raise HTTPException(status_code=401, detail="Invalid email or password")
            return backend._login_response(user)

        @api.get("/auth/me")
        def me(authorization: Optional[str] = Header(None)):
            user = backend._user(authorization)
            return {k: user[k] for k in ("id", "email", "role", "org_id")}

        @api.post("/auth/register-org")
        def register_org(body: _RegisterOrg, authorization: Optional[str] = Header(None)):
            backend._admin(authorization)
            if body.email in backend.users:
                raise HTTPException(status_code=400, detail="Email already registered")
            org_id = backend.add_org(body.name)
            return backend._login_response(backend.add_user(body.email, body.password, "org", org_id))

        @api.get("/org/dashboard")
        def org_dashboard(authorization: Optional[str] = Header(None)):
            user = backend._user(authorization)
            if not user["org_id"]:
                raise HTTPException(status_code=403, detail="No organization for this user")
            org = backend._org(user["org_id"])
            uploads = [u for u in backend.uploads if u["org_id"] == org["id"]]
            return {"org": backend._public_org(org), "uploads": uploads}

        @api.post("/orgs")
        def create_org(body: _OrgBody, authorization: Optional[str] = Header(None)):
            backend._admin(authorization)
            return backend._public_org(backend._org(backend.add_org(body.name)))

        @api.get("/orgs/{org_id}")
        def get_org(org_id: str, authorization: Optional[str] = Header(None)):
            backend._admin(authorization)
            return backend._public_org(backend._org(org_id))

        @api.get("/admin/dashboard")
        def admin_dashboard(authorization: Optional[str] = Header(None)):
            backend._admin(authorization)
            orgs = []
            for org in backend.orgs.values():
                count = sum(1 for u in backend.uploads if u["org_id"] == org["id"])
                orgs.append({**backend._public_org(org), "upload_count": count})
            return {"orgs": orgs}

        @api.get("/admin/orgs")
        def admin_orgs(authorization: Optional[str] = Header(None)):
            backend._admin(authorization)
            return {"orgs": [backend._public_org(o) for o in backend.orgs.values()]}

        @api.get("/admin/orgs/{org_id}")
        def admin_org(org_id: str, authorization: Optional[str] = Header(None)):
            backend._admin(authorization)
            org = backend._org(org_id)
            uploads = [u for u in backend.uploads if u["org_id"] == org_id]
            detail = {**org, "uploads": uploads, "upload_count": len(uploads)}
            if detail["custom_prompt"] is None:
                del detail["custom_prompt"]
            return detail

        @api.put("/admin/orgs/{org_id}/prompt")
        def set_prompt(org_id: str, body: _PromptBody, authorization: Optional[str] = Header(None)):
            backend._admin(authorization)
            org = backend._org(org_id)
            org["custom_prompt"] = body.content if body.content and body.content.strip() else None
            return {"ok": True}

        @api.put("/admin/orgs/{org_id}/limits")
        def set_limits(org_id: str, body: _LimitsBody, authorization: Optional[str] = Header(None)):
            backend._admin(authorization)
            org = backend._org(org_id)
            for field, value in body.model_dump(exclude_none=True).items():
                if field in ("max_pdfs", "max_chars") and value < 0:
                    raise HTTPException(status_code=422, detail=f"{field} must be >= 0")
                org[field] = value
            return {"ok": True}

        @api.get("/admin/prompt")
        def default_prompt(authorization: Optional[str] = Header(None)):
            backend._admin(authorization)
            return {"content": DEFAULT_PROMPT}

        @api.post("/orgs/{org_id}/rag/upload")
        async def upload(org_id: str, file: UploadFile = File(...),
                         authorization: Optional[str] = Header(None)):
            user = backend._user(authorization)
            if user["role"] != "admin" and user["org_id"] != org_id:
                raise HTTPException(status_code=403, detail="Not a member of this organization")
            org = backend._org(org_id)
            if org.get("upload_enabled") is False:
                raise HTTPException(status_code=403, detail="Uploads are disabled for this organization")
            data = await file.read()
            backend.uploads.append({"id": next(backend._upload_ids), "org_id": org_id,
                                    "filename": file.filename, "created_at": CREATED_AT})
            return {"message": f"Uploaded {file.filename}", "chunks_stored": max(1, len(data) // 10)}

        @api.post("/orgs/{org_id}/rag/query")
        def query(org_id: str, body: _QueryBody, authorization: Optional[str] = Header(None)):
            user = backend._user(authorization)
            if user["role"] != "admin" and user["org_id"] != org_id:
                raise HTTPException(status_code=403, detail="Not a member of this organization")
            return {"answer": f"Answer to: {body.question}"}

        @api.post("/org/api-keys")
        def org_create_key(authorization: Optional[str] = Header(None)):
            user = backend._user(authorization)
            if len(backend.keys[user["org_id"]]) >= 3:
                raise HTTPException(status_code=400, detail="Maximum 3 API keys per organization")
            return backend._new_key(user["org_id"])

        @api.get("/org/api-keys")
        def org_list_keys(authorization: Optional[str] = Header(None)):
            user = backend._user(authorization)
            return {"api_keys": backend.keys.get(user["org_id"], [])}

        @api.post("/admin/orgs/{org_id}/api-keys")
        def admin_create_key(org_id: str, authorization: Optional[str] = Header(None)):
            backend._admin(authorization)
            backend._org(org_id)
            backend.keys[org_id] = []
            return backend._new_key(org_id)

        @api.get("/admin/orgs/{org_id}/api-keys")
        def admin_list_keys(org_id: str, authorization: Optional[str] = Header(None)):
            backend._admin(authorization)
            backend._org(org_id)
            return {"api_keys": backend.keys[org_id]}

        @api.get("/admin/vector")
        def vector(authorization: Optional[str] = Header(None)):
            backend._admin(authorization)
            return {
                "collection_name": "rag_chunks",
                "total_embeddings": 2,
                "recent": [
                    {"id": "c1", "document_preview": "Refunds are issued within 30 days",
                     "metadata": {"org_id": "o1"}},
                    {"id": "c2", "document_preview": "Support hours are 9 to 5", "metadata": {}},
                ],
            }

        app.include_router(api)
        return app


# ── Fixtures ─────────────────────────────────────────────────────

@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def seeded(backend: FakeBackend) -> Dict[str, str]:
    """One admin and one tenant org with a user; returns ids and tokens."""
    backend.add_user("admin@example.com", "adminpass1", "admin")
    org_id = backend.add_org("Acme")
    backend.add_user("user@acme.com", "userpass1", "org", org_id)
    return {
        "org_id": org_id,
        "admin_token": backend.token_for("admin@example.com"),
        "tenant_token": backend.token_for("user@acme.com"),
    }


@pytest.fixture
def make_client(backend: FakeBackend):
    """Factory: ``make_client(token=None, store=None)`` -> AsyncRagClient on the fake backend."""

    def factory(token: Optional[str] = None, store: Optional[CredentialStore] = None) -> AsyncRagClient:
        store = store if store is not None else CredentialStore()
        if token:
            store.set(token)
        return AsyncRagClient(
            base_url=API_BASE,
            credentials=store,
            transport=httpx.ASGITransport(app=backend.app),
        )

    return factory


@pytest.fixture
def offline_client():
    """Factory for a client whose every request fails before reaching a server."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    def factory(token: Optional[str] = None) -> AsyncRagClient:
        store = CredentialStore()
        if token:
            store.set(token)
        return AsyncRagClient(base_url=API_BASE, credentials=store, transport=httpx.MockTransport(handler))

    return factory
