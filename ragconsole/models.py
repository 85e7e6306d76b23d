"""Pydantic response models for the ragconsole client.

These mirror the backend's JSON shapes so callers get typed access to fields.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

ADMIN_ROLE = "admin"


# ── Auth ─────────────────────────────────────────────────────────

class User(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    email: str
    role: str
    org_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: User


# ── Orgs / Uploads ───────────────────────────────────────────────

class Org(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    created_at: Optional[str] = None
    max_pdfs: Optional[int] = None
    max_chars: Optional[int] = None
    upload_enabled: Optional[bool] = None


class OrgWithUploadCount(Org):
    upload_count: int = 0


class Upload(BaseModel):
    id: int
    org_id: str
    filename: str
    created_at: Optional[str] = None


class OrgDashboardResponse(BaseModel):
    org: Org
    uploads: List[Upload] = []


class AdminDashboardResponse(BaseModel):
    orgs: List[OrgWithUploadCount] = []


class OrgListResponse(BaseModel):
    orgs: List[Org] = []


class OrgDetailResponse(Org):
    uploads: List[Upload] = []
    upload_count: int = 0
    custom_prompt: Optional[str] = None

    @property
    def has_custom_prompt(self) -> bool:
        """True when a non-blank org prompt overrides the default."""
        return self.custom_prompt is not None and self.custom_prompt.strip() != ""


# ── Prompts / Limits ─────────────────────────────────────────────

class DefaultPromptResponse(BaseModel):
    content: str


class OkResponse(BaseModel):
    ok: bool


class SetOrgLimitsRequest(BaseModel):
    max_pdfs: Optional[int] = None
    max_chars: Optional[int] = None
    upload_enabled: Optional[bool] = None


# ── RAG ──────────────────────────────────────────────────────────

class UploadResponse(BaseModel):
    message: str
    chunks_stored: int


class QueryResponse(BaseModel):
    answer: str


# ── API keys ─────────────────────────────────────────────────────

class ApiKeyInfo(BaseModel):
    id: str
    key_prefix: str
    created_at: Optional[str] = None


class CreateApiKeyResponse(BaseModel):
    """The only response that carries the full secret."""

    api_key: str
    key_prefix: str
    created_at: Optional[str] = None

    def info(self) -> ApiKeyInfo:
        return ApiKeyInfo(id="", key_prefix=self.key_prefix, created_at=self.created_at)


class ListApiKeysResponse(BaseModel):
    api_keys: List[ApiKeyInfo] = []


# ── Vector store ─────────────────────────────────────────────────

class VectorStoreEmbedding(BaseModel):
    id: str
    document_preview: str
    metadata: Dict[str, Any] = {}


class VectorStoreResponse(BaseModel):
    collection_name: str
    total_embeddings: int
    recent: List[VectorStoreEmbedding] = []
