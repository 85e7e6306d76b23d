"""Per-role views built on the session gateway."""

from ragconsole.consoles.admin import AdminConsole
from ragconsole.consoles.base import Console, Status
from ragconsole.consoles.login import LoginView
from ragconsole.consoles.org_detail import OrgDetailConsole
from ragconsole.consoles.tenant import TenantConsole
from ragconsole.consoles.vector import VectorStoreConsole

__all__ = [
    "AdminConsole",
    "Console",
    "LoginView",
    "OrgDetailConsole",
    "Status",
    "TenantConsole",
    "VectorStoreConsole",
]
