"""ragconsole CLI — Typer app over the console views."""

from __future__ import annotations

import asyncio
import traceback
from typing import Any, Awaitable, Callable, Optional, Type, TypeVar

import typer
from rich.console import Console as RichConsole
from rich.panel import Panel
from rich.table import Table

from ragconsole import __version__
from ragconsole.app import ConsoleApp
from ragconsole.async_client import AsyncRagClient
from ragconsole.config import ConfigError, ConsoleConfig, load_console_config, setup_logging
from ragconsole.consoles import (
    AdminConsole,
    Console,
    LoginView,
    OrgDetailConsole,
    Status,
    TenantConsole,
    VectorStoreConsole,
)
from ragconsole.credentials import CredentialStore
from ragconsole.policy import LOGIN_PATH
from ragconsole.routing import VECTOR_PATH, org_detail_path
from ragconsole.session import Authenticated, resolve_session

console = RichConsole(stderr=True)
out = RichConsole()

V = TypeVar("V", bound=Console)

app = typer.Typer(
    name="ragconsole",
    help=(
        "ragconsole — admin console for the document QA service.\n\n"
        "Sign in, manage your org's documents and API keys, or as an "
        "administrator manage every org's prompt and upload limits."
    ),
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    epilog=(
        "Quick start:\n"
        "  ragconsole login you@example.com\n"
        "  ragconsole dashboard\n"
        "  ragconsole upload handbook.pdf\n"
        "  ragconsole ask \"What is the refund policy?\"\n\n"
        f"ragconsole v{__version__}"
    ),
)
keys_app = typer.Typer(help="Self-service API keys for your org (max 3).", no_args_is_help=True)
admin_app = typer.Typer(help="Administrator commands.", no_args_is_help=True)
app.add_typer(keys_app, name="keys")
app.add_typer(admin_app, name="admin")

_state: dict = {"config_path": None, "verbose": False}


def _version_callback(value: bool) -> None:
    if value:
        RichConsole().print(Panel(f"[bold]ragconsole[/bold] v{__version__}", border_style="blue"))
        raise typer.Exit()


@app.callback()
def main(
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="YAML config file (default: $RAGCONSOLE_CONFIG_PATH)."
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Debug logging and full tracebacks."),
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version and exit.",
        callback=_version_callback, is_eager=True,
    ),
) -> None:
    """ragconsole — admin console for the document QA service."""
    _state["config_path"] = config
    _state["verbose"] = verbose


# ── Plumbing ─────────────────────────────────────────────────────

def _config() -> ConsoleConfig:
    cfg = load_console_config(_state["config_path"])
    setup_logging(_state["verbose"], cfg.log_format)
    return cfg


def _make_client(cfg: ConsoleConfig) -> AsyncRagClient:
    return AsyncRagClient(
        base_url=cfg.api_base,
        credentials=CredentialStore.at(cfg.storage_path),
        timeout=cfg.timeout,
    )


def _run(fn: Callable[[ConsoleApp], Awaitable[Any]]) -> None:
    """Build client + app, run ``fn`` on one event loop, report errors cleanly."""

    async def go() -> None:
        async with _make_client(_config()) as client:
            shell = ConsoleApp(client)
            try:
                await fn(shell)
            finally:
                shell.close()

    _run_safe(lambda: asyncio.run(go()), verbose=_state["verbose"])


def _not_signed_in() -> None:
    console.print("[yellow]Not signed in.[/yellow] Run [bold]ragconsole login EMAIL[/bold].")
    raise SystemExit(1)


def _check_session(shell: ConsoleApp) -> None:
    """Exit with the sign-in hint if the last action signed the caller out."""
    if shell.navigator.location == LOGIN_PATH:
        _not_signed_in()


async def _open(shell: ConsoleApp, path: str, expect: Type[V]) -> V:
    """Mount ``path`` and insist on landing on an ``expect`` view."""
    view = await shell.open(path)
    if isinstance(view, LoginView) and expect is not LoginView:
        _not_signed_in()
    if view.error:
        console.print(f"[red bold]Error:[/red bold] {view.error}")
        raise SystemExit(1)
    if not isinstance(view, expect):
        needed = "an administrator" if expect in (AdminConsole, OrgDetailConsole, VectorStoreConsole) else "a tenant"
        console.print(f"[red bold]Error:[/red bold] this command needs {needed} account.")
        raise SystemExit(1)
    return view


def _report(status: Optional[Status]) -> None:
    if status is None:
        return
    if status.ok:
        out.print(f"[green]{status.message}[/green]")
    else:
        console.print(f"[red bold]Error:[/red bold] {status.message}")
        raise SystemExit(1)


def _fail_if(message: str) -> None:
    if message:
        console.print(f"[red bold]Error:[/red bold] {message}")
        raise SystemExit(1)


def _show_secret(secret: Optional[str]) -> None:
    if secret:
        out.print(Panel(secret, title="API key (shown once)", border_style="yellow"))


# ── Rendering ────────────────────────────────────────────────────

def _render_keys(keys) -> None:
    if not keys:
        out.print("[dim]No API keys yet.[/dim]")
        return
    table = Table(title="API keys")
    table.add_column("Prefix")
    table.add_column("Created")
    for k in keys:
        table.add_row(f"{k.key_prefix}…", k.created_at or "—")
    out.print(table)


def _render_uploads(uploads) -> None:
    if not uploads:
        out.print("[dim]No documents uploaded yet.[/dim]")
        return
    table = Table(title="Documents")
    table.add_column("ID", justify="right")
    table.add_column("Filename")
    table.add_column("Uploaded")
    for u in uploads:
        table.add_row(str(u.id), u.filename, u.created_at or "—")
    out.print(table)


def _render_tenant(view: TenantConsole) -> None:
    if view.org is None:
        return
    out.print(f"[bold]{view.org.name}[/bold]  [dim]{view.org.id}[/dim]")
    _render_uploads(view.uploads)
    _render_keys(view.api_keys)


def _render_admin(view: AdminConsole) -> None:
    if not view.orgs:
        out.print("[dim]No organizations yet.[/dim]")
        return
    table = Table(title="Organizations")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Uploads", justify="right")
    table.add_column("Created")
    for o in view.orgs:
        table.add_row(o.id, o.name, str(o.upload_count), o.created_at or "—")
    out.print(table)


def _render_org_detail(view: OrgDetailConsole) -> None:
    org = view.org
    if org is None:
        return
    out.print(f"[bold]{org.name}[/bold]  ID: {org.id} · Created: {org.created_at or '—'}")
    out.print(
        f"Limits: max_pdfs={view.limits_max_pdfs or '—'} "
        f"max_chars={view.limits_max_chars or '—'} "
        f"uploads={'enabled' if view.limits_upload_enabled else 'disabled'}"
    )
    if view.has_custom_prompt:
        out.print(Panel(org.custom_prompt or "", title="Important: custom org prompt", border_style="yellow"))
    else:
        out.print("[dim]Using the default prompt.[/dim]")
    _render_uploads(org.uploads)
    _render_keys(view.api_keys)


def _render_vector(view: VectorStoreConsole) -> None:
    data = view.data
    if data is None:
        return
    out.print(f"[bold]{data.collection_name}[/bold]: {data.total_embeddings} embeddings")
    table = Table(title="Recent chunks")
    table.add_column("ID")
    table.add_column("Preview")
    for e in data.recent:
        table.add_row(e.id, e.document_preview)
    out.print(table)


def _render(view: Console) -> None:
    if isinstance(view, TenantConsole):
        _render_tenant(view)
    elif isinstance(view, AdminConsole):
        _render_admin(view)
    elif isinstance(view, OrgDetailConsole):
        _render_org_detail(view)
    elif isinstance(view, VectorStoreConsole):
        _render_vector(view)
    elif isinstance(view, LoginView):
        out.print("[yellow]Signed out.[/yellow] Run [bold]ragconsole login EMAIL[/bold].")


# ── auth ─────────────────────────────────────────────────────────

@app.command()
def login(
    email: str = typer.Argument(..., help="Account email."),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True),
) -> None:
    """Sign in and store the credential.

    Example:
      ragconsole login you@example.com
    """

    async def impl(shell: ConsoleApp) -> None:
        view = await shell.open("/login")
        if not isinstance(view, LoginView):
            out.print("Already signed in. Run [bold]ragconsole logout[/bold] first to switch accounts.")
            return
        if not await view.login(email, password):
            _fail_if(view.error or "Login failed")
        _render(await shell.open())
        out.print(f"[green]Signed in as {email}.[/green]")

    _run(impl)


@app.command()
def register(
    email: str = typer.Argument(..., help="Administrator email."),
    password: str = typer.Option(
        ..., "--password", "-p", prompt=True, hide_input=True, confirmation_prompt=True,
        help="At least 8 characters.",
    ),
) -> None:
    """Register the first administrator account and sign in."""

    async def impl(shell: ConsoleApp) -> None:
        view = await shell.open("/login")
        if not isinstance(view, LoginView):
            out.print("Already signed in. Run [bold]ragconsole logout[/bold] first.")
            return
        if not await view.register(email, password):
            _fail_if(view.error or "Registration failed")
        out.print(f"[green]Registered and signed in as {email}.[/green]")

    _run(impl)


@app.command()
def logout() -> None:
    """Forget the stored credential."""

    def impl() -> None:
        CredentialStore.at(_config().storage_path).clear()
        out.print("Signed out.")

    _run_safe(impl, verbose=_state["verbose"])


@app.command()
def whoami() -> None:
    """Show the account behind the stored credential."""

    async def impl(shell: ConsoleApp) -> None:
        # Same resolver as every protected view: a rejected credential is cleared.
        outcome = await resolve_session(shell.client)
        if not isinstance(outcome, Authenticated):
            console.print("[yellow]Not signed in.[/yellow]")
            raise SystemExit(1)
        u = outcome.user
        out.print(f"{u.email}  role={u.role}  org={u.org_id or '—'}")

    _run(impl)


# ── views ────────────────────────────────────────────────────────

@app.command("open")
def open_path(path: str = typer.Argument("/", help="Console path, e.g. /, /org/<id>, /vector.")) -> None:
    """Mount any console path and render wherever it lands."""

    async def impl(shell: ConsoleApp) -> None:
        view = await shell.open(path)
        if shell.navigator.location != path:
            out.print(f"[dim]→ {shell.navigator.location}[/dim]")
        if isinstance(view, LoginView) and path != LOGIN_PATH:
            _not_signed_in()
        _fail_if(view.error)
        _render(view)

    _run(impl)


@app.command()
def dashboard() -> None:
    """Your home view: the org dashboard, or every org for administrators."""

    async def impl(shell: ConsoleApp) -> None:
        view = await _open(shell, "/", Console)
        _render(view)

    _run(impl)


@app.command()
def upload(file: str = typer.Argument(..., help="PDF to ingest.")) -> None:
    """Upload a document to your org."""

    async def impl(shell: ConsoleApp) -> None:
        view = await _open(shell, "/", TenantConsole)
        await view.upload(file)
        _check_session(shell)
        _report(view.upload_status)

    _run(impl)


@app.command()
def ask(question: str = typer.Argument(..., help="Question about your documents.")) -> None:
    """Ask a question against your org's documents."""

    async def impl(shell: ConsoleApp) -> None:
        view = await _open(shell, "/", TenantConsole)
        answer = await view.ask(question)
        _check_session(shell)
        _fail_if(view.query_error)
        if answer is not None:
            out.print(answer)

    _run(impl)


@keys_app.command("list")
def keys_list() -> None:
    """List your org's API keys (prefixes only)."""

    async def impl(shell: ConsoleApp) -> None:
        view = await _open(shell, "/", TenantConsole)
        _render_keys(view.api_keys)

    _run(impl)


@keys_app.command("create")
def keys_create() -> None:
    """Create an API key for the chat widget. The secret is shown once."""

    async def impl(shell: ConsoleApp) -> None:
        view = await _open(shell, "/", TenantConsole)
        secret = await view.create_api_key()
        _check_session(shell)
        _report(view.api_key_status)
        _show_secret(secret)

    _run(impl)


# ── admin ────────────────────────────────────────────────────────

@admin_app.command("orgs")
def admin_orgs() -> None:
    """List every org with its upload count."""

    async def impl(shell: ConsoleApp) -> None:
        _render_admin(await _open(shell, "/", AdminConsole))

    _run(impl)


@admin_app.command("org")
def admin_org(org_id: str = typer.Argument(...)) -> None:
    """Show one org: prompt, limits, uploads and key."""

    async def impl(shell: ConsoleApp) -> None:
        _render_org_detail(await _open(shell, org_detail_path(org_id), OrgDetailConsole))

    _run(impl)


@admin_app.command("register-org")
def admin_register_org(
    name: str = typer.Argument(..., help="Organization name."),
    email: str = typer.Argument(..., help="Email of the org's first user."),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True),
) -> None:
    """Create an org and its first user."""

    async def impl(shell: ConsoleApp) -> None:
        view = await _open(shell, "/", AdminConsole)
        await view.register_org_user(name, email, password)
        _check_session(shell)
        _report(view.register_status)
        _render_admin(view)

    _run(impl)


@admin_app.command("set-prompt")
def admin_set_prompt(
    org_id: str = typer.Argument(...),
    content: str = typer.Argument(..., help="Prompt text; empty string deletes the override."),
) -> None:
    """Set an org's custom prompt."""

    async def impl(shell: ConsoleApp) -> None:
        view = await _open(shell, org_detail_path(org_id), OrgDetailConsole)
        await view.set_prompt(content)
        _check_session(shell)
        _report(view.prompt_status)

    _run(impl)


@admin_app.command("delete-prompt")
def admin_delete_prompt(org_id: str = typer.Argument(...)) -> None:
    """Remove an org's custom prompt so the default applies."""

    async def impl(shell: ConsoleApp) -> None:
        view = await _open(shell, org_detail_path(org_id), OrgDetailConsole)
        await view.delete_prompt()
        _check_session(shell)
        _report(view.prompt_status)

    _run(impl)


@admin_app.command("set-limits")
def admin_set_limits(
    org_id: str = typer.Argument(...),
    max_pdfs: Optional[str] = typer.Option(None, "--max-pdfs", help="Max documents; blank leaves unchanged."),
    max_chars: Optional[str] = typer.Option(None, "--max-chars", help="Max characters per document."),
    upload_enabled: Optional[bool] = typer.Option(
        None, "--upload-enabled/--upload-disabled", help="Allow or block uploads."
    ),
) -> None:
    """Set an org's upload limits."""

    async def impl(shell: ConsoleApp) -> None:
        view = await _open(shell, org_detail_path(org_id), OrgDetailConsole)
        await view.set_limits(max_pdfs, max_chars, upload_enabled)
        _check_session(shell)
        _report(view.limits_status)
        _render_org_detail(view)

    _run(impl)


@admin_app.command("keys")
def admin_keys(org_id: str = typer.Argument(...)) -> None:
    """List an org's API key."""

    async def impl(shell: ConsoleApp) -> None:
        view = await _open(shell, org_detail_path(org_id), OrgDetailConsole)
        _render_keys(view.api_keys)

    _run(impl)


@admin_app.command("create-key")
def admin_create_key(org_id: str = typer.Argument(...)) -> None:
    """Issue an org's API key, replacing the previous one."""

    async def impl(shell: ConsoleApp) -> None:
        view = await _open(shell, org_detail_path(org_id), OrgDetailConsole)
        secret = await view.create_api_key()
        _check_session(shell)
        _report(view.api_key_status)
        _show_secret(secret)

    _run(impl)


@admin_app.command("default-prompt")
def admin_default_prompt() -> None:
    """Print the default prompt used by orgs without an override."""

    async def impl(shell: ConsoleApp) -> None:
        view = await _open(shell, "/", AdminConsole)
        content = await view.load_default_prompt()
        _check_session(shell)
        _fail_if(view.prompt_error)
        out.print(content or "")

    _run(impl)


@admin_app.command("vector")
def admin_vector() -> None:
    """Inspect the vector store: collection stats and recent chunks."""

    async def impl(shell: ConsoleApp) -> None:
        _render_vector(await _open(shell, VECTOR_PATH, VectorStoreConsole))

    _run(impl)


# ── Error handling ───────────────────────────────────────────────

def _run_safe(fn, verbose: bool = False) -> None:
    """Run a function with clean error handling."""
    try:
        fn()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        raise SystemExit(130)
    except ConfigError as e:
        console.print(f"\n[red bold]Config error:[/red bold] {e}")
        raise SystemExit(2)
    except Exception as e:
        console.print(f"\n[red bold]Error:[/red bold] {e}")
        if verbose:
            console.print(traceback.format_exc())
        else:
            console.print("[dim]Run with --verbose for full traceback.[/dim]")
        raise SystemExit(1)
