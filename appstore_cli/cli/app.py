"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
from collections.abc import Awaitable
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, TypeVar

import typer
from rich.console import Console
from rich.logging import RichHandler

from appstore_cli import __version__
from appstore_cli.core.client import StoreClient
from appstore_cli.exceptions import AppStoreCliError, AuthenticationError, StoreFlowError
from appstore_cli.models.account import Account, Software
from appstore_cli.models.config import ClientConfig
from appstore_cli.storage.accounts import AccountStore
from appstore_cli.storage.config_manager import ConfigManager
from appstore_cli.storage.default_account import (
    read_default_account,
    seed_default_account_from_env,
)
from appstore_cli.utils.device import generate_device_identifier
from appstore_cli.utils.messages import set_locale
from appstore_cli.utils.structured_logger import (
    StoreEventLogger,
    StructuredLogger,
    create_structured_logger,
)

from .formatters import (
    format_error_with_suggestions,
    print_account_detail,
    print_accounts_table,
    print_config,
    print_download_summary,
)

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("appstore_cli")

app = typer.Typer(
    name="appstore-cli",
    help=(
        "Sign in to the App Store, acquire free apps and request download tickets."
        " Use 'appstore-cli <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)
accounts_app = typer.Typer(help="Manage stored accounts.")
app.add_typer(accounts_app, name="accounts")

T = TypeVar("T")


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "appstore-cli"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


@dataclass
class AppContext:
    config: ClientConfig
    base_logger: StructuredLogger
    events: StoreEventLogger


def _context(ctx: typer.Context) -> AppContext:
    return ctx.obj


def _run(coro: Awaitable[T]) -> T:
    """Runs a command coroutine, rendering application errors as a panel."""
    try:
        return asyncio.run(coro)
    except AppStoreCliError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration."
    ),
    log_dir: Optional[Path] = typer.Option(
        None, "--log-dir", help="Write a JSONL event log into this directory."
    ),
):
    """App Store client CLI"""
    if version:
        console.print(f"[bold]appstore-cli[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    elif verbose == 0:
        log_level = "WARNING"
    logging.getLogger("appstore_cli").setLevel(log_level)

    try:
        config = ConfigManager(CONFIG_FILE).load_config()
    except AppStoreCliError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e
    set_locale(config.locale)

    if show_config:
        print_config(CONFIG_FILE, config.model_dump(exclude={"config_path"}))
        raise typer.Exit()

    base_logger, events = create_structured_logger(log_dir)
    base_logger.set_session_context(
        command=ctx.invoked_subcommand, version=__version__
    )
    ctx.obj = AppContext(config=config, base_logger=base_logger, events=events)
    ctx.call_on_close(base_logger.close)

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def login(
    ctx: typer.Context,
    email: str = typer.Argument(..., help="Apple ID email."),
    password: Optional[str] = typer.Option(
        None, "--password", "-p", help="Password (prompted when omitted)."
    ),
    code: Optional[str] = typer.Option(
        None, "--code", "-c", help="Two-factor verification code."
    ),
):
    """Sign in and store the session."""
    state = _context(ctx)

    async def _login_async() -> Account:
        store = AccountStore(CONFIG_DIR)
        existing = await store.find(email)
        secret = password or (existing.password if existing else None)
        if not secret:
            secret = typer.prompt("Password", hide_input=True)

        # Reusing the stored device identity keeps issued entitlements valid.
        device_identifier = existing.device_identifier if existing else None
        cookies = existing.cookies if existing else None

        async with StoreClient(state.config) as client:
            try:
                account = await client.login(
                    email, secret, code, cookies, device_identifier
                )
            except AuthenticationError as e:
                if not e.code_required:
                    raise
                state.events.login_code_required(email)
                entered = typer.prompt("Two-factor code")
                account = await client.login(
                    email, secret, entered, e.cookies, e.device_identifier
                )

        await store.upsert(account)
        state.events.login_succeeded(email, account.store_front, account.pod)
        return account

    account = _run(_login_async())
    console.print(f"[green]✓ Signed in as {account.display_name}.[/green]")


@app.command(name="download")
def download_command(
    ctx: typer.Context,
    email: str = typer.Argument(..., help="Stored account to use."),
    app_id: int = typer.Argument(..., help="Numeric store item id."),
    external_version_id: Optional[str] = typer.Option(
        None, "--external-version-id", "-e", help="Request a specific historical version."
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the ticket as JSON to this file."
    ),
):
    """Request a download ticket for an owned app."""
    state = _context(ctx)

    async def _download_async():
        store = AccountStore(CONFIG_DIR)
        account = await store.read(email)
        async with StoreClient(state.config) as client:
            try:
                result = await client.get_download_info(
                    account, Software(id=app_id), external_version_id
                )
            except StoreFlowError as e:
                await _keep_session(store, account, e)
                state.events.operation_failed(email, "download", e, e.code)
                raise

        await store.upsert(result.account)
        if result.relogged_in:
            state.events.session_refreshed(email, "download")
        state.events.download_ticket_issued(
            email,
            app_id,
            result.output.bundle_short_version_string,
            result.output.bundle_version,
            len(result.output.sinfs),
        )
        return result

    result = _run(_download_async())
    document = result.output.model_dump_json(indent=2)
    if output:
        output.write_text(document, encoding="utf-8")
        print_download_summary(app_id, result.output)
        console.print(f"[green]✓ Ticket written to '{output}'.[/green]")
    else:
        typer.echo(document)


@app.command()
def purchase(
    ctx: typer.Context,
    email: str = typer.Argument(..., help="Stored account to use."),
    app_id: int = typer.Argument(..., help="Numeric store item id."),
    version_id: str = typer.Option(
        "0", "--version-id", help="External version id of the current release."
    ),
    price: float = typer.Option(0.0, "--price", help="Listed price of the app."),
):
    """Acquire a free app for a stored account."""
    state = _context(ctx)

    async def _purchase_async():
        store = AccountStore(CONFIG_DIR)
        account = await store.read(email)
        software = Software(id=app_id, version_id=version_id, price=price)
        async with StoreClient(state.config) as client:
            try:
                result = await client.purchase_app(account, software)
            except StoreFlowError as e:
                await _keep_session(store, account, e)
                state.events.operation_failed(email, "purchase", e, e.code)
                raise

        await store.upsert(result.account)
        if result.relogged_in:
            state.events.session_refreshed(email, "purchase")
        state.events.purchase_completed(email, app_id, result.pricing_parameter.value)
        return result

    _run(_purchase_async())
    console.print(f"[green]✓ App {app_id} is now owned by {email}.[/green]")


async def _keep_session(store: AccountStore, account: Account, error: StoreFlowError):
    """
    Persists the session a failed flow left behind.

    After a relogin the refreshed snapshot is stored, so the new tokens and the
    cookies set by the rejected response stay together.
    """
    base = error.account or account
    cookies = error.cookies if error.cookies is not None else base.cookies
    updated = base.with_cookies(cookies)
    if updated != account:
        await store.upsert(updated)


@accounts_app.command(name="list")
def list_accounts():
    """List stored accounts."""
    accounts = _run(AccountStore(CONFIG_DIR).read_all())
    print_accounts_table(accounts)


@accounts_app.command()
def show(email: str = typer.Argument(..., help="Account email.")):
    """Show one stored account."""
    account = _run(AccountStore(CONFIG_DIR).read(email))
    print_account_detail(account)


@accounts_app.command()
def remove(
    email: str = typer.Argument(..., help="Account email."),
    force: bool = typer.Option(
        False, "--force", "-f", help="Bypass the confirmation prompt."
    ),
):
    """Remove a stored account."""
    if not force and not typer.confirm(f"Remove account '{email}'?"):
        console.print("[yellow]Operation cancelled.[/yellow]")
        raise typer.Abort()

    if _run(AccountStore(CONFIG_DIR).delete(email)):
        console.print(f"[green]✓ Removed '{email}'.[/green]")
    else:
        console.print(f"[yellow]No stored account for '{email}'.[/yellow]")


@accounts_app.command()
def seed():
    """Import the default account seeded from the environment."""
    if seed_default_account_from_env(CONFIG_DIR):
        console.print("[green]✓ Default account seeded from the environment.[/green]")

    default = read_default_account(CONFIG_DIR)
    if default is None:
        console.print(
            "[red]✗ No default account.[/red] Set [cyan]DEFAULT_APPLE_EMAIL[/cyan] "
            "and [cyan]DEFAULT_APPLE_PASSWORD[/cyan]."
        )
        raise typer.Exit(code=1)

    async def _import_async() -> bool:
        store = AccountStore(CONFIG_DIR)
        if await store.find(default.email):
            return False
        await store.upsert(
            Account(
                email=default.email,
                password=default.password,
                device_identifier=generate_device_identifier(),
            )
        )
        return True

    if _run(_import_async()):
        console.print(
            f"[green]✓ Added {default.email}.[/green] "
            f"Run [cyan]appstore-cli login {default.email}[/cyan] to sign in."
        )
    else:
        console.print(f"[dim]{default.email} is already stored.[/dim]")
