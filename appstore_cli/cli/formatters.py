"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from appstore_cli.models.account import Account, DownloadOutput


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "AuthenticationError": [
            "• Verify the Apple ID and password.",
            "• If two-factor authentication is enabled, pass --code.",
        ],
        "DownloadError": [
            "• Make sure the account owns the app (run `purchase` first).",
            "• Sign in again with `appstore-cli login` if the session is stale.",
        ],
        "PurchaseError": [
            "• Only free apps can be acquired.",
            "• Check that the app is available in the account's storefront.",
        ],
        "MalformedWireFormat": [
            "• The store returned an unexpected response.",
            "• Run the command with -vv for detailed logs.",
        ],
        "TransportError": [
            "• A network connection issue occurred.",
            "• Increase `timeout_seconds` in the configuration file.",
            "• Please try again in a few minutes.",
        ],
        "AccountNotFoundError": [
            "• Sign in first with `appstore-cli login <EMAIL>`.",
            "• List stored accounts with `appstore-cli accounts list`.",
        ],
        "ConfigurationError": [
            "• Check the configuration file with `appstore-cli --show-config`.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    code = getattr(error, "code", None) or getattr(error, "failure_type", None)
    if code:
        error_text.append(f" [code {code}]", style="dim")

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the current configuration."""
    console = Console()
    content = "\n".join(f"{key} = {value}" for key, value in sorted(config_data.items()))
    console.print(
        Panel(
            content,
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_accounts_table(accounts: list[Account]):
    """Displays stored accounts without any credentials."""
    console = Console()
    if not accounts:
        console.print("[yellow]No stored accounts.[/yellow]")
        return

    table = Table(title="Accounts", title_style="bold cyan")
    table.add_column("Email", style="cyan")
    table.add_column("Name")
    table.add_column("Store", justify="right")
    table.add_column("Pod", justify="right")
    table.add_column("Signed in", justify="center")

    for account in accounts:
        signed_in = bool(account.password_token and account.directory_services_identifier)
        table.add_row(
            account.email,
            account.display_name,
            account.store_id or "--",
            account.pod or "--",
            "[green]✓[/green]" if signed_in else "[red]✗[/red]",
        )
    console.print(table)


def print_account_detail(account: Account):
    """Displays one account's identity fields."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("Name:", account.display_name)
    table.add_row("Email:", account.email)
    table.add_row("Apple ID:", account.apple_id or account.email)
    table.add_row("Storefront:", account.store_front or "--")
    table.add_row("DSID:", account.directory_services_identifier or "--")
    table.add_row("Device ID:", account.device_identifier)
    if account.pod:
        table.add_row("Pod:", account.pod)
    table.add_row("Cookies:", str(len(account.cookies)))

    console.print(Panel(table, title="Account", border_style="cyan", expand=False))


def print_download_summary(app_id: int, output: DownloadOutput):
    """Shows the essentials of a download ticket."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("App ID:", str(app_id))
    table.add_row("Version:", f"{output.bundle_short_version_string} ({output.bundle_version})")
    table.add_row("Signatures:", str(len(output.sinfs)))
    table.add_row("URL:", output.download_url)

    console.print(
        Panel(table, title="[green]Download Ticket[/green]", border_style="green", expand=False)
    )
