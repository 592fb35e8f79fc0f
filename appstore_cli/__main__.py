"""
Entry point for ``appstore-cli`` and ``python -m appstore_cli``.

Bootstraps the environment-seeded default account, then runs the Typer app
with a last-resort error panel for anything the commands did not render.
"""

import asyncio
import logging
import os
import sys

import typer
from rich.console import Console

from appstore_cli.cli.app import CONFIG_DIR, app
from appstore_cli.cli.formatters import format_error_with_suggestions
from appstore_cli.exceptions import AppStoreCliError
from appstore_cli.storage.default_account import seed_default_account_from_env

log = logging.getLogger("appstore_cli")


def main() -> None:
    if os.name == "nt":
        try:
            sys.stdout.reconfigure(encoding="utf-8")
            sys.stderr.reconfigure(encoding="utf-8")
        except (TypeError, AttributeError):
            pass

    console = Console(stderr=True)

    try:
        seed_default_account_from_env(CONFIG_DIR)
    except OSError as e:
        log.warning(f"Could not write the default account file: {e}")

    try:
        app()
    except (typer.Exit, typer.Abort):
        pass
    except (KeyboardInterrupt, asyncio.CancelledError):
        console.print("\n[yellow]Operation cancelled.[/yellow]")
        sys.exit(130)
    except AppStoreCliError as e:
        console.print(format_error_with_suggestions(e))
        sys.exit(1)
    except Exception as e:
        console.print(format_error_with_suggestions(e, {"type": "Unexpected"}))
        log.debug("Full traceback:", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
