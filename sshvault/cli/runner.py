"""Shared plumbing for CLI commands: open the runtime, run one coroutine, report errors."""

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

import typer
from rich.console import Console

from sshvault.exceptions import AuthenticationError, ConfigurationError, SSHVaultError
from sshvault.runtime import Runtime, open_runtime

console = Console()
T = TypeVar("T")


def run(action: Callable[[Runtime], Awaitable[T]]) -> T:
    """Run *action* against a freshly opened runtime, then close it.

    Settings are read at call time so environment changes (and tests) take effect.
    Known errors print one red line and exit with status 1.
    """
    from sshvault.config import SSHVaultConfig

    async def _main() -> Any:
        rt = await open_runtime(SSHVaultConfig())
        try:
            return await action(rt)
        finally:
            await rt.close()

    try:
        return asyncio.run(_main())
    except ConfigurationError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        console.print("[dim]Check SSHVAULT_ENCRYPTION_KEY or the key file at SSHVAULT_KEY_PATH.[/dim]")
        raise typer.Exit(code=1)
    except AuthenticationError as exc:
        console.print(f"[red]Authentication failed:[/red] {exc}")
        raise typer.Exit(code=1)
    except SSHVaultError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1)
