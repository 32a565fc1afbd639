"""sshvault init — Provision the encryption key, schema and default folder."""

from rich.console import Console

from sshvault.cli.runner import run

console = Console()


def init_vault():
    """Create the database and resolve the field encryption key.

    Without SSHVAULT_ENCRYPTION_KEY a key is generated and written to
    SSHVAULT_KEY_PATH (default ./data/key). Safe to run more than once.

    Example:
        sshvault init
    """
    async def _init(rt):
        folders = await rt.store.list_folders()
        connections = await rt.store.list_connections()
        return folders, connections

    with console.status("[dim]Initialising...[/dim]"):
        folders, connections = run(_init)

    from sshvault.config import SSHVaultConfig
    cfg = SSHVaultConfig()
    key_source = "SSHVAULT_ENCRYPTION_KEY" if cfg.encryption_key else cfg.key_path

    console.print()
    console.print("[bold green]Vault ready.[/bold green]")
    console.print(f"[bold]Key:[/bold]       {key_source}")
    console.print(f"[bold]Database:[/bold]  {cfg.database_url}")
    console.print(f"[bold]Contents:[/bold]  {len(folders)} folder(s), {len(connections)} connection(s)")
    console.print()
    console.print("[dim]Back up the key file: stored credentials cannot be decrypted without it.[/dim]")
