"""sshvault CLI — Typer application."""

import typer
from rich.console import Console

from sshvault.version import __version__

app = typer.Typer(
    name="sshvault",
    help="sshvault — SSH connection profiles with credentials encrypted at rest.",
    no_args_is_help=True,
    invoke_without_command=True,
)
console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", "-v", is_eager=True, help="Show version"),
):
    """sshvault CLI."""
    if version:
        console.print(f"sshvault v{__version__}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        return

    from sshvault.config import SSHVaultConfig, configure_logging
    configure_logging(SSHVaultConfig().log_level)


# ── Setup ──────────────────────────────────────────────────────────────────────
from sshvault.cli.commands import init, config  # noqa: E402

app.command(name="init", help="Provision the encryption key and database")(init.init_vault)
app.command(name="config", help="Show resolved configuration")(config.config_show)

# ── Folders & connections ──────────────────────────────────────────────────────
from sshvault.cli.commands import folders, connections  # noqa: E402

folders_app = typer.Typer(name="folders", help="Manage folders.")
folders_app.command("list", help="List folders")(folders.folders_list)
folders_app.command("add", help="Create a folder")(folders.folder_add)
folders_app.command("rename", help="Rename a folder")(folders.folder_rename)
folders_app.command("rm", help="Delete a folder (its connections move to Unsorted)")(folders.folder_remove)
app.add_typer(folders_app)

conn_app = typer.Typer(name="conn", help="Manage SSH connections.")
conn_app.command("list", help="List connections")(connections.conn_list)
conn_app.command("show", help="Show one connection")(connections.conn_show)
conn_app.command("add", help="Create a connection")(connections.conn_add)
conn_app.command("edit", help="Edit a connection")(connections.conn_edit)
conn_app.command("rm", help="Delete a connection")(connections.conn_remove)
conn_app.command("reorder", help="Set the order of connections in a folder")(connections.conn_reorder)
conn_app.command("ssh", help="Print the SSH command for a connection")(connections.conn_ssh)
app.add_typer(conn_app)

# ── Backup ─────────────────────────────────────────────────────────────────────
from sshvault.cli.commands import transfer  # noqa: E402

app.command(name="export", help="Write a passphrase-encrypted backup")(transfer.export_cmd)
app.command(name="import", help="Replace all data from an encrypted backup")(transfer.import_cmd)


if __name__ == "__main__":
    app()
