"""sshvault export / import — passphrase-encrypted backups."""

import json
from pathlib import Path

import typer
from rich.console import Console

from sshvault.cli.runner import run

console = Console()


def export_cmd(
    out: Path = typer.Option(Path("sshvault-export.json"), "--out", "-o", help="Output file"),
    passphrase: str = typer.Option(
        ..., "--passphrase", prompt=True, hide_input=True, confirmation_prompt=True,
        help="Passphrase protecting the backup",
    ),
):
    """Export every folder and connection, encrypted under PASSPHRASE.

    The backup does not depend on the local key file.

    Example:
        sshvault export --out backup.json
    """
    blob = run(lambda rt: rt.codec.export_dataset(passphrase))
    out.write_text(json.dumps(blob.model_dump(), indent=2) + "\n")
    console.print(f"[green]Exported[/green] to {out}")


def import_cmd(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Backup written by 'sshvault export'"),
    passphrase: str = typer.Option(..., "--passphrase", prompt=True, hide_input=True, help="Backup passphrase"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask before replacing data"),
):
    """Replace ALL folders and connections with the contents of a backup.

    Nothing changes if the passphrase is wrong or the backup is invalid.
    """
    try:
        blob = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        console.print(f"[red]Error:[/red] cannot read {path}: {exc}")
        raise typer.Exit(code=1)

    if not yes:
        typer.confirm("This replaces every folder and connection. Continue?", abort=True)

    snapshot = run(lambda rt: rt.codec.import_dataset(passphrase, blob))
    console.print(
        f"[green]Imported[/green] {len(snapshot.folders)} folder(s), "
        f"{len(snapshot.connections)} connection(s)"
    )
