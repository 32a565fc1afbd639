"""sshvault folders — list, add, rename and delete folders."""

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from sshvault.cli.runner import run

console = Console()


def folders_list():
    """List folders in display order with their connection counts."""
    async def _list(rt):
        return await rt.store.list_folders(), await rt.store.list_connections()

    folders, connections = run(_list)
    counts: dict[int, int] = {}
    for conn in connections:
        counts[conn.folder_id] = counts.get(conn.folder_id, 0) + 1

    table = Table(box=box.ROUNDED, header_style="bold dim", title=f"[bold]{len(folders)} Folders[/bold]")
    table.add_column("ID", justify="right", width=5)
    table.add_column("Name", style="cyan", width=30)
    table.add_column("Order", justify="right", width=6)
    table.add_column("Connections", justify="right", width=12)
    for folder in folders:
        name = f"{folder.name} [dim](default)[/dim]" if folder.is_default else folder.name
        table.add_row(str(folder.id), name, str(folder.sort_order), str(counts.get(folder.id, 0)))
    console.print(table)


def folder_add(name: str = typer.Argument(..., help="Folder name")):
    """Create a folder at the end of the folder list."""
    folder = run(lambda rt: rt.store.create_folder(name))
    console.print(f"[green]Created folder[/green] {folder.name} [dim](id: {folder.id})[/dim]")


def folder_rename(
    folder_id: int = typer.Argument(..., help="Folder ID"),
    name: str = typer.Argument(..., help="New name"),
):
    """Rename a folder. The default folder cannot be renamed."""
    folder = run(lambda rt: rt.store.update_folder(folder_id, name))
    if folder is None:
        console.print(f"[red]Error:[/red] folder {folder_id} not found")
        raise typer.Exit(code=1)
    console.print(f"[green]Renamed folder[/green] {folder_id} → {folder.name}")


def folder_remove(folder_id: int = typer.Argument(..., help="Folder ID")):
    """Delete a folder. Its connections move to the default folder."""
    deleted = run(lambda rt: rt.store.delete_folder(folder_id))
    if not deleted:
        console.print(f"[red]Error:[/red] folder {folder_id} not found")
        raise typer.Exit(code=1)
    console.print(f"[green]Deleted folder[/green] {folder_id}")
