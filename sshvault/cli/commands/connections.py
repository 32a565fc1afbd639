"""sshvault conn — manage connections and print SSH commands."""

from typing import List, Optional

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from sshvault.cli.runner import run
from sshvault.ssh import build_ssh_target

console = Console()


def _port_label(conn) -> str:
    return "dynamic" if conn.port_is_dynamic else str(conn.port)


def conn_list(
    folder: Optional[int] = typer.Option(None, "--folder", "-f", help="Only this folder ID"),
):
    """List connections grouped by folder. Passwords are never shown here."""
    async def _list(rt):
        return await rt.store.list_folders(), await rt.store.list_connections()

    folders, connections = run(_list)
    names = {f.id: f.name for f in folders}
    if folder is not None:
        connections = [c for c in connections if c.folder_id == folder]

    table = Table(box=box.ROUNDED, header_style="bold dim", title=f"[bold]{len(connections)} Connections[/bold]")
    table.add_column("ID", justify="right", width=5)
    table.add_column("Folder", style="dim", width=16)
    table.add_column("#", justify="right", width=4)
    table.add_column("Name", style="cyan", width=20)
    table.add_column("Target", width=36)
    table.add_column("Port", justify="right", width=8)
    for conn in connections:
        table.add_row(
            str(conn.id),
            names.get(conn.folder_id, str(conn.folder_id)),
            str(conn.sort_order),
            conn.name,
            f"{conn.username}@{conn.host}",
            _port_label(conn),
        )
    console.print(table)


def conn_show(
    connection_id: int = typer.Argument(..., help="Connection ID"),
    reveal: bool = typer.Option(False, "--reveal", help="Print the password"),
):
    """Show a decrypted connection."""
    conn = run(lambda rt: rt.store.get_connection(connection_id))
    if conn is None:
        console.print(f"[red]Error:[/red] connection {connection_id} not found")
        raise typer.Exit(code=1)
    password = conn.password if reveal else ("***" if conn.password else "[dim](none)[/dim]")
    console.print(f"[bold]{conn.name}[/bold] [dim](id: {conn.id}, folder: {conn.folder_id}, order: {conn.sort_order})[/dim]")
    console.print(f"  host:      {conn.host}")
    console.print(f"  username:  {conn.username}")
    console.print(f"  password:  {password}")
    console.print(f"  port:      {_port_label(conn)}")


def conn_add(
    name: str = typer.Option(..., "--name", "-n", help="Display name"),
    host: str = typer.Option(..., "--host", "-H", help="Hostname or IP"),
    username: str = typer.Option(..., "--user", "-u", help="Login user"),
    password: str = typer.Option("", "--password", "-p", prompt=True, hide_input=True, help="Password (may be empty)"),
    port: Optional[int] = typer.Option(None, "--port", help="Static port"),
    dynamic: bool = typer.Option(False, "--dynamic", help="Port is supplied at connect time"),
    folder: Optional[int] = typer.Option(None, "--folder", "-f", help="Folder ID (default: Unsorted)"),
):
    """Create a connection. host, username and password are stored encrypted."""
    fields = {
        "name": name,
        "host": host,
        "username": username,
        "password": password,
        "port": port,
        "port_is_dynamic": dynamic,
        "folder_id": folder,
    }
    conn = run(lambda rt: rt.store.create_connection(fields))
    console.print(f"[green]Created connection[/green] {conn.name} [dim](id: {conn.id}, folder: {conn.folder_id})[/dim]")


def conn_edit(
    connection_id: int = typer.Argument(..., help="Connection ID"),
    name: Optional[str] = typer.Option(None, "--name", "-n"),
    host: Optional[str] = typer.Option(None, "--host", "-H"),
    username: Optional[str] = typer.Option(None, "--user", "-u"),
    password: Optional[str] = typer.Option(None, "--password", "-p"),
    port: Optional[int] = typer.Option(None, "--port"),
    dynamic: Optional[bool] = typer.Option(None, "--dynamic/--static"),
    folder: Optional[int] = typer.Option(None, "--folder", "-f", help="Move to folder ID"),
):
    """Change selected fields of a connection; the rest are kept."""
    overrides = {
        "name": name,
        "host": host,
        "username": username,
        "password": password,
        "port": port,
        "port_is_dynamic": dynamic,
        "folder_id": folder,
    }

    async def _edit(rt):
        existing = await rt.store.get_connection(connection_id)
        if existing is None:
            return None
        fields = existing.model_dump()
        fields.update({k: v for k, v in overrides.items() if v is not None})
        if folder is None:
            fields.pop("sort_order")
        return await rt.store.update_connection(connection_id, fields)

    conn = run(_edit)
    if conn is None:
        console.print(f"[red]Error:[/red] connection {connection_id} not found")
        raise typer.Exit(code=1)
    console.print(f"[green]Updated connection[/green] {conn.name} [dim](id: {conn.id}, folder: {conn.folder_id})[/dim]")


def conn_remove(connection_id: int = typer.Argument(..., help="Connection ID")):
    """Delete a connection."""
    deleted = run(lambda rt: rt.store.delete_connection(connection_id))
    if not deleted:
        console.print(f"[red]Error:[/red] connection {connection_id} not found")
        raise typer.Exit(code=1)
    console.print(f"[green]Deleted connection[/green] {connection_id}")


def conn_reorder(
    folder_id: int = typer.Argument(..., help="Folder ID"),
    ordered_ids: List[int] = typer.Argument(..., help="Connection IDs in the new order"),
):
    """Put connections into FOLDER_ID in the given order (positions 1..n)."""
    run(lambda rt: rt.store.reorder_connections(folder_id, ordered_ids))
    console.print(f"[green]Reordered[/green] {len(ordered_ids)} connection(s) in folder {folder_id}")


def conn_ssh(
    connection_id: int = typer.Argument(..., help="Connection ID"),
    port: Optional[int] = typer.Option(None, "--port", help="Port for dynamic connections"),
    url: bool = typer.Option(False, "--url", help="Print the ssh:// URL instead"),
):
    """Print the SSH command (or URL) for a connection."""
    async def _target(rt):
        conn = await rt.store.get_connection(connection_id)
        if conn is None:
            return None
        return build_ssh_target(conn, port, reverse_target=rt.config.reverse_ssh_target)

    target = run(_target)
    if target is None:
        console.print(f"[red]Error:[/red] connection {connection_id} not found")
        raise typer.Exit(code=1)
    typer.echo(target.ssh_url if url else target.ssh_command)
