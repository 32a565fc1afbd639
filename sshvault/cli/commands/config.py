"""sshvault config — Show resolved sshvault configuration."""

from rich import box
from rich.console import Console
from rich.table import Table

console = Console()

ENV_PREFIX = "SSHVAULT_"

# Display grouping; every settings field not listed here is shown under "Other"
_GROUPS = {
    "App": ("app_name", "debug", "log_level"),
    "Storage": ("database_url", "key_path", "encryption_key"),
    "SSH": ("reverse_ssh_target",),
}
_SECRET_FIELDS = frozenset({"encryption_key"})


def _redact(value: str) -> str:
    return f"set ({len(value)} chars, hidden)"


def _grouped_fields(field_names):
    listed = {name for names in _GROUPS.values() for name in names}
    groups = list(_GROUPS.items())
    rest = tuple(name for name in field_names if name not in listed)
    if rest:
        groups.append(("Other", rest))
    return groups


def config_show():
    """Print every setting with its value and the environment variable behind it.

    Values come from SSHVAULT_* variables and .env. The encryption key is
    never printed.

    Example:
        sshvault config
    """
    from sshvault.config import SSHVaultConfig
    cfg = SSHVaultConfig()

    table = Table(box=box.SIMPLE_HEAVY, header_style="bold dim", title="[bold]sshvault settings[/bold]")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_column("Environment", style="dim")

    for index, (group, names) in enumerate(_grouped_fields(type(cfg).model_fields)):
        if index:
            table.add_section()
        table.add_row(f"[bold]{group}[/bold]", "", "")
        for name in names:
            value = getattr(cfg, name)
            if value in (None, ""):
                shown = "[dim]-[/dim]"
            elif name in _SECRET_FIELDS:
                shown = _redact(str(value))
            else:
                shown = str(value)
            table.add_row(f"  {name}", shown, ENV_PREFIX + name.upper())

    console.print(table)
    if not cfg.encryption_key:
        console.print(f"[dim]No SSHVAULT_ENCRYPTION_KEY: the key file at {cfg.key_path} is used.[/dim]")
