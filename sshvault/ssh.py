"""SSH connection strings for a decrypted connection. Pure formatting, no networking."""

import re
from typing import Any, Optional
from urllib.parse import quote

from sshvault.exceptions import ValidationError
from sshvault.types import Connection, SSHTarget
from sshvault.validation import parse_positive_int

DEFAULT_REVERSE_TARGET = "root@reverse-ssh-production"

_SCHEME = re.compile(r"^[a-z]+://", re.IGNORECASE)


def sanitize_host(host: str) -> str:
    """Strip a URL scheme, any path and a ``:port`` suffix: ``ssh://h:22/x`` → ``h``."""
    bare = _SCHEME.sub("", host or "")
    return bare.split("/")[0].split(":")[0]


def effective_port(connection: Connection, port: Optional[Any] = None) -> int:
    """The runtime *port* for dynamic connections, the stored port otherwise.

    Raises:
        ValidationError: no positive port is available.
    """
    chosen = parse_positive_int(port) if connection.port_is_dynamic else connection.port
    if chosen is None or chosen <= 0:
        raise ValidationError("port required", field="port")
    return chosen


def build_ssh_target(
    connection: Connection,
    port: Optional[Any] = None,
    reverse_target: str = DEFAULT_REVERSE_TARGET,
) -> SSHTarget:
    """Build the ``ssh://`` URL and shell command for *connection*.

    Dynamic-port connections go through the reverse tunnel host
    (*reverse_target*); static ones connect directly.
    """
    resolved = effective_port(connection, port)
    host = sanitize_host(connection.host)
    user = quote(connection.username or "", safe="!~*'()")
    if connection.port_is_dynamic:
        command = f"ssh -p {resolved} {reverse_target}"
    else:
        command = f"ssh {connection.username}@{host} -p {resolved}"
    return SSHTarget(ssh_url=f"ssh://{user}@{host}:{resolved}", ssh_command=command)
