"""sshvault — SSH connection profiles with secrets encrypted at rest.

Usage:
    from sshvault.runtime import open_runtime

    rt = await open_runtime()
    conn = await rt.store.create_connection(
        {"name": "web1", "host": "10.0.0.5", "username": "root", "port": 22}
    )
    blob = await rt.codec.export_dataset("passphrase")
"""

from sshvault.types import (
    DEFAULT_FOLDER_NAME, Folder, Connection, ConnectionInput, DatasetSnapshot,
    ExportBlob, SSHTarget,
)
from sshvault.exceptions import (
    SSHVaultError, ConfigurationError, ValidationError, AuthenticationError,
    InvalidOperationError, StorageError,
)
from sshvault.version import __version__

__all__ = [
    "DEFAULT_FOLDER_NAME", "Folder", "Connection", "ConnectionInput", "DatasetSnapshot",
    "ExportBlob", "SSHTarget",
    "SSHVaultError", "ConfigurationError", "ValidationError", "AuthenticationError",
    "InvalidOperationError", "StorageError",
    "__version__",
]
