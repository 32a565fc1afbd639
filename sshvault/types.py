"""All shared types. Everything imports from here.

Attributes are snake_case; serialized records use camelCase keys
(``sortOrder``, ``portIsDynamic``, ``folderId``) so exported payloads keep the
format other instances produce. Both spellings are accepted on input.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


DEFAULT_FOLDER_NAME = "Unsorted"
EXPORT_VERSION = 1


class _Record(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ── Stored records ─────────────────────────────────────────────────────

class Folder(_Record):
    """A named group of connections."""
    id: int
    name: str
    sort_order: int
    is_default: bool = False            # exactly one folder, named DEFAULT_FOLDER_NAME


class Connection(_Record):
    """A decrypted connection profile. Secrets are cleartext only in memory."""
    id: int
    name: str
    host: str
    username: str
    password: str = ""
    port: Optional[int] = None          # None when port_is_dynamic
    port_is_dynamic: bool = False
    folder_id: int
    sort_order: int


class ConnectionInput(_Record):
    """Normalized create/update payload (see ``sshvault.validation``)."""
    name: str
    host: str
    username: str
    password: str = ""
    port: Optional[int] = None
    port_is_dynamic: bool = False
    folder_id: Optional[int] = None     # None → default folder
    sort_order: Optional[int] = None    # None → end of folder


class FolderInput(_Record):
    """Normalized folder from an import payload."""
    source_id: Optional[int] = None     # id in the exporting instance, used to remap references
    name: str
    sort_order: int
    is_default: bool = False


class DatasetSnapshot(_Record):
    """Every folder and connection, in listing order."""
    folders: list[Folder] = Field(default_factory=list)
    connections: list[Connection] = Field(default_factory=list)


# ── Transit ────────────────────────────────────────────────────────────

class ExportBlob(BaseModel):
    """Passphrase-encrypted dataset. Binary fields are standard base64."""
    version: int = EXPORT_VERSION
    salt: str
    iv: str
    tag: str
    data: str


class SSHTarget(_Record):
    """Connection strings for one connection and effective port."""
    ssh_url: str
    ssh_command: str
