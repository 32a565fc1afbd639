"""CredentialStore — folders and SSH connection profiles, secrets encrypted at rest.

``host``, ``username`` and ``password`` go through :class:`FieldCipher` on
the way in and out; only tokens reach the database.

Every mutation runs under one writer lock and inside one transaction, so
concurrent callers never see a connection pointing at a deleted folder or a
half-replaced dataset.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sshvault.audit import log_event
from sshvault.credentials.encryption import FieldCipher
from sshvault.db.database import unit_of_work
from sshvault.db.models import ConnectionModel, FolderModel
from sshvault.db.repository import Repository
from sshvault.exceptions import InvalidOperationError, ValidationError
from sshvault.types import (
    DEFAULT_FOLDER_NAME,
    Connection,
    ConnectionInput,
    DatasetSnapshot,
    Folder,
    FolderInput,
)
from sshvault.validation import normalize_connection, normalize_folder_name, parse_positive_int

logger = logging.getLogger(__name__)


class CredentialStore:
    """CRUD over folders and connections.

    Args:
        session_factory: async session factory bound to an initialised schema.
        cipher: the process-wide :class:`FieldCipher`.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], cipher: FieldCipher) -> None:
        self._session_factory = session_factory
        self._cipher = cipher
        self._write_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Record conversion
    # ------------------------------------------------------------------

    def _to_connection(self, record: ConnectionModel) -> Connection:
        return Connection(
            id=record.id,
            name=record.name,
            host=self._cipher.decrypt(record.host_enc),
            username=self._cipher.decrypt(record.username_enc),
            password=self._cipher.decrypt(record.password_enc),
            port=record.port,
            port_is_dynamic=bool(record.port_is_dynamic),
            folder_id=record.folder_id,
            sort_order=record.sort_order,
        )

    @staticmethod
    def _to_folder(record: FolderModel) -> Folder:
        return Folder(
            id=record.id,
            name=record.name,
            sort_order=record.sort_order,
            is_default=bool(record.is_default),
        )

    def _encrypted_columns(self, data: ConnectionInput) -> dict[str, Any]:
        return {
            "name": data.name,
            "host_enc": self._cipher.encrypt(data.host),
            "username_enc": self._cipher.encrypt(data.username),
            "password_enc": self._cipher.encrypt(data.password),
            "port": None if data.port_is_dynamic else data.port,
            "port_is_dynamic": data.port_is_dynamic,
        }

    # ------------------------------------------------------------------
    # Default folder
    # ------------------------------------------------------------------

    async def _ensure_default_folder(self, repo: Repository) -> FolderModel:
        """Return the default folder, creating it if absent. Caller holds the writer lock."""
        folder = await repo.get_default_folder()
        if folder is not None:
            return folder
        # Databases written before the is_default flag existed identify it by name
        existing = await repo.get_folder_by_name(DEFAULT_FOLDER_NAME)
        if existing is not None:
            return await repo.mark_default(existing)
        folder = await repo.add_folder(
            DEFAULT_FOLDER_NAME, await repo.next_folder_sort_order(), is_default=True
        )
        logger.info("[Store] Created default folder '%s' (id=%s)", DEFAULT_FOLDER_NAME, folder.id)
        return folder

    async def _resolve_folder(self, repo: Repository, folder_id: Optional[int]) -> FolderModel:
        if folder_id is None:
            return await self._ensure_default_folder(repo)
        folder = await repo.get_folder(folder_id)
        if folder is None:
            raise ValidationError(f"folder {folder_id} not found", field="folder_id")
        return folder

    async def initialize(self) -> None:
        """Make sure the default folder exists. Call once after ``init_db``."""
        await self.default_folder_id()

    async def default_folder_id(self) -> int:
        async with self._write_lock:
            async with unit_of_work(self._session_factory) as repo:
                folder = await self._ensure_default_folder(repo)
                return folder.id

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    async def list_connections(self) -> list[Connection]:
        """All connections ordered by (folder_id, sort_order, name), decrypted."""
        async with unit_of_work(self._session_factory) as repo:
            records = await repo.list_connections()
        return [self._to_connection(r) for r in records]

    async def get_connection(self, connection_id: int) -> Optional[Connection]:
        async with unit_of_work(self._session_factory) as repo:
            record = await repo.get_connection(connection_id)
        return self._to_connection(record) if record is not None else None

    async def create_connection(self, fields: Mapping[str, Any] | ConnectionInput) -> Connection:
        """Validate, encrypt and insert a connection.

        ``folder_id`` defaults to the default folder; ``sort_order`` defaults
        to the end of the folder.

        Raises:
            ValidationError: blank name/host/username, missing static port, or
                unknown folder.
        """
        data = normalize_connection(fields)
        async with self._write_lock:
            async with unit_of_work(self._session_factory) as repo:
                await self._ensure_default_folder(repo)
                folder = await self._resolve_folder(repo, data.folder_id)
                sort_order = data.sort_order or await repo.next_sort_order(folder.id)
                record = await repo.add_connection(
                    **self._encrypted_columns(data),
                    folder_id=folder.id,
                    sort_order=sort_order,
                )
                connection_id = record.id

        log_event("connection_created", connection_id=connection_id, folder_id=folder.id)
        return Connection(
            id=connection_id,
            folder_id=folder.id,
            sort_order=sort_order,
            **data.model_dump(exclude={"folder_id", "sort_order"}),
        )

    async def update_connection(
        self, connection_id: int, fields: Mapping[str, Any] | ConnectionInput
    ) -> Optional[Connection]:
        """Replace a connection's fields. Returns ``None`` for an unknown id.

        Without a ``folder_id`` the connection stays in its folder. Moving to
        another folder always places it at the end of that folder.
        """
        data = normalize_connection(fields)
        async with self._write_lock:
            async with unit_of_work(self._session_factory) as repo:
                record = await repo.get_connection(connection_id)
                if record is None:
                    return None
                # No folder_id keeps the current folder; it does not reset to the default folder
                if data.folder_id is None:
                    folder_id = record.folder_id
                else:
                    folder_id = (await self._resolve_folder(repo, data.folder_id)).id

                sort_order = data.sort_order or record.sort_order
                if folder_id != record.folder_id:
                    sort_order = await repo.next_sort_order(folder_id)

                await repo.update_connection(record, {
                    **self._encrypted_columns(data),
                    "folder_id": folder_id,
                    "sort_order": sort_order,
                })

        log_event("connection_updated", connection_id=connection_id, folder_id=folder_id)
        return Connection(
            id=connection_id,
            folder_id=folder_id,
            sort_order=sort_order,
            **data.model_dump(exclude={"folder_id", "sort_order"}),
        )

    async def delete_connection(self, connection_id: int) -> bool:
        async with self._write_lock:
            async with unit_of_work(self._session_factory) as repo:
                deleted = await repo.delete_connection(connection_id)
        if deleted:
            log_event("connection_deleted", connection_id=connection_id)
        return deleted

    async def reorder_connections(self, folder_id: Optional[int], ordered_ids: Iterable[Any]) -> bool:
        """Make *ordered_ids* the 1-based order of *folder_id* (default folder if ``None``).

        Ids from other folders are moved into *folder_id*; unknown ids are ignored.

        Raises:
            ValidationError: empty id list or unknown folder.
        """
        ids = [i for i in (parse_positive_int(raw) for raw in ordered_ids) if i is not None]
        if not ids:
            raise ValidationError("orderedIds required", field="ordered_ids")

        async with self._write_lock:
            async with unit_of_work(self._session_factory) as repo:
                folder = await self._resolve_folder(repo, folder_id)
                for position, connection_id in enumerate(ids, start=1):
                    await repo.set_position(connection_id, folder.id, position)

        log_event("connections_reordered", folder_id=folder.id, count=len(ids))
        return True

    # ------------------------------------------------------------------
    # Folders
    # ------------------------------------------------------------------

    async def list_folders(self) -> list[Folder]:
        """All folders ordered by (sort_order, name). Creates the default folder if absent."""
        async with unit_of_work(self._session_factory) as repo:
            records = await repo.list_folders()
        if not any(r.is_default for r in records):
            await self.default_folder_id()
            async with unit_of_work(self._session_factory) as repo:
                records = await repo.list_folders()
        return [self._to_folder(r) for r in records]

    async def get_folder(self, folder_id: int) -> Optional[Folder]:
        async with unit_of_work(self._session_factory) as repo:
            record = await repo.get_folder(folder_id)
        return self._to_folder(record) if record is not None else None

    async def create_folder(self, name: Any) -> Folder:
        """Raises ValidationError for a blank or duplicate name."""
        trimmed = normalize_folder_name(name)
        async with self._write_lock:
            async with unit_of_work(self._session_factory) as repo:
                await self._ensure_default_folder(repo)
                if await repo.get_folder_by_name(trimmed) is not None:
                    raise ValidationError(f"folder '{trimmed}' already exists", field="name")
                record = await repo.add_folder(trimmed, await repo.next_folder_sort_order())
                folder = self._to_folder(record)

        log_event("folder_created", folder_id=folder.id)
        return folder

    async def update_folder(self, folder_id: int, name: Any) -> Optional[Folder]:
        """Rename a folder. Returns ``None`` for an unknown id.

        Raises:
            ValidationError: blank or duplicate name.
            InvalidOperationError: renaming the default folder, or renaming
                any folder to the reserved default name.
        """
        trimmed = normalize_folder_name(name)
        async with self._write_lock:
            async with unit_of_work(self._session_factory) as repo:
                await self._ensure_default_folder(repo)
                record = await repo.get_folder(folder_id)
                if record is None:
                    return None
                if record.is_default:
                    raise InvalidOperationError("cannot rename the default folder", folder_id=folder_id)
                if trimmed == DEFAULT_FOLDER_NAME:
                    raise InvalidOperationError("reserved folder name", folder_id=folder_id)
                clash = await repo.get_folder_by_name(trimmed)
                if clash is not None and clash.id != record.id:
                    raise ValidationError(f"folder '{trimmed}' already exists", field="name")
                folder = self._to_folder(await repo.rename_folder(record, trimmed))

        log_event("folder_renamed", folder_id=folder_id)
        return folder

    async def delete_folder(self, folder_id: int) -> bool:
        """Move the folder's connections to the end of the default folder, then delete it.

        Both steps share one transaction. Returns ``False`` for an unknown id.

        Raises:
            InvalidOperationError: *folder_id* is the default folder.
        """
        async with self._write_lock:
            async with unit_of_work(self._session_factory) as repo:
                default = await self._ensure_default_folder(repo)
                if folder_id == default.id:
                    raise InvalidOperationError("cannot delete the default folder", folder_id=folder_id)
                if await repo.get_folder(folder_id) is None:
                    return False
                moved = await repo.list_connections(folder_id=folder_id)
                start = await repo.next_sort_order(default.id)
                for offset, record in enumerate(moved):
                    await repo.set_position(record.id, default.id, start + offset)
                await repo.delete_folder(folder_id)

        log_event("folder_deleted", folder_id=folder_id, moved=len(moved), to_folder_id=default.id)
        return True

    # ------------------------------------------------------------------
    # Whole dataset
    # ------------------------------------------------------------------

    async def snapshot(self) -> DatasetSnapshot:
        """Every folder and connection, decrypted, as of one point in time.

        SQLite autocommits plain SELECTs, so both reads run under the writer
        lock; a concurrent ``replace_all`` lands entirely before or after.
        """
        async with self._write_lock:
            async with unit_of_work(self._session_factory) as repo:
                await self._ensure_default_folder(repo)
                folders = await repo.list_folders()
                connections = await repo.list_connections()
        return DatasetSnapshot(
            folders=[self._to_folder(f) for f in folders],
            connections=[self._to_connection(c) for c in connections],
        )

    async def replace_all(
        self, folders: list[FolderInput], connections: list[ConnectionInput]
    ) -> DatasetSnapshot:
        """Atomically replace every folder and connection.

        ``folders`` must contain exactly one default folder. Each connection's
        ``folder_id`` names a ``FolderInput.source_id``; unmatched or ``None``
        references land in the default folder. Records get fresh ids.

        A failure at any point rolls back and leaves the previous dataset intact.
        """
        defaults = [f for f in folders if f.is_default]
        if len(defaults) != 1:
            raise ValidationError("import set must contain exactly one default folder", field="folders")

        async with self._write_lock:
            async with unit_of_work(self._session_factory) as repo:
                await repo.clear_all()

                id_map: dict[int, int] = {}
                default_id = 0
                for folder in folders:
                    record = await repo.add_folder(folder.name, folder.sort_order, is_default=folder.is_default)
                    if folder.source_id is not None:
                        id_map.setdefault(folder.source_id, record.id)
                    if folder.is_default:
                        default_id = record.id

                for data in connections:
                    folder_id = id_map.get(data.folder_id, default_id)
                    sort_order = data.sort_order or await repo.next_sort_order(folder_id)
                    await repo.add_connection(
                        **self._encrypted_columns(data),
                        folder_id=folder_id,
                        sort_order=sort_order,
                    )

                folder_records = await repo.list_folders()
                connection_records = await repo.list_connections()
                result = DatasetSnapshot(
                    folders=[self._to_folder(f) for f in folder_records],
                    connections=[self._to_connection(c) for c in connection_records],
                )

        log_event("dataset_replaced", folders=len(result.folders), connections=len(result.connections))
        return result
