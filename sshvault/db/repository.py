"""Data access layer.

This is the ONLY layer that talks to the database. It never commits:
transactions are owned by ``unit_of_work`` in the calling store method.
Values are stored as given; encryption happens in the store.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from sshvault.db.models import ConnectionModel, FolderModel


class Repository:
    """All database operations for folders and connections."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # ── Folders ──
    async def list_folders(self) -> list[FolderModel]:
        """List folders by (sort_order, name)."""
        result = await self.session.execute(
            select(FolderModel).order_by(FolderModel.sort_order, FolderModel.name)
        )
        return list(result.scalars().all())

    async def get_folder(self, folder_id: int) -> Optional[FolderModel]:
        result = await self.session.execute(
            select(FolderModel).where(FolderModel.id == folder_id)
        )
        return result.scalar_one_or_none()

    async def get_folder_by_name(self, name: str) -> Optional[FolderModel]:
        result = await self.session.execute(
            select(FolderModel).where(FolderModel.name == name)
        )
        return result.scalar_one_or_none()

    async def get_default_folder(self) -> Optional[FolderModel]:
        result = await self.session.execute(
            select(FolderModel).where(FolderModel.is_default == True)  # noqa: E712
        )
        return result.scalar_one_or_none()

    async def next_folder_sort_order(self) -> int:
        result = await self.session.execute(
            select(func.coalesce(func.max(FolderModel.sort_order), 0))
        )
        return int(result.scalar_one()) + 1

    async def add_folder(self, name: str, sort_order: int, is_default: bool = False) -> FolderModel:
        """Insert a folder and flush so the id is assigned."""
        record = FolderModel(name=name, sort_order=sort_order, is_default=is_default)
        self.session.add(record)
        await self.session.flush()
        return record

    async def rename_folder(self, record: FolderModel, name: str) -> FolderModel:
        record.name = name
        await self.session.flush()
        return record

    async def mark_default(self, record: FolderModel) -> FolderModel:
        record.is_default = True
        await self.session.flush()
        return record

    async def delete_folder(self, folder_id: int) -> bool:
        result = await self.session.execute(
            delete(FolderModel).where(FolderModel.id == folder_id)
        )
        return result.rowcount > 0

    # ── Connections ──
    async def list_connections(self, folder_id: Optional[int] = None) -> list[ConnectionModel]:
        """List connections by (folder_id, sort_order, name), optionally for one folder."""
        stmt = select(ConnectionModel)
        if folder_id is not None:
            stmt = stmt.where(ConnectionModel.folder_id == folder_id)
        stmt = stmt.order_by(ConnectionModel.folder_id, ConnectionModel.sort_order, ConnectionModel.name)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_connection(self, connection_id: int) -> Optional[ConnectionModel]:
        result = await self.session.execute(
            select(ConnectionModel).where(ConnectionModel.id == connection_id)
        )
        return result.scalar_one_or_none()

    async def next_sort_order(self, folder_id: int) -> int:
        """max(sort_order) + 1 within *folder_id* (1 for an empty folder)."""
        result = await self.session.execute(
            select(func.coalesce(func.max(ConnectionModel.sort_order), 0)).where(
                ConnectionModel.folder_id == folder_id
            )
        )
        return int(result.scalar_one()) + 1

    async def add_connection(self, **columns) -> ConnectionModel:
        record = ConnectionModel(**columns)
        self.session.add(record)
        await self.session.flush()
        return record

    async def update_connection(self, record: ConnectionModel, updates: dict) -> ConnectionModel:
        """Apply column updates to a loaded connection."""
        allowed = {
            "name", "host_enc", "username_enc", "password_enc", "port",
            "port_is_dynamic", "folder_id", "sort_order",
        }
        bad = set(updates) - allowed
        if bad:
            raise ValueError(f"Unknown connection update keys: {bad}")
        for key, value in updates.items():
            setattr(record, key, value)
        await self.session.flush()
        return record

    async def set_position(self, connection_id: int, folder_id: int, sort_order: int) -> bool:
        result = await self.session.execute(
            update(ConnectionModel)
            .where(ConnectionModel.id == connection_id)
            .values(folder_id=folder_id, sort_order=sort_order)
        )
        return result.rowcount > 0

    async def delete_connection(self, connection_id: int) -> bool:
        result = await self.session.execute(
            delete(ConnectionModel).where(ConnectionModel.id == connection_id)
        )
        return result.rowcount > 0

    # ── Bulk ──
    async def clear_all(self) -> None:
        """Delete every connection, then every folder."""
        await self.session.execute(delete(ConnectionModel))
        await self.session.execute(delete(FolderModel))
