"""All ORM models.

Tables: folders, connections
Secret columns (*_enc) hold FieldCipher tokens, never cleartext.
"""

from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class FolderModel(Base):
    __tablename__ = "folders"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, unique=True)
    sort_order = Column(Integer, nullable=False)
    is_default = Column(Boolean, nullable=False, default=False)


class ConnectionModel(Base):
    __tablename__ = "connections"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    host_enc = Column(Text, nullable=False)
    username_enc = Column(Text, nullable=False)
    password_enc = Column(Text, nullable=False)
    port = Column(Integer, nullable=True)               # NULL when port_is_dynamic
    port_is_dynamic = Column(Boolean, nullable=False, default=False)
    folder_id = Column(Integer, ForeignKey("folders.id"), nullable=False)
    sort_order = Column(Integer, nullable=False)

    __table_args__ = (Index("ix_connection_folder_sort", "folder_id", "sort_order"),)
