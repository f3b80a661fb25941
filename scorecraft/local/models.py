"""SQLAlchemy ORM models for the local document store."""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class LocalBase(DeclarativeBase):
    """Base class for local store ORM models."""

    pass


class StoredIndex(LocalBase):
    """A named index and its declared field mapping."""

    __tablename__ = "indices"

    name: Mapped[str] = mapped_column(String(255), primary_key=True)
    mapping: Mapped[dict[str, str]] = mapped_column(JSON, default=dict)
    created_at: Mapped[str] = mapped_column(String(32))

    def __repr__(self) -> str:
        return f"<StoredIndex(name='{self.name}')>"


class StoredDocument(LocalBase):
    """One document of an index.

    ``position`` increases with every insert and gives the stable order
    used to break ranking ties.
    """

    __tablename__ = "documents"

    position: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    index_name: Mapped[str] = mapped_column(String(255), nullable=False)
    document_id: Mapped[str] = mapped_column(String(512), nullable=False)
    source: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    __table_args__ = (
        Index("ix_documents_index_document", "index_name", "document_id", unique=True),
    )

    def __repr__(self) -> str:
        return f"<StoredDocument(index='{self.index_name}', id='{self.document_id}')>"
