"""SQLite-backed document store and query executor."""

from __future__ import annotations

import copy
import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from scorecraft.backend import Hit
from scorecraft.exceptions import (
    BackendError,
    DocumentExistsError,
    ExecutorFailure,
    IndexNotFoundError,
)
from scorecraft.local.evaluator import run_query
from scorecraft.local.models import StoredDocument, StoredIndex
from scorecraft.local.session import MEMORY_DATABASE, get_local_engine, get_local_session
from scorecraft.mapping import IndexMapping
from scorecraft.query.ast_nodes import Expression, SortKey

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class LocalBackend:
    """Document store and query executor on a local SQLite database.

    Writes follow the remote backend's rules: writing to a missing index
    creates it, ``insert`` refuses existing ids, ``save`` replaces.

    Args:
        database: SQLite file path or ``":memory:"``.
        index: Name of the index all operations act on.
        default_page_size: Hits returned when a search sets no limit.
        now: Fixed reference time for ``now`` date expressions (tests).
    """

    def __init__(
        self,
        database: Path | str = MEMORY_DATABASE,
        index: str = "students",
        default_page_size: int = 10,
        now: datetime | None = None,
    ) -> None:
        self.index = index
        self.default_page_size = default_page_size
        self.now = now
        self._engine = get_local_engine(database)

    def _index_row(self, session: Session) -> StoredIndex | None:
        return session.get(StoredIndex, self.index)

    def _ensure_index(self, session: Session) -> None:
        if self._index_row(session) is None:
            session.add(StoredIndex(name=self.index, mapping={}, created_at=_now_iso()))
            session.flush()
            logger.info("Auto-created index %s", self.index)

    def _find(self, session: Session, document_id: str) -> StoredDocument | None:
        return session.scalars(
            select(StoredDocument).where(
                StoredDocument.index_name == self.index,
                StoredDocument.document_id == document_id,
            )
        ).first()

    # -- Index lifecycle -----------------------------------------------------

    def index_exists(self) -> bool:
        with get_local_session(self._engine) as session:
            return self._index_row(session) is not None

    def create_index(self, mapping: IndexMapping | None = None) -> None:
        """Create the index.

        Raises:
            BackendError: If the index already exists.
        """
        with get_local_session(self._engine) as session:
            if self._index_row(session) is not None:
                raise BackendError(f"Index already exists: {self.index}")
            session.add(
                StoredIndex(
                    name=self.index,
                    mapping=mapping.to_json() if mapping is not None else {},
                    created_at=_now_iso(),
                )
            )
        logger.info("Created index %s", self.index)

    def delete_index(self) -> None:
        """Drop the index and all of its documents.

        Raises:
            IndexNotFoundError: If the index does not exist.
        """
        with get_local_session(self._engine) as session:
            row = self._index_row(session)
            if row is None:
                raise IndexNotFoundError(self.index)
            session.execute(delete(StoredDocument).where(StoredDocument.index_name == self.index))
            session.delete(row)
        logger.info("Deleted index %s", self.index)

    def init_index(self, mapping: IndexMapping | None = None) -> None:
        """Recreate the index from scratch, dropping existing documents."""
        if self.index_exists():
            self.delete_index()
        self.create_index(mapping)

    def refresh(self) -> None:
        """Local writes are visible at once; only checks the index exists.

        Raises:
            IndexNotFoundError: If the index does not exist.
        """
        if not self.index_exists():
            raise IndexNotFoundError(self.index)

    def mapping(self) -> IndexMapping:
        """Field mapping the index was created with."""
        with get_local_session(self._engine) as session:
            row = self._index_row(session)
            if row is None:
                raise IndexNotFoundError(self.index)
            return IndexMapping.from_dict(row.mapping or {})

    # -- Documents -----------------------------------------------------------

    def insert(self, document_id: str, document: dict[str, Any]) -> str:
        """Create a document.

        Raises:
            DocumentExistsError: If a document with this id exists.
        """
        with get_local_session(self._engine) as session:
            self._ensure_index(session)
            if self._find(session, document_id) is not None:
                raise DocumentExistsError(self.index, document_id)
            session.add(
                StoredDocument(
                    index_name=self.index,
                    document_id=document_id,
                    source=copy.deepcopy(document),
                )
            )
        return document_id

    def insert_many(
        self,
        documents: Sequence[tuple[str, dict[str, Any]]],
        refresh: bool = True,
    ) -> list[str]:
        """Create several documents in one transaction.

        Either every document is stored or none is.  ``refresh`` is
        accepted for interface parity; local writes are visible at once.

        Raises:
            BackendError: If any id already exists or repeats in the batch.
        """
        ids = [document_id for document_id, _ in documents]
        with get_local_session(self._engine) as session:
            self._ensure_index(session)
            rejected = [i for i in ids if self._find(session, i) is not None]
            rejected += sorted({i for i in ids if ids.count(i) > 1})
            if rejected:
                raise BackendError(
                    f"Bulk insert rejected {len(rejected)} document(s): "
                    + "; ".join(f"{i}: document already exists" for i in rejected)
                )
            for document_id, document in documents:
                session.add(
                    StoredDocument(
                        index_name=self.index,
                        document_id=document_id,
                        source=copy.deepcopy(document),
                    )
                )
        logger.info("Inserted %d documents into %s", len(ids), self.index)
        return ids

    def save(self, document_id: str, document: dict[str, Any]) -> str:
        """Create or replace a document, keeping its original position."""
        with get_local_session(self._engine) as session:
            self._ensure_index(session)
            row = self._find(session, document_id)
            if row is None:
                session.add(
                    StoredDocument(
                        index_name=self.index,
                        document_id=document_id,
                        source=copy.deepcopy(document),
                    )
                )
            else:
                row.source = copy.deepcopy(document)
        return document_id

    def delete(self, document_id: str) -> None:
        """Delete a document; deleting a missing document is a no-op."""
        with get_local_session(self._engine) as session:
            row = self._find(session, document_id)
            if row is None:
                logger.debug("Document %s not found, nothing to delete", document_id)
                return
            session.delete(row)

    def get(self, document_id: str) -> dict[str, Any] | None:
        with get_local_session(self._engine) as session:
            row = self._find(session, document_id)
            return copy.deepcopy(row.source) if row is not None else None

    def documents(self) -> list[tuple[str, dict[str, Any]]]:
        """All ``(id, source)`` pairs of the index in insertion order."""
        with get_local_session(self._engine) as session:
            if self._index_row(session) is None:
                raise IndexNotFoundError(self.index)
            rows = session.scalars(
                select(StoredDocument)
                .where(StoredDocument.index_name == self.index)
                .order_by(StoredDocument.position)
            ).all()
            return [(row.document_id, copy.deepcopy(row.source)) for row in rows]

    # -- Query executor ------------------------------------------------------

    def execute(
        self,
        query: Expression,
        sort: Sequence[SortKey] = (),
        offset: int | None = None,
        limit: int | None = None,
    ) -> list[Hit]:
        """Evaluate a compiled query over the index.

        Raises:
            ExecutorFailure: If the index is missing or a document cannot
                be scored (for example a modifier domain error).
        """
        try:
            documents = self.documents()
            scored = run_query(
                documents,
                query,
                sort=sort,
                offset=offset,
                limit=limit,
                default_limit=self.default_page_size,
                now=self.now,
            )
        except (BackendError, ValueError, TypeError) as e:
            logger.error("Search on index %s failed: %s", self.index, e)
            raise ExecutorFailure(f"Search on index '{self.index}' failed: {e}", cause=e) from e

        for candidate in scored:
            logger.debug("ID: %s, Score: %.3f", candidate.document_id, candidate.score)
        return [Hit(c.document_id, c.score, c.document) for c in scored]
