"""Interfaces between the query layer and the search backends."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from scorecraft.mapping import IndexMapping
from scorecraft.query.ast_nodes import Expression, SortKey


@dataclass(frozen=True)
class Hit:
    """One ranked search result.

    ``score`` is None when the backend did not compute one (for example
    when results are sorted by field).
    """

    document_id: str
    score: float | None
    document: dict[str, Any] = field(default_factory=dict)


class QueryExecutor(Protocol):
    """Executes compiled query expressions.

    Implementations perform one synchronous round trip per call and raise
    :class:`~scorecraft.exceptions.ExecutorFailure` on any failure,
    without retrying.
    """

    def execute(
        self,
        query: Expression,
        sort: Sequence[SortKey] = (),
        offset: int | None = None,
        limit: int | None = None,
    ) -> list[Hit]: ...


class DocumentStore(Protocol):
    """Index lifecycle and document persistence for one index."""

    index: str

    def index_exists(self) -> bool: ...

    def create_index(self, mapping: IndexMapping | None = None) -> None: ...

    def delete_index(self) -> None: ...

    def init_index(self, mapping: IndexMapping | None = None) -> None: ...

    def refresh(self) -> None: ...

    def insert(self, document_id: str, document: dict[str, Any]) -> str: ...

    def insert_many(self, documents: Sequence[tuple[str, dict[str, Any]]]) -> list[str]: ...

    def save(self, document_id: str, document: dict[str, Any]) -> str: ...

    def delete(self, document_id: str) -> None: ...

    def get(self, document_id: str) -> dict[str, Any] | None: ...


class SearchBackend(QueryExecutor, DocumentStore, Protocol):
    """A backend that both stores documents and searches them."""
