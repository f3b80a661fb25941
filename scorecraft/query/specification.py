"""Search specification and its compilation to an executable query."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from scorecraft.exceptions import ValidationError
from scorecraft.query.ast_nodes import (
    Bool,
    CompiledQuery,
    FunctionScore,
    MatchAll,
    Predicate,
    ScoreFunction,
    SortKey,
)


def _check_window(name: str, value: int | None) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(name, value, "must be a non-negative integer")


@dataclass(frozen=True)
class SearchSpecification:
    """Everything one search request asks for.

    Attributes:
        root: Predicate selecting candidate documents (default: match all).
        functions: Score functions; when present their clamped sum
            replaces the native relevance score.
        sort: Sort chain, primary key first.  Empty means relevance order.
        offset: Index of the first hit to return (backend default if None).
        limit: Maximum number of hits (backend default if None).
    """

    root: Predicate = field(default_factory=MatchAll)
    functions: tuple[ScoreFunction, ...] = ()
    sort: tuple[SortKey, ...] = ()
    offset: int | None = None
    limit: int | None = None

    def __post_init__(self) -> None:
        # Accept any iterable but always store tuples
        object.__setattr__(self, "functions", tuple(self.functions))
        object.__setattr__(self, "sort", tuple(self.sort))

    @classmethod
    def of(cls, predicate: Predicate) -> SearchSpecification:
        """Specification filtering on ``predicate``.

        A :class:`Bool` is used as the root directly, so its ``must`` and
        ``should`` clauses keep scoring.  Any other predicate is placed in
        filter context, where it selects documents without scoring them.
        """
        if isinstance(predicate, Bool):
            return cls(root=predicate)
        return cls(root=Bool(filter=(predicate,)))

    def with_functions(self, *functions: ScoreFunction) -> SearchSpecification:
        return replace(self, functions=functions)

    def with_sort(self, *keys: SortKey) -> SearchSpecification:
        return replace(self, sort=keys)

    def with_page(self, offset: int | None = None, limit: int | None = None) -> SearchSpecification:
        return replace(self, offset=offset, limit=limit)

    def compile(self) -> CompiledQuery:
        """Build the executable query.

        Without score functions the root predicate is the query and the
        backend's native relevance score is kept.  Otherwise the root is
        wrapped in a :class:`FunctionScore` that sums every function,
        replaces the native score with that sum and clamps it to 30.

        Everything is validated before anything is built.

        Raises:
            ValidationError: If a component has the wrong type or the
                result window is negative.
        """
        if not isinstance(self.root, Predicate):
            raise ValidationError("root", self.root, "must be a predicate")
        for function in self.functions:
            if not isinstance(function, ScoreFunction):
                raise ValidationError("functions", function, "must be a score function")
        for key in self.sort:
            if not isinstance(key, SortKey):
                raise ValidationError("sort", key, "must be a sort key")
        _check_window("offset", self.offset)
        _check_window("limit", self.limit)

        query = self.root
        if self.functions:
            query = FunctionScore(query=self.root, functions=self.functions)

        return CompiledQuery(query=query, sort=self.sort, offset=self.offset, limit=self.limit)


def compile_search(
    root: Predicate | None = None,
    functions: Iterable[ScoreFunction] = (),
    sort: Iterable[SortKey] = (),
    offset: int | None = None,
    limit: int | None = None,
) -> CompiledQuery:
    """Shorthand for building a :class:`SearchSpecification` and compiling it."""
    spec = SearchSpecification(
        root=root if root is not None else MatchAll(),
        functions=tuple(functions),
        sort=tuple(sort),
        offset=offset,
        limit=limit,
    )
    return spec.compile()
