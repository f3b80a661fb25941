"""AST data classes for composed search queries.

Every node is a frozen dataclass: once a builder has validated its
inputs, the resulting value cannot be changed.  Collections are stored
as tuples for the same reason.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime, timedelta

# A scalar accepted by exact-match predicates.  ``bool`` is excluded by the
# builders even though it is an ``int`` subclass.
Scalar = int | str

# Range bounds are either numeric or temporal.
Bound = int | float | date | datetime

# Decay distances: numbers for numeric fields, durations for date fields
# (``timedelta`` or strings like ``"90d"``).
Distance = int | float | timedelta | str


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MatchAll:
    """Matches every document."""


@dataclass(frozen=True)
class Term:
    """Exact match of a single integer or text value."""

    field: str
    value: Scalar


@dataclass(frozen=True)
class Terms:
    """Exact match of any value from a homogeneous, non-empty set."""

    field: str
    values: tuple[Scalar, ...]


@dataclass(frozen=True)
class Range:
    """Inclusive range; a missing bound leaves that side open."""

    field: str
    gte: Bound | None = None
    lte: Bound | None = None


@dataclass(frozen=True)
class Match:
    """Full-text match of ``text`` against one field."""

    field: str
    text: str


@dataclass(frozen=True)
class Exists:
    """The field holds at least one non-null value."""

    field: str


@dataclass(frozen=True)
class Bool:
    """Boolean combination of predicates.

    ``must`` and ``filter`` clauses have to match; only ``must`` (and
    matching ``should``) clauses add to the native relevance score.
    ``must_not`` clauses exclude documents.  At least
    ``minimum_should_match`` of the ``should`` clauses have to match; when
    unset the backend default applies (0 if any must/filter clause is
    present, otherwise 1).
    """

    must: tuple[Predicate, ...] = ()
    should: tuple[Predicate, ...] = ()
    filter: tuple[Predicate, ...] = ()
    must_not: tuple[Predicate, ...] = ()
    minimum_should_match: int | None = None


Predicate = MatchAll | Term | Terms | Range | Match | Exists | Bool


# ---------------------------------------------------------------------------
# Score functions
# ---------------------------------------------------------------------------


class Modifier(enum.Enum):
    """Numeric transform applied to a field value before the factor."""

    NONE = "none"
    LOG = "log"
    LOG1P = "log1p"
    LOG2P = "log2p"
    LN = "ln"
    LN1P = "ln1p"
    LN2P = "ln2p"
    SQUARE = "square"
    SQRT = "sqrt"
    RECIPROCAL = "reciprocal"


@dataclass(frozen=True)
class FieldValueFactor:
    """``factor * modifier(value)``, with ``missing`` used for absent fields."""

    field: str
    factor: float = 1.0
    modifier: Modifier = Modifier.NONE
    missing: float | None = None


@dataclass(frozen=True)
class Weighted:
    """Contributes ``weight`` to documents matching ``predicate``."""

    predicate: Predicate
    weight: float


@dataclass(frozen=True)
class WeightedFieldValueFactor:
    """A field value factor whose output is multiplied by ``weight``."""

    inner: FieldValueFactor
    weight: float


@dataclass(frozen=True)
class DecayPlacement:
    """Shape of a decay curve.

    Values within ``offset`` of ``origin`` score 1; at ``offset + scale``
    the score has dropped to ``decay``.
    """

    origin: Bound | str
    offset: Distance
    scale: Distance
    decay: float = 0.5

    @property
    def is_temporal(self) -> bool:
        return not isinstance(self.scale, (int, float))


@dataclass(frozen=True)
class GaussianDecay:
    """Gaussian decay over a numeric or date field."""

    field: str
    placement: DecayPlacement


ScoreFunction = FieldValueFactor | Weighted | WeightedFieldValueFactor | GaussianDecay


# ---------------------------------------------------------------------------
# Sorting
# ---------------------------------------------------------------------------


class SortOrder(enum.Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


class SortMode(enum.Enum):
    """How a multi-valued field is reduced to one sort value."""

    MIN = "min"
    MAX = "max"
    AVG = "avg"
    SUM = "sum"
    MEDIAN = "median"


@dataclass(frozen=True)
class SortKey:
    """One link of the sort chain; the first key is the primary one."""

    field: str
    order: SortOrder = SortOrder.ASC
    mode: SortMode | None = None


# ---------------------------------------------------------------------------
# Compiled expression
# ---------------------------------------------------------------------------

SCORE_MODE = "sum"
BOOST_MODE = "replace"
MAX_BOOST = 30.0


@dataclass(frozen=True)
class FunctionScore:
    """Root predicate scored by the sum of ``functions``.

    The sum replaces the native relevance score and is clamped to
    ``max_boost``.
    """

    query: Predicate
    functions: tuple[ScoreFunction, ...]
    score_mode: str = SCORE_MODE
    boost_mode: str = BOOST_MODE
    max_boost: float = MAX_BOOST


Expression = Predicate | FunctionScore


@dataclass(frozen=True)
class CompiledQuery:
    """An executable query: expression, sort chain and result window."""

    query: Expression
    sort: tuple[SortKey, ...] = ()
    offset: int | None = None
    limit: int | None = None
