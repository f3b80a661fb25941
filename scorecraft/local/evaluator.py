"""In-process evaluation of compiled queries against plain documents.

Follows the remote backend's documented semantics closely enough for
local development and tests:

- Field paths use dots and flatten through lists of objects; a trailing
  ``.keyword`` addresses the exact (unanalysed) value.
- Exact and range predicates score a constant 1 in query context; in
  ``filter`` context nothing scores.
- Full-text matches tokenise both sides and score each query token by its
  best fuzzy similarity to a field token.
- Score functions are summed, the sum replaces the native score and is
  clamped to the function score's ``max_boost``.
"""

from __future__ import annotations

import re
import statistics
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any

from rapidfuzz import fuzz

from scorecraft.query.ast_nodes import (
    Bool,
    Exists,
    Expression,
    FieldValueFactor,
    FunctionScore,
    GaussianDecay,
    Match,
    MatchAll,
    Predicate,
    Range,
    ScoreFunction,
    SortKey,
    SortMode,
    SortOrder,
    Term,
    Terms,
    Weighted,
    WeightedFieldValueFactor,
)
from scorecraft.query.predicates import bound_kind
from scorecraft.query.scoring import apply_modifier, gaussian
from scorecraft.utils.timeparse import parse_duration, resolve_date

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)
_KEYWORD_SUFFIX = ".keyword"

# Minimum rapidfuzz ratio for a query token to count as matching.
FUZZY_THRESHOLD = 80.0

SCORE_FIELD = "_score"


@dataclass
class ScoredDocument:
    """A candidate document during evaluation."""

    position: int
    document_id: str
    document: dict[str, Any]
    score: float


# ---------------------------------------------------------------------------
# Field access
# ---------------------------------------------------------------------------


def resolve_field(document: dict[str, Any], path: str) -> list[Any]:
    """Return every non-null value at ``path``, flattening lists."""
    if path.endswith(_KEYWORD_SUFFIX):
        path = path[: -len(_KEYWORD_SUFFIX)]

    current: list[Any] = [document]
    for part in path.split("."):
        found: list[Any] = []
        for value in current:
            if isinstance(value, dict) and part in value:
                found.extend(_flatten(value[part]))
        current = found
    return [v for v in current if v is not None]


def _flatten(value: Any) -> Iterable[Any]:
    if isinstance(value, list):
        for item in value:
            yield from _flatten(item)
    else:
        yield value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _numbers(values: Iterable[Any]) -> list[float]:
    return [float(v) for v in values if _is_number(v)]


def _as_datetime(value: Any) -> datetime | None:
    """Interpret a stored value as a date; numbers are epoch milliseconds."""
    if _is_number(value):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, (str, date)):
        try:
            return resolve_date(value)
        except ValueError:
            return None
    return None


def _dates(values: Iterable[Any]) -> list[datetime]:
    return [d for d in (_as_datetime(v) for v in values) if d is not None]


def tokenize(text: str) -> list[str]:
    """Lowercase word tokens."""
    return _TOKEN_RE.findall(text.lower())


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def _equals(stored: Any, value: int | str) -> bool:
    if isinstance(value, str):
        return isinstance(stored, str) and stored == value
    return _is_number(stored) and stored == value


def _in_range(node: Range, values: list[Any], now: datetime | None) -> bool:
    kind = bound_kind(node.gte if node.gte is not None else node.lte)
    if kind == "temporal":
        low = resolve_date(node.gte, now) if node.gte is not None else None
        high = resolve_date(node.lte, now) if node.lte is not None else None
        candidates: list[Any] = _dates(values)
    else:
        low, high = node.gte, node.lte
        candidates = _numbers(values)

    for v in candidates:
        if low is not None and v < low:
            continue
        if high is not None and v > high:
            continue
        return True
    return False


def _match_score(node: Match, document: dict[str, Any]) -> float:
    field_tokens: set[str] = set()
    for value in resolve_field(document, node.field):
        field_tokens.update(tokenize(str(value)))
    if not field_tokens:
        return 0.0

    score = 0.0
    for token in tokenize(node.text):
        best = max(fuzz.ratio(token, candidate) for candidate in field_tokens)
        if best >= FUZZY_THRESHOLD:
            score += best / 100.0
    return score


def _evaluate_bool(node: Bool, document: dict[str, Any], now: datetime | None) -> tuple[bool, float]:
    score = 0.0
    for clause in node.must:
        matched, clause_score = evaluate_predicate(clause, document, now)
        if not matched:
            return False, 0.0
        score += clause_score
    for clause in node.filter:
        if not evaluate_predicate(clause, document, now)[0]:
            return False, 0.0
    for clause in node.must_not:
        if evaluate_predicate(clause, document, now)[0]:
            return False, 0.0

    required = node.minimum_should_match
    if required is None:
        required = 0 if (node.must or node.filter or not node.should) else 1

    matched_should = 0
    for clause in node.should:
        matched, clause_score = evaluate_predicate(clause, document, now)
        if matched:
            matched_should += 1
            score += clause_score
    if matched_should < required:
        return False, 0.0
    return True, score


def evaluate_predicate(
    node: Predicate, document: dict[str, Any], now: datetime | None = None
) -> tuple[bool, float]:
    """Evaluate a predicate in query context.

    Returns:
        ``(matched, native_score)``.
    """
    if isinstance(node, MatchAll):
        return True, 1.0
    if isinstance(node, Bool):
        return _evaluate_bool(node, document, now)
    if isinstance(node, Match):
        score = _match_score(node, document)
        return score > 0, score

    values = resolve_field(document, node.field)
    if isinstance(node, Term):
        matched = any(_equals(v, node.value) for v in values)
    elif isinstance(node, Terms):
        matched = any(_equals(v, value) for v in values for value in node.values)
    elif isinstance(node, Range):
        matched = _in_range(node, values, now)
    elif isinstance(node, Exists):
        matched = bool(values)
    else:
        raise TypeError(f"Not a predicate: {node!r}")
    return matched, 1.0 if matched else 0.0


# ---------------------------------------------------------------------------
# Score functions
# ---------------------------------------------------------------------------


def _field_value_factor(fn: FieldValueFactor, document: dict[str, Any]) -> float:
    values = _numbers(resolve_field(document, fn.field))
    raw = min(values) if values else fn.missing
    if raw is None:
        raise ValueError(f"Missing value for field [{fn.field}] and no default given")
    return fn.factor * apply_modifier(fn.modifier, raw)


def _gaussian_decay(fn: GaussianDecay, document: dict[str, Any], now: datetime | None) -> float:
    placement = fn.placement
    values = resolve_field(document, fn.field)

    if placement.is_temporal:
        origin = resolve_date(placement.origin, now)
        offset = parse_duration(placement.offset).total_seconds()
        scale = parse_duration(placement.scale).total_seconds()
        distances = [abs((d - origin).total_seconds()) for d in _dates(values)]
    else:
        origin_value = float(placement.origin)
        offset = float(placement.offset)
        scale = float(placement.scale)
        distances = [abs(v - origin_value) for v in _numbers(values)]

    # Documents without the field contribute nothing
    if not distances:
        return 0.0
    return gaussian(min(distances), offset, scale, placement.decay)


def evaluate_function(
    fn: ScoreFunction, document: dict[str, Any], now: datetime | None = None
) -> float:
    """Contribution of one score function to a document's score.

    Raises:
        ValueError: If the function cannot be evaluated for the document
            (missing value without default, modifier domain error).
    """
    if isinstance(fn, FieldValueFactor):
        return _field_value_factor(fn, document)
    if isinstance(fn, Weighted):
        return fn.weight if evaluate_predicate(fn.predicate, document, now)[0] else 0.0
    if isinstance(fn, WeightedFieldValueFactor):
        return fn.weight * _field_value_factor(fn.inner, document)
    if isinstance(fn, GaussianDecay):
        return _gaussian_decay(fn, document, now)
    raise TypeError(f"Not a score function: {fn!r}")


def evaluate(
    expr: Expression, document: dict[str, Any], now: datetime | None = None
) -> tuple[bool, float]:
    """Evaluate a compiled expression for one document.

    Returns:
        ``(matched, score)``; with score functions the score is their
        clamped sum, otherwise the native relevance score.
    """
    if isinstance(expr, FunctionScore):
        matched, _ = evaluate_predicate(expr.query, document, now)
        if not matched:
            return False, 0.0
        total = sum(evaluate_function(fn, document, now) for fn in expr.functions)
        return True, min(total, expr.max_boost)
    return evaluate_predicate(expr, document, now)


# ---------------------------------------------------------------------------
# Sorting and windowing
# ---------------------------------------------------------------------------


def _sort_value(key: SortKey, candidate: ScoredDocument) -> Any:
    if key.field == SCORE_FIELD:
        return candidate.score

    values = resolve_field(candidate.document, key.field)
    if not values:
        return None

    mode = key.mode
    if mode is None:
        mode = SortMode.MIN if key.order is SortOrder.ASC else SortMode.MAX

    # Booleans sort as false < true
    values = [int(v) if isinstance(v, bool) else v for v in values]
    numeric = all(_is_number(v) for v in values)
    if not numeric and mode in (SortMode.AVG, SortMode.SUM, SortMode.MEDIAN):
        raise ValueError(f"Sort mode '{mode.value}' needs numeric values in [{key.field}]")
    if numeric:
        values = [float(v) for v in values]
    elif not all(isinstance(v, str) for v in values):
        raise ValueError(f"Cannot sort on mixed value types in [{key.field}]")

    if mode is SortMode.MIN:
        return min(values)
    if mode is SortMode.MAX:
        return max(values)
    if mode is SortMode.SUM:
        return sum(values)
    if mode is SortMode.AVG:
        return statistics.fmean(values)
    return statistics.median(values)


def sort_candidates(
    candidates: list[ScoredDocument], sort: Sequence[SortKey]
) -> list[ScoredDocument]:
    """Order candidates by the sort chain, or by score when it is empty.

    Documents lacking a sort field go last for that key.  Remaining ties
    keep insertion order.
    """
    ordered = sorted(candidates, key=lambda c: c.position)
    if not sort:
        return sorted(ordered, key=lambda c: c.score, reverse=True)

    # Stable sorts applied from the least significant key up
    for key in reversed(sort):
        keyed = [(_sort_value(key, c), c) for c in ordered]
        present = [(v, c) for v, c in keyed if v is not None]
        missing = [c for v, c in keyed if v is None]
        present.sort(key=lambda pair: pair[0], reverse=key.order is SortOrder.DESC)
        ordered = [c for _, c in present] + missing
    return ordered


def run_query(
    documents: Iterable[tuple[str, dict[str, Any]]],
    query: Expression,
    sort: Sequence[SortKey] = (),
    offset: int | None = None,
    limit: int | None = None,
    default_limit: int = 10,
    now: datetime | None = None,
) -> list[ScoredDocument]:
    """Evaluate ``query`` over ``documents`` and return the requested window.

    Args:
        documents: ``(id, source)`` pairs in insertion order.
        default_limit: Window size used when ``limit`` is None.
        now: Reference time for ``now`` date expressions.
    """
    candidates = []
    for position, (document_id, document) in enumerate(documents):
        matched, score = evaluate(query, document, now)
        if matched:
            candidates.append(ScoredDocument(position, document_id, document, score))

    ordered = sort_candidates(candidates, sort)
    start = offset or 0
    size = default_limit if limit is None else limit
    return ordered[start : start + size]
