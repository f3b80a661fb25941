"""Render compiled queries as Elasticsearch query DSL."""

from __future__ import annotations

from datetime import date
from typing import Any

from scorecraft.query.ast_nodes import (
    Bool,
    CompiledQuery,
    DecayPlacement,
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
    Term,
    Terms,
    Weighted,
    WeightedFieldValueFactor,
)
from scorecraft.utils.timeparse import format_date, format_duration


def _build_bound(value: Any) -> Any:
    if isinstance(value, date):
        return format_date(value)
    return value


def _build_bool(node: Bool) -> dict[str, Any]:
    body: dict[str, Any] = {}
    for occur in ("must", "should", "filter", "must_not"):
        clauses = getattr(node, occur)
        if clauses:
            body[occur] = [build_predicate(c) for c in clauses]
    if node.minimum_should_match is not None:
        body["minimum_should_match"] = node.minimum_should_match
    return {"bool": body}


def build_predicate(node: Predicate) -> dict[str, Any]:
    """Render a single predicate."""
    if isinstance(node, MatchAll):
        return {"match_all": {}}
    if isinstance(node, Term):
        return {"term": {node.field: {"value": node.value}}}
    if isinstance(node, Terms):
        return {"terms": {node.field: list(node.values)}}
    if isinstance(node, Range):
        bounds: dict[str, Any] = {}
        if node.gte is not None:
            bounds["gte"] = _build_bound(node.gte)
        if node.lte is not None:
            bounds["lte"] = _build_bound(node.lte)
        return {"range": {node.field: bounds}}
    if isinstance(node, Match):
        return {"match": {node.field: {"query": node.text}}}
    if isinstance(node, Exists):
        return {"exists": {"field": node.field}}
    if isinstance(node, Bool):
        return _build_bool(node)
    raise TypeError(f"Not a predicate: {node!r}")


def _build_field_value_factor(fvf: FieldValueFactor) -> dict[str, Any]:
    body: dict[str, Any] = {
        "field": fvf.field,
        "factor": fvf.factor,
        "modifier": fvf.modifier.value,
    }
    if fvf.missing is not None:
        body["missing"] = fvf.missing
    return body


def _build_placement(placement: DecayPlacement) -> dict[str, Any]:
    if not placement.is_temporal:
        return {
            "origin": placement.origin,
            "offset": placement.offset,
            "scale": placement.scale,
            "decay": placement.decay,
        }
    return {
        "origin": format_date(placement.origin),
        "offset": format_duration(placement.offset),
        "scale": format_duration(placement.scale),
        "decay": placement.decay,
    }


def build_function(function: ScoreFunction) -> dict[str, Any]:
    """Render one entry of a ``function_score.functions`` list."""
    if isinstance(function, FieldValueFactor):
        return {"field_value_factor": _build_field_value_factor(function)}
    if isinstance(function, Weighted):
        return {"filter": build_predicate(function.predicate), "weight": function.weight}
    if isinstance(function, WeightedFieldValueFactor):
        return {
            "field_value_factor": _build_field_value_factor(function.inner),
            "weight": function.weight,
        }
    if isinstance(function, GaussianDecay):
        return {"gauss": {function.field: _build_placement(function.placement)}}
    raise TypeError(f"Not a score function: {function!r}")


def build_expression(expr: Expression) -> dict[str, Any]:
    """Render a predicate or a function score query."""
    if isinstance(expr, FunctionScore):
        return {
            "function_score": {
                "query": build_predicate(expr.query),
                "functions": [build_function(f) for f in expr.functions],
                "score_mode": expr.score_mode,
                "boost_mode": expr.boost_mode,
                "max_boost": expr.max_boost,
            }
        }
    return build_predicate(expr)


def build_sort(key: SortKey) -> dict[str, Any]:
    options: dict[str, Any] = {"order": key.order.value}
    if key.mode is not None:
        options["mode"] = key.mode.value
    return {key.field: options}


def to_search_body(compiled: CompiledQuery) -> dict[str, Any]:
    """Render the ``_search`` request body for a compiled query.

    ``sort``, ``from`` and ``size`` are omitted when unset so the
    backend's defaults apply.
    """
    body: dict[str, Any] = {"query": build_expression(compiled.query)}
    if compiled.sort:
        body["sort"] = [build_sort(k) for k in compiled.sort]
    if compiled.offset is not None:
        body["from"] = compiled.offset
    if compiled.limit is not None:
        body["size"] = compiled.limit
    return body
