"""Builders and evaluation helpers for score functions.

A score function contributes a number per document.  Inside a compiled
query the contributions of all functions are summed, the sum replaces
the native relevance score and is clamped to
:data:`~scorecraft.query.ast_nodes.MAX_BOOST`.

The builders only describe functions.  :func:`apply_modifier` and
:func:`gaussian` hold the arithmetic so that an in-process backend and
the tests evaluate exactly the curves the remote backend documents.
"""

from __future__ import annotations

import math

from scorecraft.exceptions import InvalidDecayPlacementError, ValidationError
from scorecraft.query.ast_nodes import (
    Bound,
    DecayPlacement,
    Distance,
    FieldValueFactor,
    GaussianDecay,
    Modifier,
    Predicate,
    Weighted,
    WeightedFieldValueFactor,
)
from scorecraft.query.predicates import bound_kind
from scorecraft.utils.timeparse import is_date_expression, parse_duration


def _check_number(name: str, value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(name, value, "must be a number")
    if not math.isfinite(value):
        raise ValidationError(name, value, "must be finite")
    return float(value)


def _coerce_modifier(modifier: Modifier | str) -> Modifier:
    if isinstance(modifier, Modifier):
        return modifier
    try:
        return Modifier(str(modifier).lower())
    except ValueError:
        choices = ", ".join(m.value for m in Modifier)
        raise ValidationError("modifier", modifier, f"must be one of: {choices}") from None


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def field_value_factor(
    field: str,
    factor: float = 1.0,
    modifier: Modifier | str = Modifier.NONE,
    missing: float | None = None,
) -> FieldValueFactor:
    """Score from a field's own value: ``factor * modifier(value)``.

    ``missing`` substitutes for documents without the field.  Domain
    problems (log of a non-positive value, no value and no ``missing``)
    are not checked here; the backend reports them when it evaluates the
    query.
    """
    if not isinstance(field, str) or not field:
        raise ValidationError("field", field, "must be a non-empty string")
    factor = _check_number("factor", factor)
    if missing is not None:
        missing = _check_number("missing", missing)
    return FieldValueFactor(
        field=field,
        factor=factor,
        modifier=_coerce_modifier(modifier),
        missing=missing,
    )


def weighted(predicate: Predicate, weight: float) -> Weighted:
    """Flat ``weight`` for documents matching ``predicate``, 0 for the rest."""
    if not isinstance(predicate, Predicate):
        raise ValidationError("predicate", predicate, "must be a predicate")
    return Weighted(predicate=predicate, weight=_check_number("weight", weight))


def weighted_field_value_factor(
    inner: FieldValueFactor | WeightedFieldValueFactor, weight: float
) -> WeightedFieldValueFactor:
    """Multiply a field value factor's output by ``weight``.

    Passing an already weighted factor re-weights its inner factor.
    """
    if isinstance(inner, WeightedFieldValueFactor):
        inner = inner.inner
    if not isinstance(inner, FieldValueFactor):
        raise ValidationError("inner", inner, "must be a field value factor")
    return WeightedFieldValueFactor(inner=inner, weight=_check_number("weight", weight))


def decay_placement(
    origin: Bound | str,
    offset: Distance,
    scale: Distance,
    decay: float = 0.5,
) -> DecayPlacement:
    """Describe where a decay curve sits.

    Numeric placements take numbers for all of ``origin``, ``offset`` and
    ``scale``.  Temporal placements take a date expression for ``origin``
    (``date``, ``datetime``, ISO string, ``"now"``, ``"now-30d"``) and
    durations for ``offset`` and ``scale``.

    Raises:
        InvalidDecayPlacementError: On mixed kinds, a negative offset, a
            non-positive scale, or ``decay`` outside (0, 1].
    """
    decay_value = _check_number("decay", decay)
    if not 0.0 < decay_value <= 1.0:
        raise InvalidDecayPlacementError("decay", decay, "must be in (0, 1]")

    if bound_kind(origin) == "numeric":
        for name, value in (("offset", offset), ("scale", scale)):
            if bound_kind(value) != "numeric":
                raise InvalidDecayPlacementError(
                    name, value, "must be a number for a numeric origin"
                )
        offset_size, scale_size = float(offset), float(scale)
    elif is_date_expression(origin):
        try:
            offset_size = parse_duration(offset).total_seconds()
            scale_size = parse_duration(scale).total_seconds()
        except ValueError as e:
            raise InvalidDecayPlacementError(
                "offset/scale", (offset, scale), "must be durations for a date origin"
            ) from e
    else:
        raise InvalidDecayPlacementError(
            "origin", origin, "must be a number or a date expression"
        )

    if offset_size < 0:
        raise InvalidDecayPlacementError("offset", offset, "must not be negative")
    if scale_size <= 0:
        raise InvalidDecayPlacementError("scale", scale, "must be positive")

    return DecayPlacement(origin=origin, offset=offset, scale=scale, decay=decay_value)


def gaussian_decay(field: str, placement: DecayPlacement) -> GaussianDecay:
    """Gaussian decay of ``field`` around ``placement.origin``."""
    if not isinstance(field, str) or not field:
        raise ValidationError("field", field, "must be a non-empty string")
    if not isinstance(placement, DecayPlacement):
        raise ValidationError("placement", placement, "must be a decay placement")
    return GaussianDecay(field=field, placement=placement)


# ---------------------------------------------------------------------------
# Arithmetic
# ---------------------------------------------------------------------------


def apply_modifier(modifier: Modifier, value: float) -> float:
    """Apply a field value factor modifier.

    ``log`` variants are base 10, ``ln`` variants natural.

    Raises:
        ValueError: If the modifier is undefined for ``value``.
    """
    try:
        if modifier is Modifier.NONE:
            return value
        if modifier is Modifier.LOG:
            return math.log10(value)
        if modifier is Modifier.LOG1P:
            return math.log10(value + 1)
        if modifier is Modifier.LOG2P:
            return math.log10(value + 2)
        if modifier is Modifier.LN:
            return math.log(value)
        if modifier is Modifier.LN1P:
            return math.log(value + 1)
        if modifier is Modifier.LN2P:
            return math.log(value + 2)
        if modifier is Modifier.SQUARE:
            return value * value
        if modifier is Modifier.SQRT:
            return math.sqrt(value)
        if modifier is Modifier.RECIPROCAL:
            return 1.0 / value
    except (ValueError, ZeroDivisionError) as e:
        raise ValueError(f"Modifier '{modifier.value}' is undefined for {value}") from e
    raise ValueError(f"Unknown modifier: {modifier!r}")


def gaussian(distance: float, offset: float, scale: float, decay: float) -> float:
    """Gaussian decay score for a distance from the origin.

    Returns 1 within ``offset``.  Beyond it the score follows
    ``exp(-0.5 * ((distance - offset) / sigma) ** 2)`` where sigma is
    chosen so the score equals ``decay`` at ``offset + scale``.
    """
    excess = abs(distance) - offset
    if excess <= 0 or decay >= 1.0:
        return 1.0
    if excess == scale:
        return decay
    sigma_sq = -(scale * scale) / (2.0 * math.log(decay))
    return math.exp(-0.5 * excess * excess / sigma_sq)
