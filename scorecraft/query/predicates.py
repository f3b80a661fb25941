"""Builders for filter and match predicates.

Every builder validates its input and returns a fully-formed, immutable
predicate, raising a :class:`~scorecraft.exceptions.QueryConstructionError`
subclass when the input cannot be expressed.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from scorecraft.exceptions import (
    EmptyCollectionError,
    EmptyRangeError,
    UnsupportedValueTypeError,
    ValidationError,
)
from scorecraft.query.ast_nodes import (
    Bool,
    Bound,
    Exists,
    Match,
    MatchAll,
    Predicate,
    Range,
    Scalar,
    Term,
    Terms,
)

_SCALAR_TYPES = "int or str"
_BOUND_TYPES = "a number or a date/datetime"


def _check_field(field: str) -> str:
    if not isinstance(field, str) or not field:
        raise ValidationError("field", field, "must be a non-empty string")
    return field


def _scalar_type(field: str, value: object) -> type:
    """Return ``int`` or ``str`` for a scalar, rejecting anything else."""
    # bool is an int subclass but never a valid term value
    if isinstance(value, bool):
        raise UnsupportedValueTypeError(field, value, _SCALAR_TYPES)
    if isinstance(value, int):
        return int
    if isinstance(value, str):
        return str
    raise UnsupportedValueTypeError(field, value, _SCALAR_TYPES)


def bound_kind(value: object) -> str | None:
    """Classify a range bound as ``"numeric"`` or ``"temporal"``.

    Returns None for anything that is neither.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return "numeric"
    if isinstance(value, date):
        return "temporal"
    return None


def match_all() -> MatchAll:
    """Predicate matching every document."""
    return MatchAll()


def term(field: str, value: Scalar) -> Term:
    """Exact match on a single integer or text value.

    Raises:
        UnsupportedValueTypeError: If ``value`` is neither int nor str.
    """
    _check_field(field)
    _scalar_type(field, value)
    return Term(field=field, value=value)


def terms(field: str, values: Iterable[Scalar]) -> Terms:
    """Exact match on any of ``values``.

    The element type is taken from the first member; every other member
    must have the same type.

    Raises:
        EmptyCollectionError: If ``values`` is empty.
        UnsupportedValueTypeError: If the element type is not int/str or
            the collection mixes types.
    """
    _check_field(field)
    if isinstance(values, (str, bytes)):
        raise UnsupportedValueTypeError(field, values, "a collection of values")
    items = tuple(values)
    if not items:
        raise EmptyCollectionError(field, "values")

    element_type = _scalar_type(field, items[0])
    for item in items[1:]:
        if _scalar_type(field, item) is not element_type:
            raise UnsupportedValueTypeError(
                field, item, f"{element_type.__name__} like the other values"
            )
    return Terms(field=field, values=items)


def range_(field: str, gte: Bound | None = None, lte: Bound | None = None) -> Range:
    """Inclusive range on a numeric or date field.

    Either bound may be omitted to leave that side open, but not both.

    Raises:
        EmptyRangeError: If both bounds are None.
        UnsupportedValueTypeError: If a bound is neither numeric nor
            temporal, or the two bounds are of different kinds.
    """
    _check_field(field)
    if gte is None and lte is None:
        raise EmptyRangeError(field)

    kinds = set()
    for bound in (gte, lte):
        if bound is None:
            continue
        kind = bound_kind(bound)
        if kind is None:
            raise UnsupportedValueTypeError(field, bound, _BOUND_TYPES)
        kinds.add(kind)

    if len(kinds) > 1:
        raise UnsupportedValueTypeError(field, lte, f"the same kind as {gte!r}")
    return Range(field=field, gte=gte, lte=lte)


range_query = range_


def match_any(fields: Iterable[str], text: str) -> Bool:
    """Full-text match of ``text`` against any of ``fields``.

    Builds one :class:`Match` per field, OR-combined as ``should``
    clauses, in the order the fields were given.

    Raises:
        EmptyCollectionError: If ``fields`` is empty.
        UnsupportedValueTypeError: If ``fields`` is a single string.
    """
    if isinstance(fields, (str, bytes)):
        raise UnsupportedValueTypeError("<match>", fields, "a collection of field names")
    field_list = tuple(fields)
    if not field_list:
        raise EmptyCollectionError("<match>", "fields")
    if not isinstance(text, str):
        raise UnsupportedValueTypeError(field_list[0], text, "str")

    return Bool(should=tuple(Match(field=_check_field(f), text=text) for f in field_list))


def field_exists(field: str) -> Exists:
    """The field holds at least one non-null value."""
    return Exists(field=_check_field(field))


def bool_query(
    must: Iterable[Predicate] = (),
    should: Iterable[Predicate] = (),
    filter: Iterable[Predicate] = (),
    must_not: Iterable[Predicate] = (),
    minimum_should_match: int | None = None,
) -> Bool:
    """Combine predicates into a :class:`Bool`.

    Raises:
        ValidationError: If ``minimum_should_match`` is negative.
    """
    if minimum_should_match is not None and (
        isinstance(minimum_should_match, bool)
        or not isinstance(minimum_should_match, int)
        or minimum_should_match < 0
    ):
        raise ValidationError(
            "minimum_should_match", minimum_should_match, "must be a non-negative integer"
        )
    return Bool(
        must=tuple(must),
        should=tuple(should),
        filter=tuple(filter),
        must_not=tuple(must_not),
        minimum_should_match=minimum_should_match,
    )
