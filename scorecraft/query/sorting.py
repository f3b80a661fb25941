"""Sort key construction."""

from __future__ import annotations

from scorecraft.exceptions import ValidationError
from scorecraft.query.ast_nodes import SortKey, SortMode, SortOrder


def _coerce(enum_cls, name: str, value):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        choices = ", ".join(m.value for m in enum_cls)
        raise ValidationError(name, value, f"must be one of: {choices}") from None


def sort_key(
    field: str,
    order: SortOrder | str = SortOrder.ASC,
    mode: SortMode | str | None = None,
) -> SortKey:
    """Build one sort key.

    ``mode`` picks the representative value of a multi-valued field and
    is only needed for such fields.  Enum members or their names
    (``"desc"``, ``"max"``) are accepted.
    """
    if not isinstance(field, str) or not field:
        raise ValidationError("field", field, "must be a non-empty string")
    return SortKey(
        field=field,
        order=_coerce(SortOrder, "order", order),
        mode=None if mode is None else _coerce(SortMode, "mode", mode),
    )


def parse_sort(text: str) -> SortKey:
    """Parse ``field[:order[:mode]]``, e.g. ``courses.point:desc:max``.

    A leading ``-`` on the field is shorthand for descending order.
    """
    parts = text.split(":")
    field = parts[0].strip()
    order: str = "asc"
    if field.startswith("-"):
        field = field[1:]
        order = "desc"
    if len(parts) > 1 and parts[1]:
        order = parts[1]
    mode = parts[2] if len(parts) > 2 and parts[2] else None
    if len(parts) > 3:
        raise ValidationError("sort", text, "expected field[:order[:mode]]")
    return sort_key(field, order, mode)
