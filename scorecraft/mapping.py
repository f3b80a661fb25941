"""Field mapping declarations used when creating an index."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from scorecraft.exceptions import ValidationError


class FieldType(enum.Enum):
    """Declared type of an indexed field."""

    TEXT = "text"
    KEYWORD = "keyword"
    INTEGER = "integer"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    DATE = "date"
    BOOLEAN = "boolean"
    OBJECT = "object"
    NESTED = "nested"


@dataclass(frozen=True)
class IndexMapping:
    """Explicit field types for an index.

    Fields not listed are typed by the backend on first use.  The query
    builders trust these declarations; nothing is checked at query time.
    """

    fields: Mapping[str, FieldType] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> IndexMapping:
        """Build from ``{"field": "type"}`` pairs.

        Raises:
            ValidationError: If a type name is unknown.
        """
        fields: dict[str, FieldType] = {}
        for name, type_name in data.items():
            try:
                fields[name] = FieldType(str(type_name).lower())
            except ValueError:
                choices = ", ".join(t.value for t in FieldType)
                raise ValidationError(
                    f"mapping type of '{name}'", type_name, f"must be one of: {choices}"
                ) from None
        return cls(fields=fields)

    def field_type(self, name: str) -> FieldType | None:
        return self.fields.get(name)

    def to_dict(self) -> dict[str, Any]:
        """Render the ``mappings`` body of a create-index request."""
        return {"properties": {name: {"type": t.value} for name, t in self.fields.items()}}

    def to_json(self) -> dict[str, str]:
        """Plain ``{"field": "type"}`` form, the inverse of :meth:`from_dict`."""
        return {name: t.value for name, t in self.fields.items()}


# Mapping for the bundled student sample data: only the date field needs
# an explicit type, everything else is detected dynamically.
STUDENT_MAPPING = IndexMapping(fields={"englishTestIssuedDate": FieldType.DATE})
