"""Unit tests for index mappings."""

import pytest

from scorecraft.exceptions import ValidationError
from scorecraft.mapping import STUDENT_MAPPING, FieldType, IndexMapping


def test_from_dict() -> None:
    mapping = IndexMapping.from_dict({"grade": "integer", "joined": "DATE"})
    assert mapping.field_type("grade") is FieldType.INTEGER
    assert mapping.field_type("joined") is FieldType.DATE
    assert mapping.field_type("other") is None


def test_unknown_type() -> None:
    with pytest.raises(ValidationError):
        IndexMapping.from_dict({"grade": "bignum"})


def test_request_body() -> None:
    assert STUDENT_MAPPING.to_dict() == {
        "properties": {"englishTestIssuedDate": {"type": "date"}}
    }


def test_json_round_trip() -> None:
    data = {"name": "text", "grade": "integer"}
    assert IndexMapping.from_dict(data).to_json() == data
