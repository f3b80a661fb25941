"""Unit tests for sort key construction."""

from __future__ import annotations

import pytest

from scorecraft.exceptions import ValidationError
from scorecraft.query import SortKey, SortMode, SortOrder, parse_sort, sort_key


class TestSortKey:
    def test_defaults_to_ascending_without_mode(self) -> None:
        assert sort_key("name.keyword") == SortKey(field="name.keyword", order=SortOrder.ASC)

    def test_names_are_accepted(self) -> None:
        key = sort_key("courses.point", "DESC", "max")
        assert key.order is SortOrder.DESC
        assert key.mode is SortMode.MAX

    def test_unknown_order(self) -> None:
        with pytest.raises(ValidationError):
            sort_key("grade", "up")

    def test_unknown_mode(self) -> None:
        with pytest.raises(ValidationError):
            sort_key("grade", "asc", "mode")


class TestParseSort:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("grade", SortKey("grade", SortOrder.ASC)),
            ("grade:desc", SortKey("grade", SortOrder.DESC)),
            ("-grade", SortKey("grade", SortOrder.DESC)),
            ("courses.point:desc:max", SortKey("courses.point", SortOrder.DESC, SortMode.MAX)),
            ("courses.point::avg", SortKey("courses.point", SortOrder.ASC, SortMode.AVG)),
        ],
    )
    def test_forms(self, text: str, expected: SortKey) -> None:
        assert parse_sort(text) == expected

    def test_too_many_parts(self) -> None:
        with pytest.raises(ValidationError):
            parse_sort("a:asc:min:extra")
