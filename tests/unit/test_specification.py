"""Unit tests for search specifications and compilation."""

from __future__ import annotations

import pytest

from scorecraft.exceptions import ValidationError
from scorecraft.query import (
    Bool,
    CompiledQuery,
    FunctionScore,
    MatchAll,
    SearchSpecification,
    compile_search,
    decay_placement,
    field_value_factor,
    gaussian_decay,
    match_any,
    range_,
    sort_key,
    term,
    weighted,
)


class TestOf:
    def test_wraps_leaf_in_filter(self) -> None:
        spec = SearchSpecification.of(term("grade", 3))
        assert spec.root == Bool(filter=(term("grade", 3),))

    def test_uses_bool_directly(self) -> None:
        root = match_any(["name"], "dan")
        assert SearchSpecification.of(root).root is root

    def test_default_root_is_match_all(self) -> None:
        assert SearchSpecification().root == MatchAll()


class TestCompile:
    def test_without_functions_keeps_root(self) -> None:
        compiled = SearchSpecification.of(range_("grade", 2, 4)).compile()
        assert compiled == CompiledQuery(query=Bool(filter=(range_("grade", 2, 4),)))

    def test_functions_wrap_root(self) -> None:
        fvf = field_value_factor("grade", 0.5, "square", 0)
        compiled = SearchSpecification().with_functions(fvf).compile()

        assert isinstance(compiled.query, FunctionScore)
        assert compiled.query.query == MatchAll()
        assert compiled.query.functions == (fvf,)
        assert compiled.query.score_mode == "sum"
        assert compiled.query.boost_mode == "replace"
        assert compiled.query.max_boost == 30.0

    def test_functions_keep_order(self) -> None:
        functions = (
            weighted(term("departments.keyword", "財務金融"), 3.0),
            weighted(term("courses.courseName.keyword", "程式設計"), 1.5),
            gaussian_decay("chineseScore", decay_placement(100, 15, 10)),
        )
        compiled = SearchSpecification(functions=list(functions)).compile()
        assert compiled.query.functions == functions

    def test_sort_and_window_carried_over(self) -> None:
        key = sort_key("grade", "desc")
        compiled = SearchSpecification().with_sort(key).with_page(0, 2).compile()
        assert compiled.sort == (key,)
        assert (compiled.offset, compiled.limit) == (0, 2)

    def test_unset_window(self) -> None:
        compiled = SearchSpecification().compile()
        assert compiled.offset is None
        assert compiled.limit is None

    @pytest.mark.parametrize("window", [(-1, None), (None, -5), (True, None)])
    def test_invalid_window(self, window: tuple) -> None:
        with pytest.raises(ValidationError):
            SearchSpecification().with_page(*window).compile()

    def test_invalid_function(self) -> None:
        with pytest.raises(ValidationError):
            SearchSpecification(functions=("grade",)).compile()  # type: ignore[arg-type]

    def test_invalid_sort_key(self) -> None:
        with pytest.raises(ValidationError):
            SearchSpecification(sort=("grade",)).compile()  # type: ignore[arg-type]

    def test_compile_is_repeatable(self) -> None:
        spec = SearchSpecification.of(term("grade", 3)).with_functions(field_value_factor("grade"))
        assert spec.compile() == spec.compile()

    def test_compile_search_shorthand(self) -> None:
        compiled = compile_search(sort=[sort_key("grade")], limit=3)
        assert compiled.query == MatchAll()
        assert compiled.limit == 3
