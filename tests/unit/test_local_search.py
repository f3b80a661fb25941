"""Search scenarios on the student sample data through the local backend."""

from __future__ import annotations

from datetime import date

import pytest

from scorecraft.backend import Hit
from scorecraft.local.store import LocalBackend
from scorecraft.query import (
    SearchSpecification,
    bool_query,
    decay_placement,
    field_exists,
    field_value_factor,
    gaussian_decay,
    match_any,
    range_,
    sort_key,
    term,
    terms,
    weighted,
    weighted_field_value_factor,
)
from scorecraft.search import execute_search


def _ids(hits: list[Hit]) -> list[str]:
    return [hit.document_id for hit in hits]


class TestScoreFunctions:
    def test_field_value_factor(self, backend: LocalBackend) -> None:
        spec = SearchSpecification().with_functions(field_value_factor("grade", 0.5, "square", 0))
        hits = execute_search(backend, spec)

        assert _ids(hits) == ["101", "102", "103", "104"]
        assert [h.score for h in hits] == pytest.approx([8.0, 4.5, 2.0, 0.5])

    def test_conditional_weights(self, backend: LocalBackend) -> None:
        spec = SearchSpecification().with_functions(
            weighted(term("departments.keyword", "財務金融"), 3.0),
            weighted(term("courses.courseName.keyword", "程式設計"), 1.5),
            weighted_field_value_factor(field_value_factor("grade", 1.0, "none", 0), 0.5),
        )
        hits = execute_search(backend, spec)

        assert _ids(hits) == ["103", "101", "102", "104"]
        assert [h.score for h in hits] == pytest.approx([5.5, 2.0, 1.5, 0.5])

    def test_numeric_gaussian_decay(self, backend: LocalBackend) -> None:
        spec = SearchSpecification().with_functions(
            gaussian_decay("chineseScore", decay_placement(100, 15, 10, 0.5))
        )
        hits = execute_search(backend, spec)

        assert _ids(hits) == ["103", "102", "101", "104"]
        scores = {h.document_id: h.score for h in hits}
        assert scores["103"] == 1.0
        # chineseScore 75 sits exactly at offset + scale
        assert scores["101"] == pytest.approx(0.5)

    def test_date_gaussian_decay(self, backend: LocalBackend) -> None:
        # backend "now" is 2024-12-01
        spec = SearchSpecification().with_functions(
            gaussian_decay("englishTestIssuedDate", decay_placement("now", "90d", "270d", 0.5))
        )
        hits = execute_search(backend, spec)

        assert _ids(hits) == ["102", "104", "101", "103"]
        assert hits[0].score == 1.0

    def test_scores_never_exceed_max_boost(self, backend: LocalBackend) -> None:
        spec = SearchSpecification().with_functions(field_value_factor("chineseScore", 10.0))
        hits = execute_search(backend, spec)
        assert all(h.score == 30.0 for h in hits)


class TestFilters:
    def test_term_on_number(self, backend: LocalBackend) -> None:
        hits = execute_search(backend, SearchSpecification.of(term("grade", 3)))
        assert _ids(hits) == ["102"]
        assert hits[0].score == 0.0

    def test_terms_on_text(self, backend: LocalBackend) -> None:
        spec = SearchSpecification.of(terms("departments.keyword", ["資訊管理", "企業管理"]))
        assert sorted(_ids(execute_search(backend, spec))) == ["103", "104"]

    def test_numeric_range(self, backend: LocalBackend) -> None:
        spec = SearchSpecification.of(range_("grade", 2, 4))
        assert sorted(_ids(execute_search(backend, spec))) == ["101", "102", "103"]

    def test_date_range(self, backend: LocalBackend) -> None:
        spec = SearchSpecification.of(
            range_("englishTestIssuedDate", date(2024, 7, 1), date(2024, 11, 1))
        )
        assert sorted(_ids(execute_search(backend, spec))) == ["102", "104"]

    def test_field_exists(self, backend: LocalBackend) -> None:
        spec = SearchSpecification.of(field_exists("phoneNumbers"))
        assert sorted(_ids(execute_search(backend, spec))) == ["101", "103"]

    def test_filters_score_zero(self, backend: LocalBackend) -> None:
        hits = execute_search(backend, SearchSpecification.of(range_("grade", 1, 4)))
        assert all(h.score == 0.0 for h in hits)
        assert _ids(hits) == ["101", "102", "103", "104"]

    def test_full_text_bool(self, backend: LocalBackend) -> None:
        root = bool_query(
            must=[match_any(["name", "introduction"], "vincent career"), range_("grade", 0, 1)],
            should=[range_("mathScore", 50, 80)],
            minimum_should_match=0,
        )
        hits = execute_search(backend, SearchSpecification.of(root))

        assert _ids(hits) == ["104"]
        assert hits[0].score > 0


class TestSortingAndPaging:
    def test_multiple_sort_keys(self, backend: LocalBackend) -> None:
        spec = SearchSpecification().with_sort(
            sort_key("courses.point", "desc", "max"), sort_key("name.keyword", "asc")
        )
        assert _ids(execute_search(backend, spec)) == ["102", "103", "101", "104"]

    def test_sort_and_page(self, backend: LocalBackend) -> None:
        spec = SearchSpecification().with_sort(sort_key("grade", "desc")).with_page(0, 2)
        assert _ids(execute_search(backend, spec)) == ["101", "102"]

    def test_second_page(self, backend: LocalBackend) -> None:
        spec = SearchSpecification().with_sort(sort_key("grade", "desc")).with_page(2, 2)
        assert _ids(execute_search(backend, spec)) == ["103", "104"]

    def test_page_past_end(self, backend: LocalBackend) -> None:
        spec = SearchSpecification().with_page(10, 5)
        assert execute_search(backend, spec) == []

    def test_missing_sort_field_goes_last(self, backend: LocalBackend) -> None:
        spec = SearchSpecification().with_sort(sort_key("phoneNumbers", "asc"))
        assert _ids(execute_search(backend, spec))[2:] == ["102", "104"]

    def test_sort_on_boolean_field(self, backend: LocalBackend) -> None:
        spec = SearchSpecification().with_sort(sort_key("job.primary", "desc"))
        assert _ids(execute_search(backend, spec)) == ["101", "103", "102", "104"]
        spec = SearchSpecification().with_sort(sort_key("job.primary", "asc"))
        assert _ids(execute_search(backend, spec)) == ["103", "101", "102", "104"]

    def test_match_all_keeps_insertion_order(self, backend: LocalBackend) -> None:
        hits = execute_search(backend, SearchSpecification())
        assert _ids(hits) == ["101", "102", "103", "104"]
        assert all(h.score == 1.0 for h in hits)

    def test_hits_carry_documents(self, backend: LocalBackend) -> None:
        hits = execute_search(backend, SearchSpecification.of(term("grade", 4)))
        assert hits[0].document["name"] == "Dan"
