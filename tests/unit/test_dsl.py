"""Unit tests for rendering compiled queries as request bodies."""

from __future__ import annotations

from datetime import date, timedelta

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
    to_search_body,
    weighted,
    weighted_field_value_factor,
)
from scorecraft.query.dsl import build_predicate


class TestPredicates:
    def test_term(self) -> None:
        assert build_predicate(term("grade", 3)) == {"term": {"grade": {"value": 3}}}

    def test_terms(self) -> None:
        node = terms("departments.keyword", ["資訊管理", "企業管理"])
        assert build_predicate(node) == {"terms": {"departments.keyword": ["資訊管理", "企業管理"]}}

    def test_open_range(self) -> None:
        assert build_predicate(range_("grade", gte=2)) == {"range": {"grade": {"gte": 2}}}

    def test_date_range(self) -> None:
        node = range_("englishTestIssuedDate", date(2024, 7, 1), date(2024, 11, 1))
        assert build_predicate(node) == {
            "range": {"englishTestIssuedDate": {"gte": "2024-07-01", "lte": "2024-11-01"}}
        }

    def test_exists(self) -> None:
        assert build_predicate(field_exists("phoneNumbers")) == {
            "exists": {"field": "phoneNumbers"}
        }

    def test_bool_omits_empty_clauses(self) -> None:
        node = bool_query(
            must=[match_any(["name"], "dan")],
            should=[range_("mathScore", 50, 80)],
            minimum_should_match=0,
        )
        assert build_predicate(node) == {
            "bool": {
                "must": [{"bool": {"should": [{"match": {"name": {"query": "dan"}}}]}}],
                "should": [{"range": {"mathScore": {"gte": 50, "lte": 80}}}],
                "minimum_should_match": 0,
            }
        }


class TestSearchBody:
    def test_match_all_without_options(self) -> None:
        body = to_search_body(SearchSpecification().compile())
        assert body == {"query": {"match_all": {}}}

    def test_filter_context(self) -> None:
        body = to_search_body(SearchSpecification.of(term("grade", 3)).compile())
        assert body == {"query": {"bool": {"filter": [{"term": {"grade": {"value": 3}}}]}}}

    def test_function_score(self) -> None:
        spec = SearchSpecification().with_functions(
            weighted(term("departments.keyword", "財務金融"), 3.0),
            weighted_field_value_factor(field_value_factor("grade", 1.0, "none", 0), 0.5),
            gaussian_decay("chineseScore", decay_placement(100, 15, 10, 0.5)),
        )
        body = to_search_body(spec.compile())

        assert body == {
            "query": {
                "function_score": {
                    "query": {"match_all": {}},
                    "functions": [
                        {
                            "filter": {"term": {"departments.keyword": {"value": "財務金融"}}},
                            "weight": 3.0,
                        },
                        {
                            "field_value_factor": {
                                "field": "grade",
                                "factor": 1.0,
                                "modifier": "none",
                                "missing": 0.0,
                            },
                            "weight": 0.5,
                        },
                        {
                            "gauss": {
                                "chineseScore": {
                                    "origin": 100,
                                    "offset": 15,
                                    "scale": 10,
                                    "decay": 0.5,
                                }
                            }
                        },
                    ],
                    "score_mode": "sum",
                    "boost_mode": "replace",
                    "max_boost": 30.0,
                }
            }
        }

    def test_field_value_factor_without_missing(self) -> None:
        spec = SearchSpecification().with_functions(field_value_factor("grade", 2.0, "sqrt"))
        function = to_search_body(spec.compile())["query"]["function_score"]["functions"][0]
        assert function == {
            "field_value_factor": {"field": "grade", "factor": 2.0, "modifier": "sqrt"}
        }

    def test_temporal_gauss(self) -> None:
        placement = decay_placement(date(2024, 12, 1), timedelta(days=90), "270d")
        spec = SearchSpecification().with_functions(
            gaussian_decay("englishTestIssuedDate", placement)
        )
        function = to_search_body(spec.compile())["query"]["function_score"]["functions"][0]
        assert function == {
            "gauss": {
                "englishTestIssuedDate": {
                    "origin": "2024-12-01",
                    "offset": "90d",
                    "scale": "270d",
                    "decay": 0.5,
                }
            }
        }

    def test_now_origin_passes_through(self) -> None:
        spec = SearchSpecification().with_functions(
            gaussian_decay("englishTestIssuedDate", decay_placement("now", "90d", "270d"))
        )
        function = to_search_body(spec.compile())["query"]["function_score"]["functions"][0]
        assert function["gauss"]["englishTestIssuedDate"]["origin"] == "now"

    def test_sort_and_window(self) -> None:
        spec = (
            SearchSpecification()
            .with_sort(sort_key("courses.point", "desc", "max"), sort_key("name.keyword"))
            .with_page(0, 2)
        )
        body = to_search_body(spec.compile())
        assert body["sort"] == [
            {"courses.point": {"order": "desc", "mode": "max"}},
            {"name.keyword": {"order": "asc"}},
        ]
        assert body["from"] == 0
        assert body["size"] == 2
