"""Scored query composition: predicates, score functions, sort and compile."""

from scorecraft.query.ast_nodes import (
    Bool,
    CompiledQuery,
    DecayPlacement,
    Exists,
    FieldValueFactor,
    FunctionScore,
    GaussianDecay,
    Match,
    MatchAll,
    Modifier,
    Range,
    SortKey,
    SortMode,
    SortOrder,
    Term,
    Terms,
    Weighted,
    WeightedFieldValueFactor,
)
from scorecraft.query.dsl import to_search_body
from scorecraft.query.predicates import (
    bool_query,
    field_exists,
    match_all,
    match_any,
    range_,
    range_query,
    term,
    terms,
)
from scorecraft.query.scoring import (
    decay_placement,
    field_value_factor,
    gaussian_decay,
    weighted,
    weighted_field_value_factor,
)
from scorecraft.query.sorting import parse_sort, sort_key
from scorecraft.query.specification import SearchSpecification, compile_search

__all__ = [
    "Bool",
    "CompiledQuery",
    "DecayPlacement",
    "Exists",
    "FieldValueFactor",
    "FunctionScore",
    "GaussianDecay",
    "Match",
    "MatchAll",
    "Modifier",
    "Range",
    "SearchSpecification",
    "SortKey",
    "SortMode",
    "SortOrder",
    "Term",
    "Terms",
    "Weighted",
    "WeightedFieldValueFactor",
    "bool_query",
    "compile_search",
    "decay_placement",
    "field_exists",
    "field_value_factor",
    "gaussian_decay",
    "match_all",
    "match_any",
    "parse_sort",
    "range_",
    "range_query",
    "sort_key",
    "term",
    "terms",
    "to_search_body",
    "weighted",
    "weighted_field_value_factor",
]
