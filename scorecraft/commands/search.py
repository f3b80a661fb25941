"""Run a scored search against the configured backend."""

from __future__ import annotations

import json
import re
from datetime import date, datetime

import click

from scorecraft.backend import Hit
from scorecraft.cli import Context, pass_context
from scorecraft.exceptions import BackendError, ScorecraftError, ValidationError
from scorecraft.query import (
    SearchSpecification,
    bool_query,
    decay_placement,
    field_exists,
    field_value_factor,
    gaussian_decay,
    match_any,
    parse_sort,
    range_,
    term,
    terms,
    to_search_body,
    weighted,
    weighted_field_value_factor,
)
from scorecraft.query.ast_nodes import Predicate, ScoreFunction
from scorecraft.search import execute_search
from scorecraft.utils.output import console, create_table, error, info

EXIT_SUCCESS = 0
EXIT_USAGE_ERROR = 1
EXIT_BACKEND_ERROR = 2

_INT_RE = re.compile(r"^-?\d+$")
_FLOAT_RE = re.compile(r"^-?\d+\.\d*$|^-?\d*\.\d+$")

# Width of the document preview column in table output
_PREVIEW_WIDTH = 80


def _parse_scalar(text: str) -> int | str:
    """Integers stay integers, everything else is text."""
    return int(text) if _INT_RE.match(text) else text


def _parse_number(text: str) -> int | float | None:
    if _INT_RE.match(text):
        return int(text)
    if _FLOAT_RE.match(text):
        return float(text)
    return None


def _parse_bound(option: str, text: str) -> int | float | date | datetime | None:
    text = text.strip()
    if not text:
        return None
    number = _parse_number(text)
    if number is not None:
        return number
    try:
        if "T" in text or " " in text:
            return datetime.fromisoformat(text)
        return date.fromisoformat(text)
    except ValueError:
        raise ValidationError(option, text, "bounds must be numbers or ISO dates") from None


def _split_assignment(option: str, text: str) -> tuple[str, str]:
    field, sep, value = text.partition("=")
    if not sep or not field:
        raise ValidationError(option, text, "expected FIELD=VALUE")
    return field.strip(), value


def _build_filters(
    term_opts: tuple[str, ...],
    terms_opts: tuple[str, ...],
    range_opts: tuple[str, ...],
    exists_opts: tuple[str, ...],
) -> list[Predicate]:
    filters: list[Predicate] = []
    for text in term_opts:
        field, value = _split_assignment("--term", text)
        filters.append(term(field, _parse_scalar(value)))
    for text in terms_opts:
        field, values = _split_assignment("--terms", text)
        items = [v.strip() for v in values.split(",")]
        filters.append(terms(field, [_parse_scalar(v) for v in items if v]))
    for text in range_opts:
        field, bounds = _split_assignment("--range", text)
        low, sep, high = bounds.partition("..")
        if not sep:
            raise ValidationError("--range", text, "expected FIELD=LOW..HIGH")
        filters.append(range_(field, _parse_bound("--range", low), _parse_bound("--range", high)))
    for field in exists_opts:
        filters.append(field_exists(field))
    return filters


def _build_functions(
    boost_opts: tuple[str, ...],
    factor_opts: tuple[str, ...],
    gauss_opts: tuple[str, ...],
) -> list[ScoreFunction]:
    functions: list[ScoreFunction] = []

    for text in boost_opts:
        field, rest = _split_assignment("--boost", text)
        value, sep, weight = rest.rpartition(",")
        number = _parse_number(weight)
        if not sep or number is None:
            raise ValidationError("--boost", text, "expected FIELD=VALUE,WEIGHT")
        functions.append(weighted(term(field, _parse_scalar(value)), number))

    for text in factor_opts:
        parts = text.split(",")
        if not 2 <= len(parts) <= 5:
            raise ValidationError(
                "--factor", text, "expected FIELD,FACTOR[,MODIFIER[,MISSING[,WEIGHT]]]"
            )
        numbers = [_parse_number(p) for p in parts[1:]]
        factor = numbers[0]
        missing = numbers[2] if len(parts) > 3 else None
        if factor is None or (len(parts) > 3 and missing is None):
            raise ValidationError("--factor", text, "FACTOR and MISSING must be numbers")
        modifier = parts[2] if len(parts) > 2 and parts[2] else "none"
        fvf = field_value_factor(parts[0], factor, modifier, missing)
        if len(parts) == 5:
            if numbers[3] is None:
                raise ValidationError("--factor", text, "WEIGHT must be a number")
            functions.append(weighted_field_value_factor(fvf, numbers[3]))
        else:
            functions.append(fvf)

    for text in gauss_opts:
        parts = text.split(",")
        if not 4 <= len(parts) <= 5:
            raise ValidationError("--gauss", text, "expected FIELD,ORIGIN,OFFSET,SCALE[,DECAY]")
        field, origin, offset, scale = (p.strip() for p in parts[:4])
        decay = _parse_number(parts[4]) if len(parts) == 5 else 0.5
        if decay is None:
            raise ValidationError("--gauss", text, "DECAY must be a number")
        origin_number = _parse_number(origin)
        if origin_number is not None:
            placement = decay_placement(
                origin_number, _parse_number(offset), _parse_number(scale), decay
            )
        else:
            placement = decay_placement(origin, offset, scale, decay)
        functions.append(gaussian_decay(field, placement))

    return functions


def _preview(document: dict) -> str:
    text = json.dumps(document, ensure_ascii=False, default=str)
    if len(text) <= _PREVIEW_WIDTH:
        return text
    return text[: _PREVIEW_WIDTH - 1] + "…"


def _print_table(hits: list[Hit]) -> None:
    table = create_table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("ID", style="hit.id")
    table.add_column("Score", style="hit.score", justify="right")
    table.add_column("Document", overflow="ellipsis", no_wrap=True)
    for rank, hit in enumerate(hits, start=1):
        score = f"{hit.score:.3f}" if hit.score is not None else "-"
        table.add_row(str(rank), hit.document_id, score, _preview(hit.document))
    console.print(table)


def _print_json(hits: list[Hit]) -> None:
    results = [
        {"id": hit.document_id, "score": hit.score, "document": hit.document} for hit in hits
    ]
    click.echo(json.dumps(results, indent=2, ensure_ascii=False, default=str))


@click.command("search")
@click.option("--match", "match_text", default=None, help="Full-text query")
@click.option("--field", "match_fields", multiple=True, help="Field searched by --match")
@click.option("--term", "term_opts", multiple=True, help="Exact filter FIELD=VALUE")
@click.option("--terms", "terms_opts", multiple=True, help="Any-of filter FIELD=V1,V2,...")
@click.option("--range", "range_opts", multiple=True, help="Inclusive filter FIELD=LOW..HIGH")
@click.option("--exists", "exists_opts", multiple=True, help="Filter on FIELD having a value")
@click.option(
    "--boost", "boost_opts", multiple=True, help="Add WEIGHT when FIELD=VALUE (FIELD=VALUE,WEIGHT)"
)
@click.option(
    "--factor",
    "factor_opts",
    multiple=True,
    help="Score by field value: FIELD,FACTOR[,MODIFIER[,MISSING[,WEIGHT]]]",
)
@click.option(
    "--gauss",
    "gauss_opts",
    multiple=True,
    help="Gaussian decay: FIELD,ORIGIN,OFFSET,SCALE[,DECAY]",
)
@click.option(
    "--sort", "sort_opts", multiple=True, help="Sort key FIELD[:asc|desc[:MODE]], repeatable"
)
@click.option("--from", "offset", type=click.IntRange(min=0), default=None, help="First hit")
@click.option("--size", "limit", type=click.IntRange(min=0), default=None, help="Number of hits")
@click.option(
    "--explain",
    is_flag=True,
    default=False,
    help="Print the request body instead of searching",
)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format (default: table)",
)
@pass_context
def cli(
    ctx: Context,
    match_text: str | None,
    match_fields: tuple[str, ...],
    term_opts: tuple[str, ...],
    terms_opts: tuple[str, ...],
    range_opts: tuple[str, ...],
    exists_opts: tuple[str, ...],
    boost_opts: tuple[str, ...],
    factor_opts: tuple[str, ...],
    gauss_opts: tuple[str, ...],
    sort_opts: tuple[str, ...],
    offset: int | None,
    limit: int | None,
    explain: bool,
    output_format: str,
) -> None:
    """Search the configured index.

    Filters (--term, --terms, --range, --exists) select documents without
    scoring them; --match adds full-text relevance.  Score functions
    (--boost, --factor, --gauss) are summed and replace the relevance
    score, capped at 30.

    \b
    Examples:
      scorecraft search --match "vincent career" --field name --field introduction
      scorecraft search --range grade=2..4 --sort grade:desc --size 2
      scorecraft search --gauss chineseScore,100,15,10,0.5
      scorecraft search --boost departments.keyword=Finance,3 --factor grade,0.5,none,0
      scorecraft search --sort courses.point:desc:max --sort name.keyword
    """
    try:
        filters = _build_filters(term_opts, terms_opts, range_opts, exists_opts)
        must: list[Predicate] = []
        if match_text is not None:
            if not match_fields:
                raise ValidationError("--match", match_text, "needs at least one --field")
            must.append(match_any(match_fields, match_text))

        spec = SearchSpecification()
        if must or filters:
            spec = SearchSpecification(root=bool_query(must=must, filter=filters))
        spec = (
            spec.with_functions(*_build_functions(boost_opts, factor_opts, gauss_opts))
            .with_sort(*(parse_sort(s) for s in sort_opts))
            .with_page(offset, limit)
        )
        compiled = spec.compile()
    except ScorecraftError as e:
        error(f"Invalid search: {e}")
        raise SystemExit(EXIT_USAGE_ERROR)

    if explain:
        click.echo(json.dumps(to_search_body(compiled), indent=2, ensure_ascii=False))
        raise SystemExit(EXIT_SUCCESS)

    try:
        hits = execute_search(ctx.get_backend(), spec)
    except BackendError as e:
        error(f"Search failed: {e}")
        raise SystemExit(EXIT_BACKEND_ERROR)

    if output_format == "json":
        _print_json(hits)
    elif not hits:
        info("No results")
    else:
        _print_table(hits)

    raise SystemExit(EXIT_SUCCESS)
