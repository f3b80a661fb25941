"""Index lifecycle commands."""

from __future__ import annotations

import json
from pathlib import Path

import click

from scorecraft.cli import Context, pass_context
from scorecraft.exceptions import ScorecraftError
from scorecraft.mapping import STUDENT_MAPPING, IndexMapping
from scorecraft.utils.output import error, info, success

EXIT_SUCCESS = 0
EXIT_USAGE_ERROR = 1
EXIT_BACKEND_ERROR = 2


def _load_mapping(path: Path | None) -> IndexMapping:
    """Read a ``{"field": "type"}`` JSON file, or use the student mapping."""
    if path is None:
        return STUDENT_MAPPING
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        error(f"Cannot read mapping file {path}: {e}")
        raise SystemExit(EXIT_USAGE_ERROR)
    if not isinstance(data, dict):
        error(f"Mapping file {path} must contain a JSON object")
        raise SystemExit(EXIT_USAGE_ERROR)
    try:
        return IndexMapping.from_dict(data)
    except ScorecraftError as e:
        error(str(e))
        raise SystemExit(EXIT_USAGE_ERROR)


@click.group("index")
def cli() -> None:
    """Create, delete and inspect the configured index."""
    pass


@cli.command("create")
@click.option(
    "--mapping",
    "-m",
    "mapping_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help='JSON file of {"field": "type"} declarations (default: student sample mapping)',
)
@click.option(
    "--recreate",
    is_flag=True,
    default=False,
    help="Delete the index first if it exists",
)
@pass_context
def create(ctx: Context, mapping_file: Path | None, recreate: bool) -> None:
    """Create the index with explicit field mappings."""
    mapping = _load_mapping(mapping_file)
    backend = ctx.get_backend()
    try:
        if recreate:
            backend.init_index(mapping)
        else:
            backend.create_index(mapping)
    except ScorecraftError as e:
        error(str(e))
        raise SystemExit(EXIT_BACKEND_ERROR)
    success(f"Created index '{backend.index}'")


@cli.command("delete")
@click.option("--yes", "-y", is_flag=True, default=False, help="Do not ask for confirmation")
@pass_context
def delete(ctx: Context, yes: bool) -> None:
    """Delete the index and every document in it."""
    backend = ctx.get_backend()
    if not yes:
        click.confirm(f"Delete index '{backend.index}' and all its documents?", abort=True)
    try:
        backend.delete_index()
    except ScorecraftError as e:
        error(str(e))
        raise SystemExit(EXIT_BACKEND_ERROR)
    success(f"Deleted index '{backend.index}'")


@cli.command("exists")
@pass_context
def exists(ctx: Context) -> None:
    """Report whether the index exists (exit status 1 if it does not)."""
    backend = ctx.get_backend()
    try:
        present = backend.index_exists()
    except ScorecraftError as e:
        error(str(e))
        raise SystemExit(EXIT_BACKEND_ERROR)
    if present:
        info(f"Index '{backend.index}' exists")
        raise SystemExit(EXIT_SUCCESS)
    info(f"Index '{backend.index}' does not exist")
    raise SystemExit(EXIT_USAGE_ERROR)
