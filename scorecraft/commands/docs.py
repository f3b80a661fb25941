"""Document persistence commands."""

from __future__ import annotations

import json
from pathlib import Path

import click

from scorecraft.cli import Context, pass_context
from scorecraft.exceptions import ScorecraftError
from scorecraft.search import DEFAULT_ID_FIELD, read_documents
from scorecraft.utils.output import error, info, success

EXIT_SUCCESS = 0
EXIT_NOT_FOUND = 1
EXIT_USAGE_ERROR = 1
EXIT_BACKEND_ERROR = 2


@click.group("docs")
def cli() -> None:
    """Load, fetch and delete documents of the configured index."""
    pass


@cli.command("load")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--id-field",
    default=DEFAULT_ID_FIELD,
    show_default=True,
    help="Document field holding the document id",
)
@click.option(
    "--replace",
    is_flag=True,
    default=False,
    help="Overwrite documents whose id already exists",
)
@pass_context
def load(ctx: Context, file: Path, id_field: str, replace: bool) -> None:
    """Insert every document of a JSON array FILE."""
    try:
        documents = read_documents(file, id_field=id_field)
    except (OSError, ValueError, ScorecraftError) as e:
        error(f"Cannot read {file}: {e}")
        raise SystemExit(EXIT_USAGE_ERROR)

    backend = ctx.get_backend()
    try:
        if replace:
            ids = [backend.save(document_id, doc) for document_id, doc in documents]
            backend.refresh()
        else:
            ids = backend.insert_many(documents)
    except ScorecraftError as e:
        error(str(e))
        raise SystemExit(EXIT_BACKEND_ERROR)
    success(f"Loaded {len(ids)} documents into '{backend.index}'")


@cli.command("get")
@click.argument("document_id")
@pass_context
def get(ctx: Context, document_id: str) -> None:
    """Print one document as JSON."""
    backend = ctx.get_backend()
    try:
        document = backend.get(document_id)
    except ScorecraftError as e:
        error(str(e))
        raise SystemExit(EXIT_BACKEND_ERROR)
    if document is None:
        info(f"No document '{document_id}' in '{backend.index}'")
        raise SystemExit(EXIT_NOT_FOUND)
    click.echo(json.dumps(document, indent=2, ensure_ascii=False))


@cli.command("delete")
@click.argument("document_id")
@pass_context
def delete(ctx: Context, document_id: str) -> None:
    """Delete one document."""
    backend = ctx.get_backend()
    try:
        backend.delete(document_id)
    except ScorecraftError as e:
        error(str(e))
        raise SystemExit(EXIT_BACKEND_ERROR)
    success(f"Deleted '{document_id}' from '{backend.index}'")
