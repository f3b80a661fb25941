"""Wire specifications, backends and document files together."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from scorecraft.backend import Hit, QueryExecutor, SearchBackend
from scorecraft.config import Config
from scorecraft.exceptions import ValidationError
from scorecraft.query.specification import SearchSpecification

logger = logging.getLogger(__name__)

DEFAULT_ID_FIELD = "studentId"


def get_backend(config: Config) -> SearchBackend:
    """Create the backend selected by ``config.backend``."""
    if config.backend == "elasticsearch":
        from scorecraft.elastic.client import ElasticsearchClient

        return ElasticsearchClient(
            url=config.elasticsearch_url,
            index=config.elasticsearch_index,
            timeout=config.elasticsearch_timeout,
        )

    from scorecraft.local.store import LocalBackend

    return LocalBackend(
        database=config.local_database,
        index=config.local_index,
        default_page_size=config.default_page_size,
    )


def execute_search(executor: QueryExecutor, spec: SearchSpecification) -> list[Hit]:
    """Compile ``spec`` and run it on ``executor``.

    Args:
        executor: Backend that evaluates the compiled query.
        spec: What to search for.

    Returns:
        Ranked hits for the requested window.

    Raises:
        ValidationError: If the specification does not compile.
        ExecutorFailure: If the backend fails; propagated unchanged.
    """
    compiled = spec.compile()
    logger.debug("Executing %s", compiled)
    return executor.execute(
        compiled.query,
        sort=compiled.sort,
        offset=compiled.offset,
        limit=compiled.limit,
    )


def read_documents(path: Path, id_field: str = DEFAULT_ID_FIELD) -> list[tuple[str, dict[str, Any]]]:
    """Read a JSON array of documents as ``(id, document)`` pairs.

    Raises:
        ValidationError: If the file is not a JSON array of objects or a
            document lacks ``id_field``.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValidationError("documents", str(path), "must be a JSON array")

    documents = []
    for position, document in enumerate(data):
        if not isinstance(document, dict):
            raise ValidationError(f"document #{position}", document, "must be a JSON object")
        document_id = document.get(id_field)
        if document_id in (None, ""):
            raise ValidationError(f"document #{position}", document, f"has no '{id_field}'")
        documents.append((str(document_id), document))
    return documents
