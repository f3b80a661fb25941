"""HTTP client for an Elasticsearch-compatible search backend.

Implements both the query executor (``_search``) and the document store
operations (index lifecycle, single and bulk writes, reads) over the
backend's JSON REST API.  Nothing is retried: failures are logged and
raised to the caller.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any

import requests

from scorecraft import __version__
from scorecraft.backend import Hit
from scorecraft.exceptions import (
    BackendError,
    DocumentExistsError,
    ExecutorFailure,
    IndexNotFoundError,
)
from scorecraft.mapping import IndexMapping
from scorecraft.query.ast_nodes import CompiledQuery, Expression, SortKey
from scorecraft.query.dsl import to_search_body

logger = logging.getLogger(__name__)

_USER_AGENT = f"scorecraft/{__version__}"
_REQUEST_TIMEOUT = 30
_NDJSON = "application/x-ndjson"


def _error_reason(resp: requests.Response) -> str:
    """Extract the backend's error reason from a failed response."""
    try:
        data = resp.json()
    except ValueError:
        return resp.text[:200] or resp.reason or ""
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict):
        return str(error.get("reason") or error.get("type") or error)
    if error:
        return str(error)
    return str(data)[:200]


def _error_type(resp: requests.Response) -> str | None:
    try:
        data = resp.json()
    except ValueError:
        return None
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict):
        return error.get("type")
    return None


def parse_hits(data: dict[str, Any]) -> list[Hit]:
    """Convert a ``_search`` response body into hits.

    Raises:
        KeyError, TypeError: If the body does not have the expected shape.
    """
    hits = []
    for raw in data["hits"]["hits"]:
        score = raw.get("_score")
        hits.append(
            Hit(
                document_id=str(raw["_id"]),
                score=float(score) if score is not None else None,
                document=raw.get("_source") or {},
            )
        )
    return hits


class ElasticsearchClient:
    """Client bound to one index of an Elasticsearch-compatible server.

    Args:
        url: Base URL of the server, e.g. ``http://localhost:9200``.
        index: Name of the index all operations act on.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        url: str = "http://localhost:9200",
        index: str = "students",
        timeout: float = _REQUEST_TIMEOUT,
    ) -> None:
        self.url = url.rstrip("/")
        self.index = index
        self.timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({"User-Agent": _USER_AGENT})

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        """Send one request; HTTP error statuses are left to the caller.

        Raises:
            BackendError: If the server cannot be reached.
        """
        url = f"{self.url}{path}"
        kwargs.setdefault("timeout", self.timeout)
        logger.debug("%s %s", method, url)
        try:
            return self._session.request(method, url, **kwargs)
        except requests.RequestException as e:
            logger.error("Request %s %s failed: %s", method, url, e)
            raise BackendError(f"Request to {url} failed: {e}") from e

    def _document_path(self, endpoint: str, document_id: str) -> str:
        return f"/{self.index}/{endpoint}/{requests.utils.quote(document_id, safe='')}"

    def _check(self, resp: requests.Response, action: str) -> requests.Response:
        """Raise for HTTP error statuses.

        Raises:
            IndexNotFoundError: If the backend reports a missing index.
            BackendError: For any other error status.
        """
        if resp.status_code < 400:
            return resp
        if resp.status_code == 404 and _error_type(resp) == "index_not_found_exception":
            raise IndexNotFoundError(self.index)
        reason = _error_reason(resp)
        logger.error("%s failed (HTTP %d): %s", action, resp.status_code, reason)
        raise BackendError(f"{action} failed (HTTP {resp.status_code}): {reason}")

    # -- Query executor ------------------------------------------------------

    def execute(
        self,
        query: Expression,
        sort: Sequence[SortKey] = (),
        offset: int | None = None,
        limit: int | None = None,
    ) -> list[Hit]:
        """Run a compiled query expression and return the ranked hits.

        Raises:
            ExecutorFailure: On connection errors, backend errors or a
                malformed response.  The original error is the cause.
        """
        compiled = CompiledQuery(query=query, sort=tuple(sort), offset=offset, limit=limit)
        body = to_search_body(compiled)
        action = f"Search on index '{self.index}'"
        try:
            resp = self._check(self._request("POST", f"/{self.index}/_search", json=body), action)
            hits = parse_hits(resp.json())
        except BackendError as e:
            raise ExecutorFailure(str(e), cause=e) from e
        except (ValueError, KeyError, TypeError) as e:
            logger.error("%s returned a malformed response: %s", action, e)
            raise ExecutorFailure(f"{action} returned a malformed response: {e}", cause=e) from e

        for hit in hits:
            score = f"{hit.score:.3f}" if hit.score is not None else "-"
            logger.debug("ID: %s, Score: %s", hit.document_id, score)
        return hits

    # -- Index lifecycle -----------------------------------------------------

    def index_exists(self) -> bool:
        resp = self._request("HEAD", f"/{self.index}")
        if resp.status_code == 404:
            return False
        self._check(resp, f"Checking index '{self.index}'")
        return True

    def create_index(self, mapping: IndexMapping | None = None) -> None:
        body: dict[str, Any] = {}
        if mapping is not None and mapping.fields:
            body["mappings"] = mapping.to_dict()
        self._check(
            self._request("PUT", f"/{self.index}", json=body),
            f"Creating index '{self.index}'",
        )
        logger.info("Created index %s", self.index)

    def delete_index(self) -> None:
        self._check(
            self._request("DELETE", f"/{self.index}"),
            f"Deleting index '{self.index}'",
        )
        logger.info("Deleted index %s", self.index)

    def init_index(self, mapping: IndexMapping | None = None) -> None:
        """Recreate the index from scratch, dropping existing documents."""
        if self.index_exists():
            self.delete_index()
        self.create_index(mapping)

    def refresh(self) -> None:
        """Make recent writes visible to searches."""
        self._check(
            self._request("POST", f"/{self.index}/_refresh"),
            f"Refreshing index '{self.index}'",
        )

    # -- Documents -----------------------------------------------------------

    def insert(self, document_id: str, document: dict[str, Any]) -> str:
        """Create a document; fails if the id is taken.

        Returns:
            The id assigned by the backend.

        Raises:
            DocumentExistsError: If a document with this id exists.
        """
        resp = self._request("PUT", self._document_path("_create", document_id), json=document)
        if resp.status_code == 409:
            raise DocumentExistsError(self.index, document_id)
        self._check(resp, f"Inserting document '{document_id}'")
        return str(resp.json().get("_id", document_id))

    def insert_many(
        self,
        documents: Sequence[tuple[str, dict[str, Any]]],
        refresh: bool = True,
    ) -> list[str]:
        """Create several documents in one bulk request.

        Args:
            documents: ``(id, document)`` pairs.
            refresh: Wait until the documents are searchable.

        Returns:
            Assigned ids, in input order.

        Raises:
            BackendError: If any document was rejected.
        """
        if not documents:
            return []

        lines = []
        for document_id, document in documents:
            lines.append(json.dumps({"create": {"_index": self.index, "_id": document_id}}))
            lines.append(json.dumps(document, ensure_ascii=False))
        payload = ("\n".join(lines) + "\n").encode("utf-8")

        params = {"refresh": "wait_for"} if refresh else None
        resp = self._request(
            "POST",
            "/_bulk",
            data=payload,
            params=params,
            headers={"Content-Type": _NDJSON},
        )
        self._check(resp, f"Bulk insert into '{self.index}'")

        ids: list[str] = []
        failures: list[str] = []
        for item in resp.json().get("items", []):
            result = item.get("create", {})
            if "error" in result:
                failures.append(f"{result.get('_id')}: {result['error'].get('reason', '?')}")
            ids.append(str(result.get("_id")))
        if failures:
            logger.error("Bulk insert rejected %d documents", len(failures))
            raise BackendError(
                f"Bulk insert rejected {len(failures)} document(s): " + "; ".join(failures)
            )
        logger.info("Inserted %d documents into %s", len(ids), self.index)
        return ids

    def save(self, document_id: str, document: dict[str, Any]) -> str:
        """Create or replace a document."""
        resp = self._request("PUT", self._document_path("_doc", document_id), json=document)
        self._check(resp, f"Saving document '{document_id}'")
        return str(resp.json().get("_id", document_id))

    def delete(self, document_id: str) -> None:
        """Delete a document; deleting a missing document is a no-op."""
        resp = self._request("DELETE", self._document_path("_doc", document_id))
        if resp.status_code == 404 and _error_type(resp) is None:
            logger.debug("Document %s not found, nothing to delete", document_id)
            return
        self._check(resp, f"Deleting document '{document_id}'")

    def get(self, document_id: str) -> dict[str, Any] | None:
        """Fetch a document's source, or None if there is no such document."""
        resp = self._request("GET", self._document_path("_doc", document_id))
        if resp.status_code == 404 and _error_type(resp) is None:
            return None
        self._check(resp, f"Fetching document '{document_id}'")
        return resp.json().get("_source")
