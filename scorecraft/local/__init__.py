"""Local SQLite document store with an in-process query evaluator."""

from scorecraft.local.evaluator import evaluate, evaluate_function, evaluate_predicate, run_query
from scorecraft.local.models import LocalBase, StoredDocument, StoredIndex
from scorecraft.local.session import get_local_engine, get_local_session
from scorecraft.local.store import LocalBackend

__all__ = [
    "LocalBackend",
    "LocalBase",
    "StoredDocument",
    "StoredIndex",
    "evaluate",
    "evaluate_function",
    "evaluate_predicate",
    "get_local_engine",
    "get_local_session",
    "run_query",
]
