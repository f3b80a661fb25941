"""Exception hierarchy for scorecraft."""

from pathlib import Path


class ScorecraftError(Exception):
    """Base exception for all scorecraft errors.

    All exceptions in this package inherit from this class,
    allowing callers to catch all scorecraft errors with
    a single except clause.
    """

    pass


# Query Construction Errors
class QueryConstructionError(ScorecraftError):
    """A predicate or score function could not be built from its inputs."""

    pass


class UnsupportedValueTypeError(QueryConstructionError):
    """Value type is not accepted by the builder."""

    def __init__(self, field: str, value: object, expected: str) -> None:
        self.field = field
        self.value = value
        self.expected = expected
        super().__init__(
            f"Unsupported value {value!r} ({type(value).__name__}) for '{field}': "
            f"expected {expected}"
        )


class EmptyCollectionError(QueryConstructionError):
    """A collection argument that must not be empty was empty."""

    def __init__(self, field: str, argument: str) -> None:
        self.field = field
        self.argument = argument
        super().__init__(f"'{argument}' must not be empty (field '{field}')")


class EmptyRangeError(QueryConstructionError):
    """Range query with neither a lower nor an upper bound."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Range on '{field}' needs at least one bound")


# Validation Errors
class ValidationError(ScorecraftError):
    """Invalid input value."""

    def __init__(self, field: str, value: object, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class InvalidDecayPlacementError(ValidationError):
    """Decay placement parameters are out of range or of mixed kinds."""

    pass


# Backend Errors
class BackendError(ScorecraftError):
    """Search backend errors."""

    pass


class ExecutorFailure(BackendError):
    """A query could not be executed by the backend.

    The underlying exception, when there is one, is kept on ``cause``
    and chained as ``__cause__``.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        self.cause = cause
        super().__init__(message)


class IndexNotFoundError(BackendError):
    """Index doesn't exist."""

    def __init__(self, index: str) -> None:
        self.index = index
        super().__init__(f"Index not found: {index}")


class DocumentExistsError(BackendError):
    """A document with the same id is already stored."""

    def __init__(self, index: str, document_id: str) -> None:
        self.index = index
        self.document_id = document_id
        super().__init__(f"Document '{document_id}' already exists in index '{index}'")


# Configuration Errors
class ConfigError(ScorecraftError):
    """Configuration-related errors."""

    pass


class ConfigParseError(ConfigError):
    """Configuration file has invalid syntax."""

    def __init__(self, path: Path, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Invalid config at {path}: {detail}")


class ConfigValidationError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: object, reason: str) -> None:
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid config value for '{key}': {reason}")
