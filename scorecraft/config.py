"""Configuration management for scorecraft."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli_w

from scorecraft.exceptions import (
    ConfigParseError,
    ConfigValidationError,
)

BACKEND_KINDS = ("local", "elasticsearch")

DEFAULT_ELASTICSEARCH_URL = "http://localhost:9200"
DEFAULT_INDEX = "students"
DEFAULT_TIMEOUT = 30.0
DEFAULT_PAGE_SIZE = 10


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".config" / "scorecraft" / "config.toml"


def get_default_local_database() -> Path:
    """Get the default local store database path."""
    return Path.home() / ".local" / "share" / "scorecraft" / "store.db"


@dataclass
class Config:
    """Application configuration.

    Attributes:
        backend: Which backend to use, ``"local"`` or ``"elasticsearch"``.
        elasticsearch_url: Base URL of the Elasticsearch server.
        elasticsearch_index: Index searched on the Elasticsearch server.
        elasticsearch_timeout: Request timeout in seconds.
        local_database: SQLite file of the local store.
        local_index: Index searched in the local store.
        default_page_size: Hits returned by the local backend when a
            search sets no limit.
        colored_output: Whether to use colored terminal output.
        config_path: Path where config was loaded from (None if defaults).
    """

    backend: str = "local"
    elasticsearch_url: str = DEFAULT_ELASTICSEARCH_URL
    elasticsearch_index: str = DEFAULT_INDEX
    elasticsearch_timeout: float = DEFAULT_TIMEOUT
    local_database: Path = field(default_factory=get_default_local_database)
    local_index: str = DEFAULT_INDEX
    default_page_size: int = DEFAULT_PAGE_SIZE
    colored_output: bool = True
    config_path: Path | None = None

    @property
    def index(self) -> str:
        """Index name of the selected backend."""
        if self.backend == "elasticsearch":
            return self.elasticsearch_index
        return self.local_index

    def validate(self) -> list[str]:
        """Validate configuration values.

        Returns:
            List of warning messages for non-fatal issues.

        Raises:
            ConfigValidationError: If a critical validation fails.
        """
        warnings: list[str] = []

        if self.backend not in BACKEND_KINDS:
            raise ConfigValidationError(
                "backend.kind", self.backend, f"must be one of: {', '.join(BACKEND_KINDS)}"
            )

        if self.elasticsearch_timeout <= 0:
            raise ConfigValidationError(
                "elasticsearch.timeout", self.elasticsearch_timeout, "must be positive"
            )

        if self.default_page_size < 0:
            raise ConfigValidationError(
                "search.default_page_size", self.default_page_size, "must not be negative"
            )

        # Expand user paths
        self.local_database = self.local_database.expanduser()

        if self.backend == "elasticsearch" and not self.elasticsearch_url.startswith(
            ("http://", "https://")
        ):
            warnings.append(f"Elasticsearch URL has no http(s) scheme: {self.elasticsearch_url}")

        if self.default_page_size == 0:
            warnings.append("search.default_page_size=0: searches without --size return nothing")

        return warnings


def load_config(config_path: Path | None = None) -> tuple[Config, list[str]]:
    """Load configuration from file or use defaults.

    Args:
        config_path: Explicit config file path. If None, uses default location.

    Returns:
        Tuple of (Config object, list of warning messages).

    Raises:
        ConfigParseError: If config file exists but has invalid syntax.
        ConfigValidationError: If config values are invalid.
    """
    warnings: list[str] = []

    if config_path is None:
        config_path = get_default_config_path()

    config_path = config_path.expanduser().resolve()

    if not config_path.exists():
        # Use defaults
        config = Config()
        warnings.append(
            f"No config file found at {config_path}. Using defaults. "
            f"Create config with: scorecraft init-config"
        )
        config_warnings = config.validate()
        return config, warnings + config_warnings

    # Load from file
    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(config_path, str(e)) from e

    config = _parse_config_dict(data, config_path)
    config_warnings = config.validate()

    return config, warnings + config_warnings


def _get_str(section: dict[str, Any], section_name: str, key: str) -> str:
    value = section[key]
    if not isinstance(value, str):
        raise ConfigValidationError(f"{section_name}.{key}", value, "must be a string")
    return value


def _get_number(section: dict[str, Any], section_name: str, key: str) -> float:
    value = section[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigValidationError(f"{section_name}.{key}", value, "must be a number")
    return float(value)


def _parse_config_dict(data: dict[str, Any], config_path: Path) -> Config:
    """Parse configuration dictionary into Config object."""
    config = Config(config_path=config_path)

    # Parse [backend] section
    backend = data.get("backend", {})
    if "kind" in backend:
        config.backend = _get_str(backend, "backend", "kind")

    # Parse [elasticsearch] section
    elasticsearch = data.get("elasticsearch", {})
    if "url" in elasticsearch:
        config.elasticsearch_url = _get_str(elasticsearch, "elasticsearch", "url")

    if "index" in elasticsearch:
        config.elasticsearch_index = _get_str(elasticsearch, "elasticsearch", "index")

    if "timeout" in elasticsearch:
        config.elasticsearch_timeout = _get_number(elasticsearch, "elasticsearch", "timeout")

    # Parse [local] section
    local = data.get("local", {})
    if "database" in local:
        value = local["database"]
        if not isinstance(value, str):
            raise ConfigValidationError("local.database", value, "must be a string path")
        config.local_database = Path(value)

    if "index" in local:
        config.local_index = _get_str(local, "local", "index")

    # Parse [search] section
    search = data.get("search", {})
    if "default_page_size" in search:
        value = search["default_page_size"]
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigValidationError("search.default_page_size", value, "must be an integer")
        config.default_page_size = value

    # Parse [display] section
    display = data.get("display", {})
    if "colored_output" in display:
        value = display["colored_output"]
        if not isinstance(value, bool):
            raise ConfigValidationError("display.colored_output", value, "must be a boolean")
        config.colored_output = value

    return config


def save_config(config: Config, config_path: Path | None = None) -> None:
    """Save configuration to file.

    Args:
        config: Configuration to save.
        config_path: Path to save to. If None, uses config.config_path or default.
    """
    if config_path is None:
        config_path = config.config_path or get_default_config_path()

    config_path = config_path.expanduser().resolve()

    # Ensure directory exists
    config_path.parent.mkdir(parents=True, exist_ok=True)

    # Build TOML structure
    data: dict[str, Any] = {
        "backend": {"kind": config.backend},
        "elasticsearch": {
            "url": config.elasticsearch_url,
            "index": config.elasticsearch_index,
            "timeout": config.elasticsearch_timeout,
        },
        "local": {
            "database": str(config.local_database),
            "index": config.local_index,
        },
        "display": {
            "colored_output": config.colored_output,
        },
    }

    if config.default_page_size != DEFAULT_PAGE_SIZE:
        data["search"] = {"default_page_size": config.default_page_size}

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
