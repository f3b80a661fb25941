"""Unit tests for configuration."""

from pathlib import Path

import pytest

from scorecraft.config import Config, load_config, save_config
from scorecraft.exceptions import ConfigParseError, ConfigValidationError
from scorecraft.search import get_backend


def test_default_config() -> None:
    """Test that default config has sensible values."""
    config = Config()
    assert config.backend == "local"
    assert config.elasticsearch_url == "http://localhost:9200"
    assert config.index == "students"
    assert config.default_page_size == 10
    assert config.colored_output is True


def test_load_missing_config(temp_dir: Path) -> None:
    """Test loading when config file doesn't exist."""
    config_path = temp_dir / "nonexistent.toml"
    config, warnings = load_config(config_path)

    assert config is not None
    assert len(warnings) > 0  # Should warn about missing file


def test_load_valid_config(sample_config: Path, temp_dir: Path) -> None:
    """Test loading a valid config file."""
    config, warnings = load_config(sample_config)

    assert warnings == []
    assert config.backend == "local"
    assert config.elasticsearch_url == "http://search.example:9200"
    assert config.elasticsearch_index == "people"
    assert config.elasticsearch_timeout == 5.0
    assert config.local_database == temp_dir / "store.db"
    assert config.colored_output is False
    assert config.config_path == sample_config.resolve()


def test_index_follows_backend(sample_config: Path) -> None:
    config, _ = load_config(sample_config)
    assert config.index == "students"
    config.backend = "elasticsearch"
    assert config.index == "people"


def test_load_invalid_toml(temp_dir: Path) -> None:
    """Test loading invalid TOML raises error."""
    config_path = temp_dir / "invalid.toml"
    config_path.write_text("this is not valid [ toml")

    with pytest.raises(ConfigParseError):
        load_config(config_path)


@pytest.mark.parametrize(
    "content",
    [
        '[backend]\nkind = "solr"\n',
        '[display]\ncolored_output = "not a boolean"\n',
        "[elasticsearch]\ntimeout = 0\n",
        '[elasticsearch]\ntimeout = "slow"\n',
        "[search]\ndefault_page_size = -1\n",
        "[search]\ndefault_page_size = 2.5\n",
        "[local]\ndatabase = 3\n",
    ],
)
def test_config_validation_errors(temp_dir: Path, content: str) -> None:
    """Test that invalid values raise validation error."""
    config_path = temp_dir / "bad.toml"
    config_path.write_text(content)

    with pytest.raises(ConfigValidationError):
        load_config(config_path)


def test_url_without_scheme_warns(temp_dir: Path) -> None:
    config_path = temp_dir / "config.toml"
    config_path.write_text('[backend]\nkind = "elasticsearch"\n[elasticsearch]\nurl = "localhost:9200"\n')

    _, warnings = load_config(config_path)
    assert any("scheme" in w for w in warnings)


def test_config_path_expansion() -> None:
    """Test that paths are expanded."""
    config = Config(local_database=Path("~/store.db"))
    config.validate()

    assert "~" not in str(config.local_database)


def test_save_and_reload(temp_dir: Path) -> None:
    config = Config(
        backend="elasticsearch",
        elasticsearch_index="people",
        local_database=temp_dir / "x.db",
        default_page_size=25,
        colored_output=False,
    )
    path = temp_dir / "saved" / "config.toml"
    save_config(config, path)

    loaded, warnings = load_config(path)
    assert loaded.backend == "elasticsearch"
    assert loaded.elasticsearch_index == "people"
    assert loaded.local_database == temp_dir / "x.db"
    assert loaded.default_page_size == 25
    assert loaded.colored_output is False


def test_get_backend_kinds(temp_dir: Path) -> None:
    from scorecraft.elastic.client import ElasticsearchClient
    from scorecraft.local.store import LocalBackend

    local = get_backend(Config(local_database=temp_dir / "s.db", default_page_size=3))
    assert isinstance(local, LocalBackend)
    assert local.default_page_size == 3

    remote = get_backend(Config(backend="elasticsearch", elasticsearch_index="people"))
    assert isinstance(remote, ElasticsearchClient)
    assert remote.index == "people"
