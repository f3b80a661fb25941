"""Write a starter configuration file."""

from __future__ import annotations

import dataclasses
from importlib import resources
from pathlib import Path

import click

from scorecraft.config import BACKEND_KINDS, Config, get_default_config_path, save_config
from scorecraft.utils.output import error, info, success


def _load_example_config() -> str:
    """Annotated example configuration shipped with the package."""
    return resources.files("scorecraft").joinpath("config.example.toml").read_text()


def _configured(
    backend: str | None, url: str | None, index: str | None, database: Path | None
) -> Config | None:
    """Defaults with the given options applied, or None if none were given."""
    changes: dict[str, object] = {}
    if backend is not None:
        changes["backend"] = backend
    if url is not None:
        changes["elasticsearch_url"] = url
    if index is not None:
        changes["elasticsearch_index"] = index
        changes["local_index"] = index
    if database is not None:
        changes["local_database"] = database
    if not changes:
        return None
    return dataclasses.replace(Config(), **changes)


@click.command("init-config")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Where to write (default: ~/.config/scorecraft/config.toml)",
)
@click.option("--force", "-f", is_flag=True, default=False, help="Replace an existing file")
@click.option("--backend", type=click.Choice(BACKEND_KINDS), default=None, help="Backend kind")
@click.option("--url", default=None, help="Elasticsearch server URL")
@click.option("--index", default=None, help="Index name for both backends")
@click.option(
    "--database",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="SQLite file of the local store",
)
def cli(
    output: Path | None,
    force: bool,
    backend: str | None,
    url: str | None,
    index: str | None,
    database: Path | None,
) -> None:
    """Write a configuration file selecting a backend and index.

    Without backend options the annotated example file is written, set
    up for the local SQLite store.  With any of --backend, --url,
    --index or --database the file holds exactly those settings on top
    of the defaults.

    \b
      scorecraft init-config
      scorecraft init-config --backend elasticsearch --url http://es:9200 --index people
    """
    config_path = (output or get_default_config_path()).expanduser().resolve()
    if config_path.exists() and not force:
        error(f"Config file already exists: {config_path}", hint="Pass --force to replace it")
        raise SystemExit(1)

    config = _configured(backend, url, index, database)
    try:
        if config is None:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            config_path.write_text(_load_example_config())
            kind, index_name = "local", Config().local_index
        else:
            save_config(config, config_path)
            kind, index_name = config.backend, config.index
    except OSError as e:
        error(f"Cannot write {config_path}: {e}")
        raise SystemExit(1)

    success(f"Wrote {config_path}")
    info(f"Backend '{kind}', index '{index_name}'. Next: scorecraft index create")
