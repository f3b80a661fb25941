"""The ``scorecraft`` command group.

Resolves the configuration once per invocation and hands every
subcommand a :class:`Context` that opens the selected backend on first
use.
"""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path

import click

from scorecraft import __version__
from scorecraft.backend import SearchBackend
from scorecraft.config import BACKEND_KINDS, Config, load_config
from scorecraft.exceptions import ConfigError
from scorecraft.utils.output import error, set_color, set_verbosity, warning


class Context:
    """Resolved settings plus the lazily opened backend."""

    def __init__(self, config: Config | None = None) -> None:
        self.config = config if config is not None else Config()
        self._backend: SearchBackend | None = None

    @property
    def index(self) -> str:
        return self.config.index

    def get_backend(self) -> SearchBackend:
        """Open the configured backend; later calls reuse it."""
        if self._backend is None:
            from scorecraft.search import get_backend

            self._backend = get_backend(self.config)
        return self._backend


pass_context = click.make_pass_decorator(Context, ensure=True)


def apply_overrides(config: Config, backend: str | None, index: str | None) -> Config:
    """Return ``config`` with the ``--backend``/``--index`` options applied.

    ``--index`` names the index of whichever backend ends up selected, so
    it replaces both configured index names.
    """
    changes: dict[str, str] = {}
    if backend is not None:
        changes["backend"] = backend
    if index is not None:
        changes["elasticsearch_index"] = index
        changes["local_index"] = index
    if not changes:
        return config
    return dataclasses.replace(config, **changes)


def _resolve_config(
    config_path: Path | None, backend: str | None, index: str | None, quiet: bool
) -> Config:
    loaded, warnings = load_config(config_path)
    if not quiet:
        for message in warnings:
            warning(message)
    return apply_overrides(loaded, backend, index)


@click.group()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False, path_type=Path),
    help="Config file (default: ~/.config/scorecraft/config.toml)",
)
@click.option(
    "--backend",
    "-b",
    type=click.Choice(BACKEND_KINDS),
    default=None,
    help="Search backend, overriding [backend] kind",
)
@click.option(
    "--index",
    "-i",
    default=None,
    help="Index to act on, overriding the configured index name",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Log backend activity to stderr (-vv for debug detail)",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    default=False,
    help="Hide configuration warnings",
)
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Plain output (also set by NO_COLOR or [display] colored_output)",
)
@click.version_option(version=__version__, prog_name="scorecraft")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path | None,
    backend: str | None,
    index: str | None,
    verbose: int,
    quiet: bool,
    no_color: bool,
) -> None:
    """Compose scored searches and run them on a search backend.

    Searches combine filters, score functions, sort keys and paging into
    one query.  The local backend keeps documents in a SQLite file and
    evaluates queries in process; the elasticsearch backend sends them to
    a server over HTTP.

    \b
    Typical session on the local backend:
      scorecraft index create
      scorecraft docs load students.json
      scorecraft search --match "vincent career" --field name --field introduction
      scorecraft search --gauss chineseScore,100,15,10 --size 3
    """
    set_verbosity(verbose=verbose >= 1, debug=verbose >= 2)

    try:
        settings = _resolve_config(config_path, backend, index, quiet)
    except (ConfigError, OSError) as e:
        error(str(e), hint="Fix the file or write a fresh one with: scorecraft init-config")
        ctx.exit(1)

    if no_color or "NO_COLOR" in os.environ or not settings.colored_output:
        set_color(False)

    ctx.obj = Context(settings)


def _register_commands() -> None:
    from scorecraft.commands import discover_commands

    for command in discover_commands():
        cli.add_command(command)


_register_commands()
