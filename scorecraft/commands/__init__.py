"""Subcommands of the ``scorecraft`` group.

Each public module in this package defines its command (or command
group) as a module attribute named ``cli``; :mod:`scorecraft.cli` adds
them all to the top-level group when it is imported.
"""

from __future__ import annotations

import importlib
import logging
import pkgutil

import click

logger = logging.getLogger(__name__)


def command_modules() -> list[str]:
    """Names of the public modules in this package, sorted."""
    return sorted(
        module.name for module in pkgutil.iter_modules(__path__) if not module.name.startswith("_")
    )


def discover_commands() -> list[click.Command]:
    """Import every command module and collect its ``cli`` command."""
    commands: list[click.Command] = []
    for name in command_modules():
        module = importlib.import_module(f"{__name__}.{name}")
        command = getattr(module, "cli", None)
        if isinstance(command, click.Command):
            commands.append(command)
        else:
            logger.debug("Module %s defines no command", name)
    return commands
