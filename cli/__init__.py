"""Command line interface for the soil health service."""

from importlib import import_module
from types import ModuleType


def __getattr__(name: str) -> ModuleType:
    if name == "app":
        return import_module("cli.app")
    raise AttributeError(name)

# The Typer instance stays on ``cli.app.app``; re-exporting it here would shadow
# the ``cli.app`` module that tests patch attributes on.

__all__ = []
