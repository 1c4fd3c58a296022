"""CLI package for setting and sharing ooohh dials."""

from importlib import import_module
from types import ModuleType


def __getattr__(name: str) -> ModuleType:
    if name == "app":
        return import_module("cli.app")
    raise AttributeError(name)

# The Typer application lives in ``cli.app``; the package root resolves the
# module, not the Typer instance, so tests can patch attributes on it.

__all__ = []
