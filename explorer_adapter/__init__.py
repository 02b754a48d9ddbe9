"""Test explorer adapter: load, run and debug tests behind stable event channels."""

from __future__ import annotations

from importlib import metadata

from .app.master import main, run

try:
    __version__ = metadata.version("explorer-adapter")
except metadata.PackageNotFoundError:  # pragma: no cover - local dev
    __version__ = "0.0.0"


__all__ = ["__version__", "main", "run"]
