"""Application entrypoints for the explorer adapter."""

from .master import main, parse_args, run

__all__ = ["main", "parse_args", "run"]
