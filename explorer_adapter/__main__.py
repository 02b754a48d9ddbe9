"""Allow ``python -m explorer_adapter`` to launch the command-line host."""

from __future__ import annotations

from .app.master import run


if __name__ == "__main__":
    raise SystemExit(run())
