from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class WorkspaceFolder:
    """Root folder of one project as seen by the host."""
    path: Path
    name: str
    index: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", Path(self.path))
