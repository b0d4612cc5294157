from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

@dataclass(frozen=True)
class Photo:
    """One successfully processed file.

    - path: the file that was modified (or would have been, in dry-run mode)
    - metadata: tag -> value snapshot as it stands after modification
    """
    path: Path
    metadata: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return str(self.path)
