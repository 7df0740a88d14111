"""PackResult — what a finished pack operation hands back to its caller."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from appforge.model import ArchiveFormat


@dataclass(frozen=True, slots=True)
class PackResult:
    """Summary of one archive written by ``pack_directory``.

    ``entries`` lists logical names in the order they were written, which is
    the walk order: root by root, depth first, siblings sorted by name.
    """

    output: Path
    format: ArchiveFormat
    roots: tuple[Path, ...]
    entries: tuple[str, ...]

    @property
    def entry_count(self) -> int:
        return len(self.entries)

    def to_dict(self) -> dict[str, Any]:
        return {
            "output": self.output.as_posix(),
            "format": self.format.value,
            "roots": [r.as_posix() for r in self.roots],
            "entries": list(self.entries),
            "entry_count": self.entry_count,
        }
