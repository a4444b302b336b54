"""
Editor context: what the user pointed the tool at.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass
class EditorContext:
    """Selected file or directory, plus an optional caret offset into the selected file."""

    selection: Path
    caret_offset: int | None = None
    source_root: Path | None = None

    @property
    def is_directory(self) -> bool:
        return self.selection.is_dir()
