"""
Scoped edit transactions over a source buffer.

All structural edits for one file are recorded against byte offsets of the
buffer they were parsed from and applied together on commit. Nothing is
applied if any edit conflicts or if the block raises.
"""

import logging
from dataclasses import dataclass

from implmerge.merger.errors import StructuralError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Edit:
    start: int
    end: int
    replacement: bytes
    sequence: int

    @property
    def is_insertion(self) -> bool:
        return self.start == self.end


def reindent(text: str, from_column: int, indent: str) -> str:
    """
    Move a multi-line snippet to a new indentation.

    The first line is returned as is (it is placed by the caller). Continuation
    lines lose ``from_column`` leading whitespace and gain ``indent``.
    """
    lines = text.split("\n")
    result = [lines[0]]
    for line in lines[1:]:
        prefix = line[:from_column]
        body = line[from_column:] if not prefix.strip() else line.lstrip()
        result.append(indent + body if body.strip() else body.rstrip(" \t"))
    return "\n".join(result)


class EditTransaction:
    """Collects insert/replace/delete edits and applies them in one pass."""

    def __init__(self, source: bytes):
        self.source = source
        self._edits: list[Edit] = []
        self._committed = False

    def __enter__(self) -> "EditTransaction":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self.rollback()
        return False

    @property
    def pending(self) -> int:
        return len(self._edits)

    def _check_range(self, start: int, end: int) -> None:
        if self._committed:
            raise StructuralError("Transaction already committed")
        if not 0 <= start <= end <= len(self.source):
            raise StructuralError(f"Edit range {start}:{end} outside source of {len(self.source)} bytes")

    def _add(self, start: int, end: int, text: str) -> None:
        self._check_range(start, end)
        self._edits.append(Edit(start, end, text.encode("utf-8"), len(self._edits)))

    def insert(self, offset: int, text: str) -> None:
        """Insert text at an offset. Insertions at one offset keep their call order."""
        self._add(offset, offset, text)

    def replace(self, start: int, end: int, text: str) -> None:
        self._add(start, end, text)

    def delete(self, start: int, end: int) -> None:
        self._add(start, end, "")

    def line_span(self, start: int, end: int) -> tuple[int, int]:
        """
        Widen a range to whole lines when nothing else shares those lines.

        Used so deleting a statement or comment does not leave a blank line.
        """
        line_start = self.source.rfind(b"\n", 0, start) + 1
        line_end = self.source.find(b"\n", end)
        line_end = len(self.source) if line_end == -1 else line_end + 1

        if self.source[line_start:start].strip() or self.source[end:line_end].strip():
            return start, end
        return line_start, line_end

    def delete_lines(self, start: int, end: int) -> None:
        self.delete(*self.line_span(start, end))

    def rollback(self) -> None:
        if self._edits:
            logger.debug("Discarding %d pending edit(s)", len(self._edits))
        self._edits.clear()

    def commit(self) -> str:
        """Apply every edit and return the new source text."""
        if self._committed:
            raise StructuralError("Transaction already committed")

        ordered = sorted(self._edits, key=lambda e: (e.start, 0 if e.is_insertion else 1, e.sequence))

        chunks: list[bytes] = []
        cursor = 0
        for edit in ordered:
            if edit.start < cursor:
                self.rollback()
                raise StructuralError(
                    f"Overlapping edits at byte {edit.start} (previous edit ends at {cursor})"
                )
            chunks.append(self.source[cursor:edit.start])
            chunks.append(edit.replacement)
            cursor = edit.end
        chunks.append(self.source[cursor:])

        self._committed = True
        logger.debug("Committed %d edit(s)", len(ordered))
        return b"".join(chunks).decode("utf-8")
