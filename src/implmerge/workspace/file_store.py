"""
File store for source files.

All disk access of the merge pipeline goes through here: reads, atomic
writes, deletes and directory listings.
"""

import logging
import os
import tempfile
import time
from pathlib import Path

logger = logging.getLogger(__name__)


class FileStore:
    """Reads, writes and deletes source files. In dry-run mode nothing is modified."""

    def __init__(self, encoding: str = "utf-8", settle_delay: float = 0.0, dry_run: bool = False):
        self.encoding = encoding
        self.settle_delay = settle_delay
        self.dry_run = dry_run
        self._line_endings: dict[Path, str] = {}

    def read(self, path: Path) -> str:
        """
        Read a file, converting CRLF line endings to LF.

        The file's own line ending is remembered so ``write`` can restore it.
        """
        with path.open(encoding=self.encoding, newline="") as f:
            text = f.read()
        self._line_endings[path.resolve()] = "\r\n" if "\r\n" in text else "\n"
        return text.replace("\r\n", "\n")

    def line_ending(self, path: Path) -> str:
        """Line ending of a file as last read, LF if it was never read."""
        return self._line_endings.get(path.resolve(), "\n")

    def write(self, path: Path, text: str, newline: str = "\n") -> None:
        """
        Replace a file's contents atomically (temp file in the same directory + rename).

        Each LF in ``text`` is written as ``newline``.
        """
        if self.dry_run:
            logger.info("[dry-run] would write %s", path)
            return

        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding=self.encoding, newline=newline) as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Wrote %s", path)

    def delete(self, path: Path) -> None:
        if self.dry_run:
            logger.info("[dry-run] would delete %s", path)
            return
        path.unlink()
        logger.debug("Deleted %s", path)

    def list_files(self, root: Path, pattern: str, exclude_patterns: list[str] | None = None) -> list[Path]:
        """Recursively list files under ``root`` matching a glob pattern, sorted."""
        exclude_patterns = exclude_patterns or []
        found = []
        for file_path in root.rglob(pattern):
            if not file_path.is_file():
                continue
            relative = file_path.relative_to(root)
            if any(excluded in part for part in relative.parts[:-1] for excluded in exclude_patterns):
                continue
            found.append(file_path)
        return sorted(found)

    def settle(self) -> None:
        """Give external watchers time to observe rewrites before anything reloads."""
        if self.settle_delay > 0 and not self.dry_run:
            time.sleep(self.settle_delay)
