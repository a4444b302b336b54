"""
Batch Driver.

Turns an editor context into a list of merge targets and runs the per-file
pipeline on each. A failure on one file is reported and the batch moves on.
"""

import logging
from pathlib import Path

from implmerge.config.models import BatchReport, FileOutcome, ImplMergeConfig, MergeStatus
from implmerge.merger.errors import MergeError, PreconditionError
from implmerge.merger.orchestrator import MergeOrchestrator
from implmerge.workspace.context import EditorContext
from implmerge.workspace.file_store import FileStore

logger = logging.getLogger(__name__)


def resolve_targets(context: EditorContext, config: ImplMergeConfig, store: FileStore) -> list[Path]:
    """
    Files to merge for a selection.

    A directory yields every ``*<suffix>.java`` file below it (sorted, excluded
    directories skipped); a file yields itself; anything else yields nothing.
    """
    selection = context.selection
    if context.is_directory:
        pattern = f"*{config.source.impl_suffix}.java"
        targets = store.list_files(selection, pattern, config.source.exclude_patterns)
        logger.info("Found %d %s file(s) under %s", len(targets), pattern, selection)
        return targets
    if selection.is_file():
        return [selection]

    logger.warning("Can't find file %s", selection)
    return []


class BatchDriver:
    """Runs the merge over every target of an editor context."""

    def __init__(
        self,
        orchestrator: MergeOrchestrator | None = None,
        config: ImplMergeConfig | None = None,
    ):
        self.orchestrator = orchestrator or MergeOrchestrator(config)
        self.config = self.orchestrator.config
        self.store = self.orchestrator.store

    def run(self, context: EditorContext) -> BatchReport:
        """
        Merge every target of the context, one file at a time.

        The caret offset only applies when a single file is selected.
        """
        report = BatchReport()
        targets = resolve_targets(context, self.config, self.store)
        caret_offset = None if context.is_directory else context.caret_offset

        for path in targets:
            report.files.append(self.run_file(path, caret_offset, context.source_root))

        logger.info(
            "Batch finished: %d merged, %d skipped, %d failed",
            report.merged,
            report.skipped,
            report.failed,
        )
        return report

    def run_file(self, path: Path, caret_offset: int | None = None, source_root: Path | None = None) -> FileOutcome:
        """Merge one file and turn failures into an outcome."""
        try:
            return self.orchestrator.merge_file(path, caret_offset, source_root)
        except PreconditionError as e:
            logger.warning("Skipping %s: %s", path, e)
            return FileOutcome(path=path, status=MergeStatus.SKIPPED, message=str(e))
        except (MergeError, OSError, UnicodeDecodeError) as e:
            logger.error("Failed to merge %s: %s", path, e)
            return FileOutcome(path=path, status=MergeStatus.FAILED, message=str(e))
        except Exception as e:
            logger.exception("Unexpected error while merging %s", path)
            return FileOutcome(path=path, status=MergeStatus.FAILED, message=f"{type(e).__name__}: {e}")
