"""
Merge Orchestrator: folds one interface into its implementation class.

Per file, the pipeline is:
1. Parse the class file and pick the target class
2. Check preconditions and resolve the single implemented interface
3. Match interface methods against class methods
4. Apply the package rewrite, doc propagation and method copies in one transaction
5. Re-parse the merged source and remove {@inheritDoc} placeholders
6. Run the line-based text normalizer
7. Write the result once, then delete the redundant file

No file is touched before step 7, so a failure at any earlier step leaves the
sources as they were.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from implmerge.analyzer.source_index import SourceIndex, infer_source_root
from implmerge.config.models import (
    FileOutcome,
    ImplMergeConfig,
    MatchDecision,
    MatchPlanEntry,
    MergePlan,
    MergeStatus,
    OutputLocation,
)
from implmerge.languages.base.plugin import SourceParser
from implmerge.languages.java.model import JavaFile, MethodDecl, TypeDecl
from implmerge.languages.java.plugin import JavaPlugin
from implmerge.merger.doc_propagator import DocPropagator, has_own_doc
from implmerge.merger.edits import EditTransaction
from implmerge.merger.errors import PreconditionError, StructuralError, UnsupportedConstructError
from implmerge.merger.matcher import match
from implmerge.merger.method_merger import MethodMerger
from implmerge.merger.package_rewriter import rewrite_package
from implmerge.merger.text_normalizer import normalize, remove_doc_placeholders
from implmerge.workspace.file_store import FileStore

logger = logging.getLogger(__name__)


@dataclass
class MergeTarget:
    """Everything known about one merge before any edit is made."""

    class_path: Path
    class_file: JavaFile
    target: TypeDecl
    interface: TypeDecl
    matches: dict[MethodDecl, list[MethodDecl]]

    @property
    def interface_path(self) -> Path:
        return self.interface.file.path


def select_target_class(java_file: JavaFile, caret_offset: int | None = None) -> TypeDecl:
    """
    The class to merge: the innermost class around the caret, or else the
    first top-level class with an ``implements`` clause.
    """
    if caret_offset is not None:
        decl = java_file.type_at(caret_offset)
        while decl is not None and decl.is_interface:
            decl = next((t for t in java_file.iter_types() if decl in t.nested), None)
        if decl is None:
            raise PreconditionError(f"No class encloses offset {caret_offset}")
        return decl

    classes = [t for t in java_file.types if not t.is_interface]
    if not classes:
        raise PreconditionError("No class declaration found")
    return next((c for c in classes if c.super_interfaces), classes[0])


class MergeOrchestrator:
    """Runs the merge pipeline for single class files."""

    def __init__(
        self,
        config: ImplMergeConfig | None = None,
        store: FileStore | None = None,
        plugin: SourceParser | None = None,
        index: SourceIndex | None = None,
    ):
        self.config = config or ImplMergeConfig()
        self.store = store or FileStore(
            encoding=self.config.source.encoding,
            settle_delay=self.config.output.settle_delay,
            dry_run=self.config.output.dry_run,
        )
        self.plugin = plugin or JavaPlugin()
        self.index = index or SourceIndex(
            self.plugin,
            self.store,
            root=self.config.source.root,
            exclude_patterns=self.config.source.exclude_patterns,
        )

    # =========================================================================
    # Preparation
    # =========================================================================

    def prepare(
        self,
        class_path: Path,
        caret_offset: int | None = None,
        source_root: Path | None = None,
    ) -> MergeTarget:
        """
        Parse, validate and match one class file without editing anything.

        Raises:
            PreconditionError: If the file is not a mergeable class
            UnsupportedConstructError: If the interface involves generics
        """
        class_file = self.index.load(class_path)
        if class_file.has_errors:
            raise PreconditionError(f"{class_path.name} has syntax errors")

        root = source_root or self.config.source.root or infer_source_root(class_path, class_file.package_name)
        self.index.set_root(root)

        target = select_target_class(class_file, caret_offset)
        if len(target.super_interfaces) != 1:
            raise PreconditionError(
                f"{target.name} implements {len(target.super_interfaces)} interfaces, expected exactly one"
            )

        ref = target.super_interfaces[0]
        if ref.type_arguments:
            raise UnsupportedConstructError(
                f"{target.name} implements {ref.name}{ref.type_arguments}; generic interfaces are not supported"
            )

        interface = self.index.resolve(ref, class_file)
        if interface is None:
            raise PreconditionError(f"Can't find the source of interface {ref.name}")
        if not interface.is_interface:
            raise PreconditionError(f"{ref.name} is not an interface")
        if interface.file is class_file:
            raise PreconditionError(f"{ref.name} is declared in the same file as {target.name}")
        if interface.type_parameters:
            raise UnsupportedConstructError(
                f"{interface.name}{interface.type_parameters} declares type parameters; generic interfaces are not supported"
            )
        if interface.field_count:
            logger.warning(
                "%s declares %d constant(s) that are not carried over", interface.name, interface.field_count
            )

        interface_methods = self.index.interface_methods(interface)
        class_methods = self.index.class_methods(target, self.config.merge.include_superclass_methods)
        matches = match(interface_methods, class_methods)
        logger.debug(
            "%s -> %s: %d interface method(s), %d class method(s)",
            interface.name,
            target.name,
            len(matches),
            len(class_methods),
        )

        return MergeTarget(
            class_path=class_path,
            class_file=class_file,
            target=target,
            interface=interface,
            matches=matches,
        )

    def plan_file(
        self,
        class_path: Path,
        caret_offset: int | None = None,
        source_root: Path | None = None,
    ) -> MergePlan:
        """Describe what merging a file would do."""
        prepared = self.prepare(class_path, caret_offset, source_root)

        entries = []
        for method, implementations in prepared.matches.items():
            if len(implementations) > 1:
                decision = MatchDecision.AMBIGUOUS
            elif not implementations:
                decision = MatchDecision.COPY
            elif implementations[0].owner is not prepared.target:
                decision = MatchDecision.INHERITED
            else:
                decision = MatchDecision.MERGE
            entries.append(
                MatchPlanEntry(
                    method=method.signature,
                    decision=decision,
                    implementations=[impl.qualified_signature for impl in implementations],
                    has_doc=method.doc is not None and not method.doc.is_empty,
                )
            )

        return MergePlan(
            class_path=class_path,
            class_name=prepared.target.name,
            interface_path=prepared.interface_path,
            interface_name=prepared.interface.name,
            entries=entries,
        )

    # =========================================================================
    # Merge
    # =========================================================================

    def build_merged_source(self, prepared: MergeTarget):
        """Run the structural and textual passes. Returns (merged text, report)."""
        merge_config = self.config.merge
        target = prepared.target
        interface = prepared.interface

        with EditTransaction(prepared.class_file.source) as transaction:
            # Package line first: the class doc may be inserted at the same offset.
            rewrite_package(prepared.class_file, interface, transaction)
            propagator = DocPropagator(transaction)

            if merge_config.propagate_class_doc and interface.doc is not None and not interface.doc.is_empty:
                if has_own_doc(target):
                    logger.debug("%s keeps its own class documentation", target.name)
                else:
                    try:
                        propagator.propagate_doc(interface, target)
                    except StructuralError as e:
                        logger.warning("Skipped class documentation for %s: %s", target.name, e)

            merger = MethodMerger(
                target,
                transaction,
                propagator=propagator,
                null_anchor=merge_config.null_anchor,
                interface_name=interface.name,
            )
            report = merger.merge(prepared.matches)
            merged = transaction.commit()

        if merge_config.strip_inherit_doc:
            reparsed = self.plugin.parse_source(merged, prepared.class_path)
            with EditTransaction(reparsed.source) as transaction:
                remove_doc_placeholders(reparsed, transaction)
                merged = transaction.commit()

        return normalize(merged), report

    def merge_file(
        self,
        class_path: Path,
        caret_offset: int | None = None,
        source_root: Path | None = None,
    ) -> FileOutcome:
        """
        Merge one class file with its interface and persist the result.

        Raises:
            PreconditionError: If the file is not a mergeable class
            StructuralError: If the edits can't be applied safely
            OSError: If reading, writing or deleting fails
        """
        logger.info("Merging %s", class_path)
        prepared = self.prepare(class_path, caret_offset, source_root)
        text, report = self.build_merged_source(prepared)

        interface_path = prepared.interface_path
        if self.config.output.location == OutputLocation.INTERFACE_FILE:
            destination, obsolete = interface_path, class_path
        else:
            destination, obsolete = class_path, interface_path

        if self.config.output.dry_run:
            return FileOutcome(
                path=class_path,
                status=MergeStatus.PLANNED,
                interface_path=interface_path,
                destination=destination,
                report=report,
                preview=text,
            )

        if destination.resolve() == obsolete.resolve():
            raise StructuralError(f"{class_path.name} would overwrite and delete the same file")

        self.store.write(destination, text, newline=self.store.line_ending(class_path))
        self.store.delete(obsolete)
        self.store.settle()
        self.index.invalidate(class_path)
        self.index.invalidate(interface_path)

        logger.info(
            "Merged %s into %s (%d copied, %d matched, %d ambiguous)",
            prepared.interface.name,
            destination.name,
            len(report.copied),
            len(report.matched),
            len(report.ambiguous),
        )
        return FileOutcome(
            path=class_path,
            status=MergeStatus.MERGED,
            interface_path=interface_path,
            destination=destination,
            report=report,
        )
