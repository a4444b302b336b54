"""
Method Merger.

Walks the interface methods in declaration order and decides, per method,
whether to copy it into the class, document the existing implementation, or
report an ambiguity. An insertion anchor threads through the walk so a run of
copied methods lands right after the last matched implementation.
"""

import logging

from implmerge.config.models import AmbiguousMatch, MergeReport, NullAnchorPolicy
from implmerge.languages.java.model import MethodDecl, TypeDecl
from implmerge.merger.doc_propagator import DocPropagator, has_own_doc
from implmerge.merger.edits import EditTransaction, reindent
from implmerge.merger.errors import StructuralError

logger = logging.getLogger(__name__)


class MethodMerger:
    """Applies match decisions for one class to an edit transaction."""

    def __init__(
        self,
        target: TypeDecl,
        transaction: EditTransaction,
        propagator: DocPropagator | None = None,
        null_anchor: NullAnchorPolicy = NullAnchorPolicy.PREPEND,
        interface_name: str | None = None,
    ):
        self.target = target
        self.transaction = transaction
        self.propagator = propagator or DocPropagator(transaction)
        self.null_anchor = null_anchor
        self.interface_name = interface_name or "?"

    def merge(self, matches: dict[MethodDecl, list[MethodDecl]]) -> MergeReport:
        """
        Merge the interface methods into the target class.

        Args:
            matches: Interface method -> implementations, in interface declaration order

        Returns:
            MergeReport listing copies, matches, documentation and ambiguities
        """
        report = MergeReport(class_name=self.target.name, interface_name=self.interface_name)
        anchor: MethodDecl | None = None
        documented: set[int] = set()

        for interface_method, implementations in matches.items():
            signature = interface_method.signature

            if len(implementations) > 1:
                logger.warning("more than 1 imp of method - %s", interface_method.name)
                logger.warning(", ".join(impl.text for impl in implementations))
                report.ambiguous.append(
                    AmbiguousMatch(method=signature, implementations=[impl.text for impl in implementations])
                )
                continue

            if not implementations:
                if self._copy_method(interface_method, anchor):
                    report.copied.append(signature)
                else:
                    report.unplaced.append(signature)
                continue

            implementation = implementations[0]
            report.matched.append(signature)

            if implementation.owner is not self.target:
                # Inherited from a superclass in another file; leave it alone.
                logger.debug("%s is implemented by %s", signature, implementation.qualified_signature)
                continue

            if interface_method.doc is not None and not interface_method.doc.is_empty:
                if id(implementation) in documented:
                    logger.debug("%s already documented", implementation.signature)
                elif has_own_doc(implementation):
                    logger.debug("%s keeps its own documentation", implementation.signature)
                else:
                    try:
                        self.propagator.propagate_doc(interface_method, implementation)
                        documented.add(id(implementation))
                        report.documented.append(signature)
                    except StructuralError as e:
                        logger.warning("Skipped documentation for %s: %s", signature, e)
                        report.errors.append(f"{signature}: {e}")

            anchor = implementation

        return report

    def _copy_method(self, method: MethodDecl, anchor: MethodDecl | None) -> bool:
        """Insert a copy of an interface method after the anchor. Returns False if not placed."""
        source_file = method.file
        start = method.doc.start_byte if method.doc is not None else method.start_byte
        text = source_file.text(start, method.end_byte)
        from_column = source_file.column(start)

        if not method.has_body:
            logger.warning("Copied method %s has no body", method.signature)

        if anchor is None:
            if self.null_anchor == NullAnchorPolicy.SKIP:
                logger.error(
                    "Can't place %s: no matched method precedes it in %s",
                    method.signature,
                    self.target.name,
                )
                return False
            indent = self.target.member_indent
            copy = reindent(text, from_column, indent)
            self.transaction.insert(self.target.body_start_byte, f"\n{indent}{copy}\n")
        else:
            indent = self.target.file.line_indent(anchor.start_byte)
            copy = reindent(text, from_column, indent)
            self.transaction.insert(anchor.end_byte, f"\n\n{indent}{copy}")

        logger.debug("Copied %s into %s", method.signature, self.target.name)
        return True
