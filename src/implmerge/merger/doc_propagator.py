"""
Documentation Propagator.

Copies a doc comment from one declaration onto another so that it renders as
the target's own leading documentation.
"""

import logging

from implmerge.languages.java.model import MethodDecl, TypeDecl
from implmerge.merger.edits import EditTransaction, reindent
from implmerge.merger.errors import StructuralError

logger = logging.getLogger(__name__)

Documented = MethodDecl | TypeDecl


def has_own_doc(decl: Documented) -> bool:
    """True if the declaration carries real documentation (not just ``{@inheritDoc}``)."""
    return decl.doc is not None and not decl.doc.is_placeholder and not decl.doc.is_empty


class DocPropagator:
    """Inserts copies of doc comments into a transaction.

    Not idempotent: propagating twice onto one target yields two comments.
    Callers are responsible for invoking it at most once per target.
    """

    def __init__(self, transaction: EditTransaction):
        self.transaction = transaction

    def propagate_doc(self, source: Documented, target: Documented) -> None:
        """
        Place a copy of ``source``'s doc comment before ``target``'s first child.

        Raises:
            ValueError: If ``source`` has no documentation
            StructuralError: If ``target`` has no child to anchor the comment to
        """
        doc = source.doc
        if doc is None or doc.is_empty:
            raise ValueError(f"{source.name} has no documentation to propagate")
        if target.first_child_start is None:
            raise StructuralError(f"{target.name} has no structural child to anchor documentation to")

        anchor = target.first_child_start
        indent = target.file.line_indent(anchor)
        text = reindent(doc.text, doc.column, indent)
        self.transaction.insert(anchor, f"{text}\n{indent}")
        logger.debug("Copied documentation of %s onto %s", source.name, target.name)
