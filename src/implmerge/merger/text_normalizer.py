"""
Text Normalizer.

Final clean-up of a merged class. ``{@inheritDoc}`` placeholders are removed
on the syntax model (``remove_doc_placeholders``) before serialization; the
line rules in ``normalize`` run on the serialized text afterwards:

1. lines containing ``@Override`` are dropped,
2. a leading ``default`` method modifier becomes ``public``,
3. ``public class FooImpl implements Foo`` becomes ``public class Foo {``.
"""

import logging
import re

from implmerge.languages.java.model import INHERIT_DOC, JavaFile, clean_comment_text
from implmerge.merger.edits import EditTransaction

logger = logging.getLogger(__name__)

OVERRIDE_MARKER = "@Override"

# "default" followed by the rest of a method header up to its parameter list.
# Switch labels ("default:", "default ->") never match.
DEFAULT_MODIFIER = re.compile(r"^(\s*)default\s+([^-:=;(]+)\(")

IMPL_HEADER = re.compile(r"public class (.*)Impl implements (.*)")

# Any class header that still has an Impl name and an implements clause.
LEFTOVER_IMPL_HEADER = re.compile(r"\bclass\s+(\w+)Impl\b.*\bimplements\b")


def normalize(source_text: str) -> str:
    """Apply the line rules to a full source text and return the rewritten text."""
    lines = []
    for line in source_text.split("\n"):
        if OVERRIDE_MARKER in line:
            continue
        line = DEFAULT_MODIFIER.sub(r"\1public \2(", line)
        line = IMPL_HEADER.sub(r"public class \1 {", line)
        leftover = LEFTOVER_IMPL_HEADER.search(line)
        if leftover:
            logger.warning(
                "Class header of %sImpl was not rewritten and still has an implements clause: %s",
                leftover.group(1),
                line.strip(),
            )
        lines.append(line)
    return "\n".join(lines)


def remove_doc_placeholders(java_file: JavaFile, transaction: EditTransaction) -> int:
    """
    Remove ``{@inheritDoc}`` placeholders from every comment in a file.

    A comment holding nothing but the placeholder is deleted outright. In a
    longer comment only the placeholder line is removed, leaving the rest of
    the documentation intact.

    Returns:
        Number of placeholders removed
    """
    removed = 0
    for comment in java_file.comments:
        if clean_comment_text(comment.text) == INHERIT_DOC:
            transaction.delete_lines(comment.start_byte, comment.end_byte)
            removed += 1
            continue

        raw = java_file.source[comment.start_byte:comment.end_byte]
        lines = raw.split(b"\n")
        if len(lines) < 3:
            continue

        offset = comment.start_byte + len(lines[0]) + 1
        for line in lines[1:-1]:
            if clean_comment_text(line.decode("utf-8", errors="replace")) == INHERIT_DOC:
                transaction.delete(offset, offset + len(line) + 1)
                removed += 1
            offset += len(line) + 1

    if removed:
        logger.debug("Removed %d {@inheritDoc} placeholder(s)", removed)
    return removed
