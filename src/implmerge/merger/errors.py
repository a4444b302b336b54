"""
Exceptions raised by the merge pipeline.

Expected outcomes (ambiguous matches, missing implementations) are report
entries, not exceptions. These cover the cases that stop work on a file or on
a single edit.
"""


class MergeError(Exception):
    """Base class for merge failures."""

    pass


class PreconditionError(MergeError):
    """The file is not a valid merge target; it is skipped."""

    pass


class UnsupportedConstructError(PreconditionError):
    """The file uses a construct the merger refuses to handle (e.g. generics)."""

    pass


class StructuralError(MergeError):
    """An edit cannot be placed safely in the syntax tree."""

    pass
