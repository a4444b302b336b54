"""
Interface-into-implementation merger.

Matches interface methods to their implementations, copies what is missing,
carries documentation over and rewrites the class into the interface's place.
"""

from implmerge.merger.batch import BatchDriver, resolve_targets
from implmerge.merger.errors import (
    MergeError,
    PreconditionError,
    StructuralError,
    UnsupportedConstructError,
)
from implmerge.merger.matcher import match
from implmerge.merger.method_merger import MethodMerger
from implmerge.merger.orchestrator import MergeOrchestrator

__all__ = [
    "BatchDriver",
    "MergeError",
    "MergeOrchestrator",
    "MethodMerger",
    "PreconditionError",
    "StructuralError",
    "UnsupportedConstructError",
    "match",
    "resolve_targets",
]
