"""
Core configuration and result models for implmerge.

Defines the configuration structures and merge reports using Pydantic for validation.
"""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class NullAnchorPolicy(str, Enum):
    """What to do with a copied method when no matched class method precedes it."""

    PREPEND = "prepend"  # Insert at the start of the class body
    SKIP = "skip"  # Leave the method out and report it as unplaced


class OutputLocation(str, Enum):
    """Where the merged class is written."""

    CLASS_FILE = "class_file"  # Rewrite the Impl file in place, delete the interface file
    INTERFACE_FILE = "interface_file"  # Write over the interface file, delete the Impl file


class MergeStatus(str, Enum):
    """Outcome of merging one file."""

    MERGED = "merged"
    PLANNED = "planned"  # Dry run, nothing written
    SKIPPED = "skipped"  # Precondition not met
    FAILED = "failed"  # Structural or I/O failure


class MatchDecision(str, Enum):
    """What the merger does with one interface method."""

    COPY = "copy"
    MERGE = "merge"
    INHERITED = "inherited"
    AMBIGUOUS = "ambiguous"


# ============================================================================
# Configuration
# ============================================================================


class SourceConfig(BaseModel):
    """Where to look for sources and how to select merge targets."""

    root: Path | None = Field(
        default=None, description="Source root; inferred from the package declaration if unset"
    )
    impl_suffix: str = Field(default="Impl", description="Class name suffix used by directory mode")
    exclude_patterns: list[str] = Field(
        default_factory=lambda: [".git", "build", "target", "out", ".gradle", ".idea"],
        description="Path fragments excluded from directory scans",
    )
    encoding: str = Field(default="utf-8", description="Source file encoding")


class MergeConfig(BaseModel):
    """Behaviour of the merge algorithm."""

    null_anchor: NullAnchorPolicy = Field(
        default=NullAnchorPolicy.PREPEND,
        description="Placement of copied methods before any class method was matched",
    )
    propagate_class_doc: bool = Field(
        default=True, description="Copy the interface's doc comment onto the merged class"
    )
    strip_inherit_doc: bool = Field(
        default=True, description="Remove {@inheritDoc} placeholders from the merged class"
    )
    include_superclass_methods: bool = Field(
        default=True, description="Treat methods inherited from superclasses as implementations"
    )


class OutputConfig(BaseModel):
    """How merged sources are persisted."""

    location: OutputLocation = Field(default=OutputLocation.CLASS_FILE)
    dry_run: bool = Field(default=False, description="Compute the merge without touching files")
    settle_delay: float = Field(
        default=0.0, ge=0.0, description="Seconds to wait after file-system rewrites"
    )


class ImplMergeConfig(BaseModel):
    """Root configuration model for implmerge."""

    source: SourceConfig = Field(default_factory=SourceConfig)
    merge: MergeConfig = Field(default_factory=MergeConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


# ============================================================================
# Merge Result Models (used across the system)
# ============================================================================


class AmbiguousMatch(BaseModel):
    """An interface method with more than one candidate implementation."""

    method: str = Field(description="Interface method signature, e.g. 'run(String)'")
    implementations: list[str] = Field(
        default_factory=list, description="Source text of the conflicting implementations"
    )


class MergeReport(BaseModel):
    """What the method merger did for one class."""

    class_name: str
    interface_name: str
    copied: list[str] = Field(default_factory=list, description="Methods copied from the interface")
    matched: list[str] = Field(default_factory=list, description="Methods with exactly one implementation")
    documented: list[str] = Field(
        default_factory=list, description="Implementations that received interface documentation"
    )
    ambiguous: list[AmbiguousMatch] = Field(default_factory=list)
    unplaced: list[str] = Field(
        default_factory=list, description="Copies left out because no insertion point existed"
    )
    errors: list[str] = Field(default_factory=list, description="Non-fatal structural problems")

    @property
    def has_ambiguities(self) -> bool:
        return bool(self.ambiguous)


class MatchPlanEntry(BaseModel):
    """One row of a merge plan."""

    method: str
    decision: MatchDecision
    implementations: list[str] = Field(default_factory=list)
    has_doc: bool = False


class MergePlan(BaseModel):
    """Matches computed for one class without applying them."""

    class_path: Path
    class_name: str
    interface_path: Path
    interface_name: str
    entries: list[MatchPlanEntry] = Field(default_factory=list)


class FileOutcome(BaseModel):
    """Result of processing one merge target."""

    path: Path
    status: MergeStatus
    interface_path: Path | None = None
    destination: Path | None = None
    report: MergeReport | None = None
    message: str | None = None
    preview: str | None = Field(default=None, description="Merged source produced by a dry run")


class BatchReport(BaseModel):
    """Outcomes of a batch run, in processing order."""

    files: list[FileOutcome] = Field(default_factory=list)

    def count(self, status: MergeStatus) -> int:
        return sum(1 for outcome in self.files if outcome.status == status)

    @property
    def merged(self) -> int:
        return self.count(MergeStatus.MERGED)

    @property
    def skipped(self) -> int:
        return self.count(MergeStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return self.count(MergeStatus.FAILED)

    @property
    def ambiguous_methods(self) -> int:
        return sum(len(o.report.ambiguous) for o in self.files if o.report is not None)
