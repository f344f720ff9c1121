"""Data models for disk usage analysis."""

import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Iterator, List, Optional, Union

from .errors import ErrorKind


class EntryKind(str, Enum):
    """Type of a filesystem entry."""

    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    OTHER = "other"


class ReferenceAttribute(str, Enum):
    """Timestamp used to measure how long a file has gone untouched."""

    MODIFIED = "modified"
    ACCESSED = "accessed"


class DeletionMode(str, Enum):
    """How the deletion executor treats its candidates."""

    DRY_RUN = "dry-run"
    CONFIRM = "confirm"
    AUTO = "auto"


class OutcomeStatus(str, Enum):
    """Result of one attempted deletion."""

    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    FAILED = "failed"


SKIP_DRY_RUN = "dry-run"
SKIP_DECLINED = "declined"
SKIP_CANCELLED = "cancelled"


@dataclass(frozen=True)
class ScanOptions:
    """Traversal options for a single scan."""
    follow_symlinks: bool = False
    stay_on_device: bool = True
    max_depth: Optional[int] = None
    workers: int = 1

    def __post_init__(self):
        if self.max_depth is not None and self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.workers < 1:
            raise ValueError(f"workers must be at least 1, got {self.workers}")


@dataclass(frozen=True)
class FileRecord:
    """Metadata about one filesystem entry, captured during a scan."""
    path: str
    size: int
    kind: EntryKind
    modified_time: Optional[datetime] = None
    accessed_time: Optional[datetime] = None
    device: Optional[int] = None
    inode: Optional[int] = None
    error: Optional[ErrorKind] = None
    error_message: Optional[str] = None

    @property
    def name(self) -> str:
        return os.path.basename(self.path)

    @property
    def parent(self) -> str:
        return os.path.dirname(self.path)

    @property
    def is_file(self) -> bool:
        return self.kind is EntryKind.FILE

    @property
    def is_directory(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    def reference_time(self, attribute: ReferenceAttribute) -> Optional[datetime]:
        """Return the timestamp selected by ``attribute``, if the platform exposed it."""
        if attribute is ReferenceAttribute.ACCESSED:
            return self.accessed_time
        return self.modified_time


@dataclass(frozen=True)
class ScanIssue:
    """A per-entry problem met while walking a tree."""
    path: str
    kind: ErrorKind
    message: str


@dataclass
class DirectoryNode:
    """A directory in the aggregated tree.

    ``total_size`` and ``file_count`` cover every regular file below the
    directory once aggregation has finished.
    """
    path: str
    record: Optional[FileRecord] = None
    total_size: int = 0
    file_count: int = 0
    children: List[Union[FileRecord, "DirectoryNode"]] = field(default_factory=list)

    @property
    def child_count(self) -> int:
        return len(self.children)

    @property
    def name(self) -> str:
        return os.path.basename(self.path) or self.path

    def subdirectories(self) -> List["DirectoryNode"]:
        return [child for child in self.children if isinstance(child, DirectoryNode)]

    def entries(self) -> List[FileRecord]:
        return [child for child in self.children if isinstance(child, FileRecord)]


@dataclass
class AggregatedTree:
    """Directory hierarchy with cumulative sizes, produced by one scan."""
    root: DirectoryNode
    nodes: Dict[str, DirectoryNode]
    scanned_at: datetime
    errors: List[ScanIssue] = field(default_factory=list)
    notices: List[ScanIssue] = field(default_factory=list)
    complete: bool = True

    @property
    def path(self) -> str:
        return self.root.path

    @property
    def total_size(self) -> int:
        return self.root.total_size

    @property
    def file_count(self) -> int:
        return self.root.file_count

    def find(self, path: str) -> Optional[DirectoryNode]:
        return self.nodes.get(path)

    def records(self) -> Iterator[FileRecord]:
        """Yield every record held by the tree, directories included."""
        for node in self.nodes.values():
            if node.record is not None:
                yield node.record
            yield from node.entries()

    def files(self) -> Iterator[FileRecord]:
        """Yield the regular files that were read without error."""
        for node in self.nodes.values():
            for record in node.entries():
                if record.is_file and record.error is None:
                    yield record

    def directories(self) -> Iterator[DirectoryNode]:
        return iter(self.nodes.values())


@dataclass(frozen=True)
class StaleCandidate:
    """A file whose age met the staleness threshold when it was classified."""
    record: FileRecord
    age: timedelta
    threshold: timedelta

    def __post_init__(self):
        if self.age < self.threshold:
            raise ValueError(
                f"{self.record.path} is younger ({self.age}) than the threshold ({self.threshold})"
            )

    @property
    def path(self) -> str:
        return self.record.path

    @property
    def size(self) -> int:
        return self.record.size

    @property
    def age_days(self) -> int:
        return self.age.days


@dataclass
class StaleReport:
    """Stale candidates (oldest first) and records whose age is unknown."""
    candidates: List[StaleCandidate]
    unknown: List[FileRecord]
    reference: ReferenceAttribute
    threshold: timedelta
    now: datetime

    @property
    def total_size(self) -> int:
        return sum(candidate.size for candidate in self.candidates)

    def __len__(self) -> int:
        return len(self.candidates)

    def __iter__(self) -> Iterator[StaleCandidate]:
        return iter(self.candidates)


@dataclass(frozen=True)
class DeletionOutcome:
    """Result of handling one deletion candidate."""
    path: str
    status: OutcomeStatus
    size: int = 0
    reason: Optional[str] = None
    error: Optional[ErrorKind] = None


@dataclass
class DeletionReport:
    """Outcomes of one deletion invocation plus summary figures."""
    mode: DeletionMode
    outcomes: List[DeletionOutcome] = field(default_factory=list)
    not_attempted: int = 0

    def _with_status(self, status: OutcomeStatus) -> List[DeletionOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status is status]

    @property
    def deleted(self) -> int:
        return len(self._with_status(OutcomeStatus.SUCCEEDED))

    @property
    def skipped(self) -> int:
        return len(self._with_status(OutcomeStatus.SKIPPED))

    @property
    def failed(self) -> int:
        return len(self._with_status(OutcomeStatus.FAILED))

    @property
    def bytes_reclaimed(self) -> int:
        """Bytes freed, or the bytes a dry run would have freed."""
        if self.mode is DeletionMode.DRY_RUN:
            return sum(o.size for o in self.outcomes if o.reason == SKIP_DRY_RUN)
        return sum(o.size for o in self._with_status(OutcomeStatus.SUCCEEDED))

    @property
    def is_projection(self) -> bool:
        return self.mode is DeletionMode.DRY_RUN

    @property
    def failures(self) -> List[DeletionOutcome]:
        return self._with_status(OutcomeStatus.FAILED)
