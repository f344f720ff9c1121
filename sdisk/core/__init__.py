"""Core traversal, ranking and deletion functionality."""

from .errors import ConfigError, ErrorKind, ScanRootError, SdiskError
from .models import (
    AggregatedTree,
    DeletionMode,
    DeletionOutcome,
    DeletionReport,
    DirectoryNode,
    EntryKind,
    FileRecord,
    OutcomeStatus,
    ReferenceAttribute,
    ScanIssue,
    ScanOptions,
    StaleCandidate,
    StaleReport,
)
from .scanner import DirectoryScanner
from .aggregator import Aggregator
from .stale import StaleClassifier
from .deleter import DeletionExecutor
from .analyzer import DiskAnalyzer, delete_candidates, find_stale, rank, scan

__all__ = [
    "AggregatedTree", "Aggregator", "ConfigError", "DeletionExecutor", "DeletionMode",
    "DeletionOutcome", "DeletionReport", "DirectoryNode", "DirectoryScanner", "DiskAnalyzer",
    "EntryKind", "ErrorKind", "FileRecord", "OutcomeStatus", "ReferenceAttribute", "ScanIssue",
    "ScanOptions", "ScanRootError", "SdiskError", "StaleCandidate", "StaleClassifier",
    "StaleReport", "delete_candidates", "find_stale", "rank", "scan",
]
