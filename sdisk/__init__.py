"""
sdisk - disk usage analysis and stale file cleanup.

This package scans a directory tree, ranks files by size, flags files
that have not been modified or accessed for a configurable number of
days, and deletes selected files under dry-run and confirmation rules.
"""

__version__ = "1.0.0"

from .core.analyzer import DiskAnalyzer, delete_candidates, find_stale, rank, scan
from .core.scanner import DirectoryScanner
from .core.deleter import DeletionExecutor

__all__ = [
    "DeletionExecutor",
    "DirectoryScanner",
    "DiskAnalyzer",
    "delete_candidates",
    "find_stale",
    "rank",
    "scan",
]
