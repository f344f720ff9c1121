"""Uniform access to per-entry filesystem metadata."""

import logging
import os
import stat
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from .errors import ErrorKind, classify_os_error
from .models import EntryKind, FileRecord, ScanIssue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirectoryListing:
    """Records for the immediate entries of one directory."""
    path: str
    entries: List[FileRecord] = field(default_factory=list)
    error: Optional[ScanIssue] = None


def entry_kind(mode: int) -> EntryKind:
    """Classify a stat mode."""
    if stat.S_ISREG(mode):
        return EntryKind.FILE
    if stat.S_ISDIR(mode):
        return EntryKind.DIRECTORY
    if stat.S_ISLNK(mode):
        return EntryKind.SYMLINK
    return EntryKind.OTHER


def _timestamp(value: Optional[float]) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def record_from_stat(path: str, st: os.stat_result) -> FileRecord:
    """Build a FileRecord from a stat result.

    Directories carry size zero; only regular files contribute to totals.
    """
    kind = entry_kind(st.st_mode)
    size = 0 if kind is EntryKind.DIRECTORY else max(int(st.st_size), 0)
    return FileRecord(
        path=path,
        size=size,
        kind=kind,
        modified_time=_timestamp(getattr(st, "st_mtime", None)),
        accessed_time=_timestamp(getattr(st, "st_atime", None)),
        device=st.st_dev,
        inode=st.st_ino,
    )


def error_record(path: str, exc: OSError, kind: EntryKind = EntryKind.OTHER) -> FileRecord:
    """Build a record for an entry whose metadata could not be read."""
    return FileRecord(
        path=path,
        size=0,
        kind=kind,
        error=classify_os_error(exc),
        error_message=exc.strerror or str(exc),
    )


def read_record(path: str, follow_symlinks: bool = True) -> FileRecord:
    """Stat ``path`` and return its record.

    Raises:
        OSError: If the path cannot be stat'ed.
    """
    return record_from_stat(path, os.stat(path, follow_symlinks=follow_symlinks))


def record_from_entry(entry: os.DirEntry, follow_symlinks: bool = False) -> FileRecord:
    """Build a record for a directory entry without raising.

    A dangling symlink met while following links is reported as the link
    itself rather than as an error.
    """
    try:
        st = entry.stat(follow_symlinks=follow_symlinks)
    except OSError as exc:
        if follow_symlinks:
            try:
                st = entry.stat(follow_symlinks=False)
            except OSError:
                pass
            else:
                if stat.S_ISLNK(st.st_mode):
                    logger.debug(f"Dangling symlink {entry.path}")
                    return record_from_stat(entry.path, st)
        logger.debug(f"Cannot stat {entry.path}: {exc}")
        return error_record(entry.path, exc)
    return record_from_stat(entry.path, st)


def list_directory(path: str, follow_symlinks: bool = False) -> DirectoryListing:
    """Read the immediate entries of a directory.

    A directory that cannot be listed yields an empty listing with the
    error attached; it never raises.
    """
    try:
        with os.scandir(path) as iterator:
            entries = [record_from_entry(entry, follow_symlinks) for entry in iterator]
    except OSError as exc:
        kind = classify_os_error(exc)
        logger.debug(f"Cannot list {path}: {exc}")
        return DirectoryListing(path=path, error=ScanIssue(path, kind, exc.strerror or str(exc)))

    entries.sort(key=lambda record: record.path)
    return DirectoryListing(path=path, entries=entries)
