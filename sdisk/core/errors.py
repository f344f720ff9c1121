"""Error kinds and exceptions for disk analysis."""

import errno
from enum import Enum


class ErrorKind(str, Enum):
    """Per-entry failure categories attached to records and outcomes."""

    PATH_NOT_FOUND = "path_not_found"
    PERMISSION_DENIED = "permission_denied"
    IO_ERROR = "io_error"
    SYMLINK_CYCLE = "symlink_cycle"
    ALREADY_DELETED = "already_deleted"
    CROSS_DEVICE = "cross_device"
    NOT_A_REGULAR_FILE = "not_a_regular_file"
    CHANGED_SINCE_SCAN = "changed_since_scan"


class SdiskError(Exception):
    """Base class for sdisk errors."""


class ScanRootError(SdiskError):
    """The scan root itself could not be used, so the scan never started."""

    def __init__(self, path: str, kind: ErrorKind, message: str):
        super().__init__(f"Cannot scan {path}: {message}")
        self.path = path
        self.kind = kind
        self.message = message


class ConfigError(SdiskError, ValueError):
    """Invalid configuration data."""


def classify_os_error(exc: OSError, missing: ErrorKind = ErrorKind.PATH_NOT_FOUND) -> ErrorKind:
    """Map an OSError onto an ErrorKind.

    Args:
        exc: The error raised by the filesystem call.
        missing: Kind to report when the path does not exist. Deletion
            reports ALREADY_DELETED where traversal reports PATH_NOT_FOUND.

    Returns:
        The matching ErrorKind.
    """
    if isinstance(exc, FileNotFoundError) or exc.errno == errno.ENOENT:
        return missing
    if isinstance(exc, PermissionError) or exc.errno in (errno.EACCES, errno.EPERM):
        return ErrorKind.PERMISSION_DENIED
    if exc.errno == errno.ELOOP:
        return ErrorKind.SYMLINK_CYCLE
    return ErrorKind.IO_ERROR
