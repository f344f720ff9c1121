"""Directory tree traversal for disk usage analysis."""

import logging
import os
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import replace
from typing import Callable, Dict, Iterator, List, Optional, Set, Tuple, Union

from .aggregator import Aggregator
from .errors import ErrorKind, ScanRootError, classify_os_error
from .metadata import DirectoryListing, list_directory, read_record
from .models import AggregatedTree, FileRecord, ScanIssue, ScanOptions

Schedule = Callable[[FileRecord, int], None]


class TreeWalk:
    """A lazy, single-use traversal of one root directory.

    Iterating yields a FileRecord for every entry reached. Problems with
    individual entries are collected in ``errors`` (and marked on the
    entry) while informational skips such as device boundaries land in
    ``notices``.
    """

    def __init__(self, root: FileRecord, options: ScanOptions,
                 cancel_event: Optional[threading.Event] = None):
        """Initialize a walk.

        Args:
            root: Record of the root directory, already stat'ed.
            options: Traversal options.
            cancel_event: When set, the walk stops before the next directory.
        """
        self.root = root
        self.options = options
        self.cancel_event = cancel_event
        self.errors: List[ScanIssue] = []
        self.notices: List[ScanIssue] = []
        self.cancelled = False
        self.directories_listed = 0
        self._started = False
        self._visited: Set[Tuple[Optional[int], Optional[int]]] = set()
        self.logger = logging.getLogger(__name__)

    @property
    def path(self) -> str:
        return self.root.path

    def __iter__(self) -> Iterator[FileRecord]:
        if self._started:
            raise RuntimeError(f"Walk of {self.path} was already consumed; start a new scan")
        self._started = True
        if self.options.workers > 1:
            return self._walk_parallel()
        return self._walk_sequential()

    def _should_stop(self) -> bool:
        if self.cancel_event is not None and self.cancel_event.is_set():
            if not self.cancelled:
                self.logger.info(f"Scan of {self.path} cancelled")
            self.cancelled = True
            return True
        return False

    def _admit(self, record: FileRecord, depth: int) -> Tuple[FileRecord, bool]:
        """Decide whether a directory gets listed.

        Returns:
            The record to yield (possibly carrying an error marker) and
            whether its entries should be read.
        """
        if self.options.max_depth is not None and depth >= self.options.max_depth:
            return record, False

        if self.options.stay_on_device and record.device != self.root.device:
            self.notices.append(ScanIssue(
                record.path, ErrorKind.CROSS_DEVICE, "Directory is on another device; not descended"
            ))
            self.logger.info(f"Not crossing device boundary at {record.path}")
            return record, False

        if self.options.follow_symlinks:
            key = (record.device, record.inode)
            if key in self._visited:
                issue = ScanIssue(record.path, ErrorKind.SYMLINK_CYCLE, "Directory already visited")
                self.errors.append(issue)
                self.logger.warning(f"Symlink cycle detected at {record.path}")
                return replace(record, error=issue.kind, error_message=issue.message), False
            self._visited.add(key)

        return record, True

    def _expand(self, record: FileRecord, depth: int, listing: DirectoryListing,
                schedule: Schedule) -> Iterator[FileRecord]:
        """Yield a listed directory and its non-directory entries.

        Subdirectories are handed to ``schedule`` instead of being yielded.
        """
        self.directories_listed += 1
        if listing.error is not None:
            self.errors.append(listing.error)
            self.logger.warning(f"Cannot read directory {record.path}: {listing.error.message}")
            yield replace(record, error=listing.error.kind, error_message=listing.error.message)
            return

        yield record
        for child in listing.entries:
            if child.error is not None:
                self.errors.append(ScanIssue(child.path, child.error, child.error_message or ""))
                yield child
            elif child.is_directory:
                schedule(child, depth + 1)
            else:
                yield child

    def _walk_sequential(self) -> Iterator[FileRecord]:
        stack: List[Tuple[FileRecord, int]] = [(self.root, 0)]

        while stack:
            if self._should_stop():
                return

            record, depth = stack.pop()
            record, descend = self._admit(record, depth)
            if not descend:
                yield record
                continue

            subdirectories: List[Tuple[FileRecord, int]] = []
            listing = list_directory(record.path, self.options.follow_symlinks)
            yield from self._expand(
                record, depth, listing, lambda child, d: subdirectories.append((child, d))
            )
            # Reversed so that siblings are visited in name order.
            stack.extend(reversed(subdirectories))

    def _walk_parallel(self) -> Iterator[FileRecord]:
        # Workers only list directories; admission, scheduling and yielding
        # stay on the consuming thread, so no shared state needs a lock.
        max_in_flight = self.options.workers * 4
        pool = ThreadPoolExecutor(max_workers=self.options.workers, thread_name_prefix="sdisk-scan")
        ready: List[Tuple[FileRecord, int]] = [(self.root, 0)]
        pending: Dict[Future, Tuple[FileRecord, int]] = {}

        try:
            while ready or pending:
                if self._should_stop():
                    return

                while ready and len(pending) < max_in_flight:
                    record, depth = ready.pop()
                    record, descend = self._admit(record, depth)
                    if not descend:
                        yield record
                        continue
                    future = pool.submit(list_directory, record.path, self.options.follow_symlinks)
                    pending[future] = (record, depth)

                if not pending:
                    continue

                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    record, depth = pending.pop(future)
                    yield from self._expand(
                        record, depth, future.result(), lambda child, d: ready.append((child, d))
                    )
        finally:
            pool.shutdown(wait=True, cancel_futures=True)


class DirectoryScanner:
    """Scans directory trees and aggregates their sizes."""

    def __init__(self, options: Optional[ScanOptions] = None):
        """Initialize directory scanner.

        Args:
            options: Traversal options; defaults stay on one device and
                do not follow symlinks.
        """
        self.options = options or ScanOptions()
        self.logger = logging.getLogger(__name__)

    def walk(self, root: Union[str, "os.PathLike[str]"],
             cancel_event: Optional[threading.Event] = None) -> TreeWalk:
        """Prepare a traversal of ``root``.

        The root is checked eagerly so that an unusable root fails here
        rather than part way through iteration.

        Raises:
            ScanRootError: If the root is missing, unreadable or not a directory.
        """
        root_path = os.path.abspath(os.fspath(root))
        try:
            root_record = read_record(root_path, follow_symlinks=True)
        except OSError as exc:
            raise ScanRootError(root_path, classify_os_error(exc), exc.strerror or str(exc)) from exc

        if not root_record.is_directory:
            raise ScanRootError(root_path, ErrorKind.IO_ERROR, "Path is not a directory")

        try:
            with os.scandir(root_path):
                pass
        except OSError as exc:
            raise ScanRootError(root_path, classify_os_error(exc), exc.strerror or str(exc)) from exc

        return TreeWalk(root_record, self.options, cancel_event)

    def scan_directory(self, root: Union[str, "os.PathLike[str]"],
                       cancel_event: Optional[threading.Event] = None) -> AggregatedTree:
        """Walk ``root`` and build its aggregated tree.

        Args:
            root: Directory to scan.
            cancel_event: Optional event that stops the walk early.

        Returns:
            AggregatedTree for the root. ``complete`` is False if the walk
            was cancelled.
        """
        walk = self.walk(root, cancel_event)
        self.logger.info(f"Starting scan of {walk.path}")

        aggregator = Aggregator(walk.path)
        for record in walk:
            aggregator.add(record)

        tree = aggregator.finish(errors=walk.errors, notices=walk.notices, complete=not walk.cancelled)
        self.logger.info(
            f"Completed scan of {walk.path}: {walk.directories_listed} directories, "
            f"{tree.file_count} files, {tree.total_size} bytes, {len(walk.errors)} errors"
        )
        return tree
