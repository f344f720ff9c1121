"""Entry operations and the main disk analysis coordinator."""

import itertools
import logging
import os
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from .deleter import Candidate, ConfirmCallback, DeletionExecutor
from .models import (
    AggregatedTree,
    DeletionMode,
    DeletionReport,
    DirectoryNode,
    FileRecord,
    ReferenceAttribute,
    ScanOptions,
    StaleReport,
)
from .ranker import rank_files, top_k, directory_measure
from .scanner import DirectoryScanner
from .stale import StaleClassifier
from ..config.config_manager import ConfigManager


def scan(root: Union[str, "os.PathLike[str]"], options: Optional[ScanOptions] = None,
         cancel_event: Optional[threading.Event] = None) -> AggregatedTree:
    """Scan one root directory into an aggregated tree.

    Raises:
        ScanRootError: If the root cannot be scanned at all.
    """
    return DirectoryScanner(options).scan_directory(root, cancel_event)


def rank(tree: AggregatedTree, k: int) -> List[FileRecord]:
    """Return the k largest files of ``tree``, largest first, ties by path."""
    return rank_files(tree, k)


def find_stale(tree: AggregatedTree, threshold_days: float,
               reference: Union[ReferenceAttribute, str] = ReferenceAttribute.MODIFIED,
               now: Optional[datetime] = None) -> StaleReport:
    """Return the files of ``tree`` untouched for at least ``threshold_days``.

    Args:
        tree: Result of ``scan``.
        threshold_days: Minimum age in days (inclusive).
        reference: Measure age from the modification or the access time.
        now: Reference instant; the current time when omitted.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    return StaleClassifier.from_days(threshold_days, reference).classify(tree.records(), now)


def delete_candidates(candidates: Iterable[Candidate], mode: Union[DeletionMode, str],
                      limit: Optional[int] = None, confirm: Optional[ConfirmCallback] = None,
                      cancel_event: Optional[threading.Event] = None) -> DeletionReport:
    """Delete up to ``limit`` candidates under the given mode.

    Raises:
        ValueError: In confirm mode without a ``confirm`` callback.
    """
    executor = DeletionExecutor(mode, confirm=confirm, cancel_event=cancel_event)
    return executor.run(candidates, limit)


class DiskAnalyzer:
    """Main disk analysis coordinator."""

    def __init__(self, config_path: Optional[str] = None,
                 overrides: Optional[Dict[str, Dict[str, Any]]] = None):
        """Initialize disk analyzer.

        Args:
            config_path: Optional path to configuration file.
            overrides: Settings that take precedence over the file,
                e.g. from command-line options.
        """
        self.config_manager = ConfigManager(config_path)
        self.config = self.config_manager.load_config()
        if overrides:
            self.config = self.config_manager.apply_overrides(overrides)
        self.scanner = None
        self.classifier = None
        self.logger = logging.getLogger(__name__)

        self._initialize_components()

    def _initialize_components(self):
        """Initialize scanning and classification components."""
        scan_config = self.config_manager.get_scan_config()
        self.scan_options = ScanOptions(
            follow_symlinks=scan_config.get('follow_symlinks', False),
            stay_on_device=scan_config.get('stay_on_device', True),
            max_depth=scan_config.get('max_depth'),
            workers=scan_config.get('workers', 1),
        )
        self.scanner = DirectoryScanner(self.scan_options)

        stale_config = self.config_manager.get_stale_config()
        self.classifier = StaleClassifier.from_days(
            stale_config.get('days', 90),
            stale_config.get('reference', 'modified'),
        )

    def scan_roots(self, roots: Iterable[Union[str, "os.PathLike[str]"]],
                   cancel_event: Optional[threading.Event] = None) -> List[AggregatedTree]:
        """Scan every root in turn.

        Raises:
            ScanRootError: On the first root that cannot be scanned.
        """
        trees = []
        for root in roots:
            tree = self.scanner.scan_directory(root, cancel_event)
            if tree.errors:
                self.logger.warning(f"{len(tree.errors)} entries under {tree.path} could not be read")
            trees.append(tree)
        return trees

    def top_files(self, trees: List[AggregatedTree], count: Optional[int] = None) -> List[FileRecord]:
        if count is None:
            count = self.config_manager.get_top_config().get('count', 20)
        return top_k(itertools.chain.from_iterable(tree.files() for tree in trees), count)

    def top_directories(self, trees: List[AggregatedTree], count: Optional[int] = None) -> List[DirectoryNode]:
        if count is None:
            count = self.config_manager.get_top_config().get('count', 20)
        nodes = (node for tree in trees for node in tree.directories() if node is not tree.root)
        return top_k(nodes, count, directory_measure)

    def stale_files(self, trees: List[AggregatedTree], now: Optional[datetime] = None) -> StaleReport:
        """Classify the files of all trees against one captured ``now``."""
        if now is None:
            now = datetime.now(timezone.utc)
        records = itertools.chain.from_iterable(tree.records() for tree in trees)
        return self.classifier.classify(records, now)

    def clean(self, candidates: Iterable[Candidate], mode: Union[DeletionMode, str],
              limit: Optional[int] = None, confirm: Optional[ConfirmCallback] = None,
              cancel_event: Optional[threading.Event] = None) -> DeletionReport:
        """Run the deletion workflow, defaulting the limit from configuration."""
        if limit is None:
            limit = self.config_manager.get_clean_config().get('limit')
        self.logger.info(f"Starting deletion in {DeletionMode(mode).value} mode")
        return delete_candidates(candidates, mode, limit=limit, confirm=confirm, cancel_event=cancel_event)
