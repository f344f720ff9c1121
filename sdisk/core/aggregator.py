"""Size aggregation over scanned records."""

import logging
import os
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from .models import AggregatedTree, DirectoryNode, FileRecord, ScanIssue


class Aggregator:
    """Builds an AggregatedTree from FileRecords arriving in any order.

    Each regular file adds its size to its parent directory only. Totals
    are rolled up to the ancestors once, in ``finish``.
    """

    def __init__(self, root: str):
        """Initialize aggregator.

        Args:
            root: Absolute path of the scanned root directory.
        """
        self.root_path = root
        self.root = DirectoryNode(path=root)
        self.nodes: Dict[str, DirectoryNode] = {root: self.root}
        self.scanned_at = datetime.now(timezone.utc)
        self._finished = False
        self.logger = logging.getLogger(__name__)

    def add(self, record: FileRecord) -> None:
        """Add one record to the tree."""
        if self._finished:
            raise RuntimeError("Aggregation already finished")

        if record.is_directory:
            self._node(record.path).record = record
            return

        parent = self._node(record.parent)
        parent.children.append(record)
        if record.is_file and record.error is None:
            parent.total_size += record.size
            parent.file_count += 1

    def add_all(self, records: Iterable[FileRecord]) -> None:
        for record in records:
            self.add(record)

    def _node(self, path: str) -> DirectoryNode:
        """Return the node for ``path``, creating it and any missing ancestors."""
        node = self.nodes.get(path)
        if node is not None:
            return node

        missing: List[str] = []
        ancestor = path
        while ancestor not in self.nodes:
            missing.append(ancestor)
            parent = os.path.dirname(ancestor)
            if parent == ancestor:
                raise ValueError(f"{path} is outside of {self.root_path}")
            ancestor = parent

        for missing_path in reversed(missing):
            node = DirectoryNode(path=missing_path)
            self.nodes[ancestor].children.append(node)
            self.nodes[missing_path] = node
            ancestor = missing_path
        return node

    def finish(self, errors: Optional[List[ScanIssue]] = None,
               notices: Optional[List[ScanIssue]] = None,
               complete: bool = True) -> AggregatedTree:
        """Roll sizes up to every ancestor and return the finished tree.

        Args:
            errors: Per-entry errors met during the walk.
            notices: Informational skips met during the walk.
            complete: False when the walk stopped early.

        Returns:
            The aggregated tree.
        """
        if self._finished:
            raise RuntimeError("Aggregation already finished")
        self._finished = True

        # Deepest first, so a node's total is final before it reaches its parent.
        ordered = sorted(self.nodes.values(), key=lambda n: n.path.count(os.sep), reverse=True)
        for node in ordered:
            node.children.sort(key=lambda child: child.path)
            if node is self.root:
                continue
            parent = self.nodes[os.path.dirname(node.path)]
            parent.total_size += node.total_size
            parent.file_count += node.file_count

        self.logger.debug(f"Aggregated {len(self.nodes)} directories under {self.root_path}")
        return AggregatedTree(
            root=self.root,
            nodes=self.nodes,
            scanned_at=self.scanned_at,
            errors=list(errors or []),
            notices=list(notices or []),
            complete=complete,
        )
