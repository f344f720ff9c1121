"""Top-K selection of the largest entries."""

import heapq
from typing import Callable, Generic, Iterable, List, Tuple, TypeVar

from .models import AggregatedTree, DirectoryNode, FileRecord

T = TypeVar("T")
Measure = Callable[[T], Tuple[int, str]]


def file_measure(record: FileRecord) -> Tuple[int, str]:
    return record.size, record.path


def directory_measure(node: DirectoryNode) -> Tuple[int, str]:
    return node.total_size, node.path


class _Ranked:
    """Heap entry ordered so the lowest-ranked item sits at the top of the heap.

    Larger sizes rank higher; equal sizes rank by ascending path.
    """

    __slots__ = ("size", "path", "item")

    def __init__(self, size: int, path: str, item):
        self.size = size
        self.path = path
        self.item = item

    def __lt__(self, other: "_Ranked") -> bool:
        if self.size != other.size:
            return self.size < other.size
        return self.path > other.path


class TopK(Generic[T]):
    """Keeps the k highest-ranked items seen so far in a min-heap of size k."""

    def __init__(self, k: int, measure: Measure = file_measure):
        self.k = k
        self._measure = measure
        self._heap: List[_Ranked] = []

    def __len__(self) -> int:
        return len(self._heap)

    def push(self, item: T) -> None:
        if self.k <= 0:
            return
        size, path = self._measure(item)
        entry = _Ranked(size, path, item)
        if len(self._heap) < self.k:
            heapq.heappush(self._heap, entry)
        elif self._heap[0] < entry:
            heapq.heapreplace(self._heap, entry)

    def extend(self, items: Iterable[T]) -> None:
        for item in items:
            self.push(item)

    def results(self) -> List[T]:
        """Return the kept items, largest first."""
        return [entry.item for entry in sorted(self._heap, reverse=True)]


def top_k(items: Iterable[T], k: int, measure: Measure = file_measure) -> List[T]:
    """Select the k largest items, largest first, ties by path.

    Runs in O(n log k) time and O(k) space.
    """
    selector: TopK[T] = TopK(k, measure)
    selector.extend(items)
    return selector.results()


def rank_files(tree: AggregatedTree, k: int) -> List[FileRecord]:
    """Return the k largest regular files of a tree."""
    return top_k(tree.files(), k)


def top_directories(tree: AggregatedTree, k: int) -> List[DirectoryNode]:
    """Return the k directories below the root with the largest cumulative size."""
    nodes = (node for node in tree.directories() if node is not tree.root)
    return top_k(nodes, k, directory_measure)
