"""Text and JSON rendering of sdisk results."""

from typing import Any, Dict, List, Optional

from ..core.models import (
    SKIP_DRY_RUN,
    AggregatedTree,
    DeletionReport,
    DirectoryNode,
    FileRecord,
    OutcomeStatus,
    StaleCandidate,
    StaleReport,
)
from ..utils.formatters import format_age, format_date, format_file_size, truncate_string


class TextReporter:
    """Renders scan, ranking, staleness and deletion results."""

    def __init__(self, max_path_length: int = 100):
        """Initialize reporter.

        Args:
            max_path_length: Paths longer than this are shortened from the left.
        """
        self.max_path_length = max_path_length

    def _path(self, path: str) -> str:
        return truncate_string(path, self.max_path_length)

    def scan_summary(self, trees: List[AggregatedTree]) -> str:
        lines = []
        for tree in trees:
            line = (f"{tree.path}: {tree.file_count:,} files, "
                    f"{format_file_size(tree.total_size)}")
            if tree.errors:
                line += f", {len(tree.errors)} unreadable entries"
            if tree.notices:
                line += f", {len(tree.notices)} directories on other devices skipped"
            if not tree.complete:
                line += " (incomplete)"
            lines.append(line)
        return "\n".join(lines)

    def ranked_files(self, records: List[FileRecord]) -> str:
        if not records:
            return "No files found."
        return "\n".join(
            f"{index:>3}. {format_file_size(record.size):>10}  {self._path(record.path)}"
            for index, record in enumerate(records, 1)
        )

    def ranked_directories(self, nodes: List[DirectoryNode]) -> str:
        if not nodes:
            return "No directories found."
        return "\n".join(
            f"{index:>3}. {format_file_size(node.total_size):>10}  {self._path(node.path)}"
            f"  ({node.file_count:,} files)"
            for index, node in enumerate(nodes, 1)
        )

    def stale_candidates(self, candidates: List[StaleCandidate]) -> str:
        if not candidates:
            return "No stale files found."
        return "\n".join(
            f"{index:>3}. {format_file_size(candidate.size):>10}  {format_age(candidate.age):>10}  "
            f"{self._path(candidate.path)}"
            for index, candidate in enumerate(candidates, 1)
        )

    def stale_report(self, report: StaleReport, limit: Optional[int] = None) -> str:
        shown = report.candidates if limit is None else report.candidates[:limit]
        lines = [
            f"Files not {report.reference.value} for at least {format_age(report.threshold)} "
            f"(as of {format_date(report.now, short=True)}):",
            self.stale_candidates(shown),
        ]
        if len(shown) < len(report.candidates):
            lines.append(f"... and {len(report.candidates) - len(shown)} more")
        lines.append(f"Total: {len(report.candidates)} files, {format_file_size(report.total_size)}")
        if report.unknown:
            lines.append(f"Age unknown for {len(report.unknown)} files")
        return "\n".join(lines)

    def deletion_report(self, report: DeletionReport) -> str:
        lines = []
        for outcome in report.outcomes:
            if outcome.status is OutcomeStatus.SUCCEEDED:
                lines.append(f"Removed {outcome.path}")
            elif outcome.status is OutcomeStatus.SKIPPED:
                verb = "Would remove" if outcome.reason == SKIP_DRY_RUN else f"Skipped ({outcome.reason})"
                lines.append(f"{verb} {outcome.path}")
            else:
                lines.append(f"Failed {outcome.path}: {outcome.reason}")

        reclaimed = format_file_size(report.bytes_reclaimed)
        if report.is_projection:
            lines.append(f"Dry run: {report.skipped} files, {reclaimed} would be reclaimed")
        else:
            lines.append(
                f"Deleted {report.deleted}, skipped {report.skipped}, failed {report.failed}; "
                f"{reclaimed} reclaimed"
            )
        if report.not_attempted:
            lines.append(f"{report.not_attempted} candidates not attempted (limit reached)")
        return "\n".join(lines)

    def files_json(self, records: List[FileRecord]) -> List[Dict[str, Any]]:
        return [{'path': record.path, 'size': record.size} for record in records]

    def directories_json(self, nodes: List[DirectoryNode]) -> List[Dict[str, Any]]:
        return [
            {'path': node.path, 'size': node.total_size, 'files': node.file_count}
            for node in nodes
        ]

    def stale_json(self, report: StaleReport, limit: Optional[int] = None) -> Dict[str, Any]:
        shown = report.candidates if limit is None else report.candidates[:limit]
        return {
            'reference': report.reference.value,
            'threshold_days': report.threshold.total_seconds() / 86400,
            'now': report.now.isoformat(),
            'candidates': [
                {'path': c.path, 'size': c.size, 'age_days': c.age_days}
                for c in shown
            ],
            'total': len(report.candidates),
            'total_size': report.total_size,
            'unknown': [record.path for record in report.unknown],
        }

