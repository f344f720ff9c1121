"""Guarded deletion of selected files."""

import logging
import os
import stat
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple, Union

from .errors import ErrorKind, classify_os_error
from .metadata import record_from_stat
from .models import (
    SKIP_CANCELLED,
    SKIP_DECLINED,
    SKIP_DRY_RUN,
    DeletionMode,
    DeletionOutcome,
    DeletionReport,
    FileRecord,
    OutcomeStatus,
    StaleCandidate,
)

Candidate = Union[str, "os.PathLike[str]", FileRecord, StaleCandidate]


@dataclass(frozen=True)
class PendingDeletion:
    """A candidate that passed planning and awaits execution."""
    path: str
    size: int
    record: Optional[FileRecord] = None


@dataclass
class DeletionPlan:
    """Candidates split into those ready for deletion and those rejected."""
    order: List[str] = field(default_factory=list)
    pending: List[PendingDeletion] = field(default_factory=list)
    rejected: List[DeletionOutcome] = field(default_factory=list)
    not_attempted: int = 0


# Returns True/False for the whole batch, or the approved path(s).
ConfirmCallback = Callable[[List[PendingDeletion]], Union[bool, Iterable[str]]]


def _normalize(candidate: Candidate) -> Tuple[str, Optional[FileRecord]]:
    if isinstance(candidate, StaleCandidate):
        return candidate.record.path, candidate.record
    if isinstance(candidate, FileRecord):
        return candidate.path, candidate
    return os.path.abspath(os.fspath(candidate)), None


class DeletionExecutor:
    """Deletes files under a dry-run / confirm / auto protocol.

    Every candidate is re-checked right before acting on it. A failure on
    one file is recorded in its outcome and never stops the batch.
    """

    def __init__(self, mode: Union[DeletionMode, str] = DeletionMode.DRY_RUN,
                 confirm: Optional[ConfirmCallback] = None,
                 cancel_event: Optional[threading.Event] = None):
        """Initialize deletion executor.

        Args:
            mode: dry-run never deletes, confirm asks ``confirm`` first,
                auto deletes without asking.
            confirm: Decision callback, required in confirm mode.
            cancel_event: When set, no further deletes are issued.
        """
        self.mode = DeletionMode(mode)
        if self.mode is DeletionMode.CONFIRM and confirm is None:
            raise ValueError("Confirm mode requires a confirmation callback")
        self.confirm = confirm
        self.cancel_event = cancel_event
        self.logger = logging.getLogger(__name__)

    def plan(self, candidates: Iterable[Candidate], limit: Optional[int] = None) -> DeletionPlan:
        """Validate candidates against the filesystem as it is now.

        Args:
            candidates: Paths, records or stale candidates, in priority order.
            limit: Maximum number of candidates to consider.

        Returns:
            DeletionPlan; candidates past the limit are only counted.
        """
        if limit is not None and limit < 0:
            raise ValueError(f"Limit must not be negative, got {limit}")

        unique: List[Tuple[str, Optional[FileRecord]]] = []
        seen: Set[str] = set()
        for candidate in candidates:
            path, record = _normalize(candidate)
            if path in seen:
                continue
            seen.add(path)
            unique.append((path, record))

        considered = unique if limit is None else unique[:limit]
        plan = DeletionPlan(not_attempted=len(unique) - len(considered))

        for path, record in considered:
            plan.order.append(path)
            checked = self._check(path, record)
            if isinstance(checked, DeletionOutcome):
                plan.rejected.append(checked)
            else:
                plan.pending.append(checked)

        if plan.not_attempted:
            self.logger.info(f"Deletion limit {limit} reached; {plan.not_attempted} candidates not attempted")
        return plan

    def _check(self, path: str, record: Optional[FileRecord]) -> Union[PendingDeletion, DeletionOutcome]:
        try:
            st = os.lstat(path)
        except OSError as exc:
            kind = classify_os_error(exc, missing=ErrorKind.ALREADY_DELETED)
            reason = "File no longer exists" if kind is ErrorKind.ALREADY_DELETED else (exc.strerror or str(exc))
            return DeletionOutcome(path=path, status=OutcomeStatus.FAILED, reason=reason, error=kind)

        if not stat.S_ISREG(st.st_mode):
            return DeletionOutcome(
                path=path,
                status=OutcomeStatus.FAILED,
                reason="Not a regular file",
                error=ErrorKind.NOT_A_REGULAR_FILE,
            )

        current = record_from_stat(path, st)
        if record is not None and record.is_file:
            if current.size != record.size or current.modified_time != record.modified_time:
                return DeletionOutcome(
                    path=path,
                    status=OutcomeStatus.FAILED,
                    size=current.size,
                    reason="File changed since it was scanned",
                    error=ErrorKind.CHANGED_SINCE_SCAN,
                )

        return PendingDeletion(path=path, size=current.size, record=record)

    def _approved(self, pending: List[PendingDeletion]) -> Set[str]:
        if self.mode is DeletionMode.AUTO or not pending:
            return {item.path for item in pending}

        decision = self.confirm(list(pending))
        if isinstance(decision, bool):
            return {item.path for item in pending} if decision else set()
        if isinstance(decision, (str, os.PathLike)):
            decision = [decision]

        planned = {item.path for item in pending}
        return {os.path.abspath(os.fspath(path)) for path in decision} & planned

    def execute(self, plan: DeletionPlan) -> DeletionReport:
        """Carry out a plan and report on every planned candidate.

        Args:
            plan: Result of ``plan``.

        Returns:
            DeletionReport with outcomes in candidate order.
        """
        outcomes: Dict[str, DeletionOutcome] = {outcome.path: outcome for outcome in plan.rejected}

        if self.mode is DeletionMode.DRY_RUN:
            for item in plan.pending:
                outcomes[item.path] = DeletionOutcome(
                    path=item.path, status=OutcomeStatus.SKIPPED, size=item.size, reason=SKIP_DRY_RUN
                )
        else:
            approved = self._approved(plan.pending)
            cancelled = False
            for item in plan.pending:
                if item.path not in approved:
                    outcomes[item.path] = DeletionOutcome(
                        path=item.path, status=OutcomeStatus.SKIPPED, size=item.size, reason=SKIP_DECLINED
                    )
                    continue
                if not cancelled and self.cancel_event is not None and self.cancel_event.is_set():
                    self.logger.info("Deletion cancelled; no further files will be removed")
                    cancelled = True
                if cancelled:
                    outcomes[item.path] = DeletionOutcome(
                        path=item.path, status=OutcomeStatus.SKIPPED, size=item.size, reason=SKIP_CANCELLED
                    )
                    continue
                outcomes[item.path] = self._delete(item)

        report = DeletionReport(
            mode=self.mode,
            outcomes=[outcomes[path] for path in plan.order],
            not_attempted=plan.not_attempted,
        )
        self.logger.info(
            f"Deletion ({self.mode.value}) finished: {report.deleted} deleted, "
            f"{report.skipped} skipped, {report.failed} failed, {report.bytes_reclaimed} bytes"
        )
        return report

    def _delete(self, item: PendingDeletion) -> DeletionOutcome:
        try:
            os.remove(item.path)
        except OSError as exc:
            kind = classify_os_error(exc, missing=ErrorKind.ALREADY_DELETED)
            reason = "File no longer exists" if kind is ErrorKind.ALREADY_DELETED else (exc.strerror or str(exc))
            self.logger.warning(f"Could not delete {item.path}: {reason}")
            return DeletionOutcome(path=item.path, status=OutcomeStatus.FAILED, reason=reason, error=kind)

        self.logger.debug(f"Deleted {item.path}")
        return DeletionOutcome(path=item.path, status=OutcomeStatus.SUCCEEDED, size=item.size)

    def run(self, candidates: Iterable[Candidate], limit: Optional[int] = None) -> DeletionReport:
        """Plan and execute in one step."""
        return self.execute(self.plan(candidates, limit))
