from __future__ import annotations

import os
import threading
import time
from datetime import datetime, timezone
from pathlib import Path

import pytest

from sdisk import delete_candidates, find_stale, scan
from sdisk.core import deleter as deleter_module
from sdisk.core.errors import ErrorKind
from sdisk.core.deleter import DeletionExecutor
from sdisk.core.models import (
    SKIP_CANCELLED,
    SKIP_DECLINED,
    SKIP_DRY_RUN,
    DeletionMode,
    OutcomeStatus,
)

DAY = 86400


def _write(path: Path, size: int) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x" * size)


def _snapshot(root: Path) -> list[tuple[str, int]]:
    return sorted((r.path, r.size) for r in scan(root).records())


def _stale_tree(root: Path, count: int = 3):
    now = int(time.time())
    for i in range(count):
        path = root / f"old{i}.bin"
        _write(path, 10 * (i + 1))
        stamp = now - (200 + i) * DAY
        os.utime(path, (stamp, stamp))
    _write(root / "fresh.bin", 5)
    tree = scan(root)
    return tree, find_stale(tree, 90, now=datetime.fromtimestamp(now, tz=timezone.utc))


def test_dry_run_leaves_tree_unchanged(tmp_path: Path) -> None:
    _, report = _stale_tree(tmp_path)
    before = _snapshot(tmp_path)

    result = delete_candidates(report, DeletionMode.DRY_RUN)

    assert _snapshot(tmp_path) == before
    assert result.deleted == 0
    assert result.skipped == 3
    assert all(o.reason == SKIP_DRY_RUN for o in result.outcomes)
    assert result.is_projection
    assert result.bytes_reclaimed == 10 + 20 + 30


def test_auto_mode_deletes_candidates(tmp_path: Path) -> None:
    _, report = _stale_tree(tmp_path)

    result = delete_candidates(report, "auto")

    assert result.deleted == 3
    assert result.bytes_reclaimed == 60
    assert sorted(p.name for p in tmp_path.iterdir()) == ["fresh.bin"]


def test_outcomes_follow_candidate_order(tmp_path: Path) -> None:
    _, report = _stale_tree(tmp_path)

    result = delete_candidates(report, DeletionMode.AUTO)

    assert [o.path for o in result.outcomes] == [c.path for c in report]


def test_limit_is_respected(tmp_path: Path) -> None:
    _, report = _stale_tree(tmp_path, count=5)

    result = delete_candidates(report, DeletionMode.AUTO, limit=2)

    assert result.deleted == 2
    assert len(result.outcomes) == 2
    assert result.not_attempted == 3
    remaining = {p.name for p in tmp_path.iterdir()}
    assert len(remaining) == 4
    for candidate in report.candidates[:2]:
        assert not os.path.exists(candidate.path)


def test_duplicates_are_handled_once(tmp_path: Path) -> None:
    _write(tmp_path / "a.bin", 4)
    path = str(tmp_path / "a.bin")

    result = delete_candidates([path, path, tmp_path / "a.bin"], DeletionMode.AUTO)

    assert len(result.outcomes) == 1
    assert result.deleted == 1


def test_file_removed_after_scan_is_reported(tmp_path: Path) -> None:
    _, report = _stale_tree(tmp_path)
    vanished = report.candidates[1].path
    os.remove(vanished)

    result = delete_candidates(report, DeletionMode.AUTO)

    outcome = next(o for o in result.outcomes if o.path == vanished)
    assert outcome.status is OutcomeStatus.FAILED
    assert outcome.error is ErrorKind.ALREADY_DELETED
    assert result.deleted == 2


def test_file_removed_between_plan_and_execute(tmp_path: Path) -> None:
    _, report = _stale_tree(tmp_path)
    executor = DeletionExecutor(DeletionMode.AUTO)
    plan = executor.plan(report)
    vanished = report.candidates[0].path
    os.remove(vanished)

    result = executor.execute(plan)

    assert result.outcomes[0].error is ErrorKind.ALREADY_DELETED
    assert result.deleted == 2


def test_changed_file_is_kept(tmp_path: Path) -> None:
    _, report = _stale_tree(tmp_path)
    changed = Path(report.candidates[0].path)
    changed.write_bytes(b"y" * 999)

    result = delete_candidates(report, DeletionMode.AUTO)

    assert result.outcomes[0].error is ErrorKind.CHANGED_SINCE_SCAN
    assert changed.exists()
    assert result.deleted == 2


def test_directory_is_not_deleted(tmp_path: Path) -> None:
    (tmp_path / "folder").mkdir()

    result = delete_candidates([tmp_path / "folder"], DeletionMode.AUTO)

    assert result.outcomes[0].error is ErrorKind.NOT_A_REGULAR_FILE
    assert (tmp_path / "folder").is_dir()


def test_failure_does_not_stop_batch(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _, report = _stale_tree(tmp_path)
    stuck = report.candidates[0].path
    real_remove = os.remove

    def remove(path):
        if path == stuck:
            raise PermissionError(13, "Permission denied", path)
        real_remove(path)

    monkeypatch.setattr(deleter_module.os, "remove", remove)

    result = delete_candidates(report, DeletionMode.AUTO)

    assert result.failed == 1
    assert result.failures[0].error is ErrorKind.PERMISSION_DENIED
    assert result.deleted == 2
    assert os.path.exists(stuck)


def test_confirm_mode_requires_callback() -> None:
    with pytest.raises(ValueError):
        DeletionExecutor(DeletionMode.CONFIRM)


def test_declined_batch_deletes_nothing(tmp_path: Path) -> None:
    _, report = _stale_tree(tmp_path)
    asked = []

    def decline(pending):
        asked.append([item.path for item in pending])
        return False

    result = delete_candidates(report, DeletionMode.CONFIRM, confirm=decline)

    assert asked == [[c.path for c in report]]
    assert result.deleted == 0
    assert all(o.reason == SKIP_DECLINED for o in result.outcomes)
    assert len(list(tmp_path.iterdir())) == 4


def test_confirm_can_approve_a_subset(tmp_path: Path) -> None:
    _, report = _stale_tree(tmp_path)
    keep, drop = report.candidates[0].path, report.candidates[1].path

    result = delete_candidates(report, DeletionMode.CONFIRM, confirm=lambda pending: [drop])

    assert result.deleted == 1
    assert not os.path.exists(drop)
    assert os.path.exists(keep)


def test_cancel_stops_further_deletes(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _, report = _stale_tree(tmp_path)
    cancel = threading.Event()
    real_remove = os.remove

    def remove_then_cancel(path):
        real_remove(path)
        cancel.set()

    monkeypatch.setattr(deleter_module.os, "remove", remove_then_cancel)

    result = delete_candidates(report, DeletionMode.AUTO, cancel_event=cancel)

    assert result.deleted == 1
    assert [o.reason for o in result.outcomes[1:]] == [SKIP_CANCELLED, SKIP_CANCELLED]


def test_negative_limit_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        delete_candidates([], DeletionMode.AUTO, limit=-1)


def test_confirm_may_return_a_single_path(tmp_path: Path) -> None:
    _, report = _stale_tree(tmp_path)
    chosen = report.candidates[0].path

    result = delete_candidates(report, DeletionMode.CONFIRM, confirm=lambda pending: chosen)

    assert result.deleted == 1
    assert not os.path.exists(chosen)
    assert result.skipped == 2
