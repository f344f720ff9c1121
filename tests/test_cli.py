from __future__ import annotations

import json
import os
import time
from pathlib import Path

import click
import pytest
from click.testing import CliRunner

from sdisk.cli import cli, collect_roots, parse_selection

DAY = 86400


def _write(path: Path, size: int, days_old: int = 0) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x" * size)
    if days_old:
        stamp = int(time.time()) - days_old * DAY
        os.utime(path, (stamp, stamp))


def _run(*args: str, input: str | None = None):
    return CliRunner().invoke(cli, ["--log-level", "ERROR", *args], input=input)


def test_top_lists_largest_first(tmp_path: Path) -> None:
    _write(tmp_path / "small.bin", 10)
    _write(tmp_path / "big.bin", 5000)
    _write(tmp_path / "sub" / "medium.bin", 700)

    result = _run("--non-interactive", "top", "-n", "2", str(tmp_path))

    assert result.exit_code == 0, result.output
    assert result.output.index("big.bin") < result.output.index("medium.bin")
    assert "small.bin" not in result.output


def test_top_json(tmp_path: Path) -> None:
    _write(tmp_path / "a.bin", 30)
    _write(tmp_path / "b.bin", 20)

    result = _run("top", "--output", "json", str(tmp_path))

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["files"] == [
        {"path": str(tmp_path / "a.bin"), "size": 30},
        {"path": str(tmp_path / "b.bin"), "size": 20},
    ]


def test_top_directories(tmp_path: Path) -> None:
    _write(tmp_path / "photos" / "a.jpg", 900)
    _write(tmp_path / "docs" / "b.txt", 100)

    result = _run("--path", str(tmp_path), "top", "--dirs", "-o", "json")

    assert result.exit_code == 0, result.output
    names = [os.path.basename(entry["path"]) for entry in json.loads(result.output)["directories"]]
    assert names == ["photos", "docs"]


def test_interactive_top_deletes_selection(tmp_path: Path) -> None:
    _write(tmp_path / "big.bin", 500)
    _write(tmp_path / "small.bin", 50)

    result = _run("top", str(tmp_path), input="1\ny\n")

    assert result.exit_code == 0, result.output
    assert not (tmp_path / "big.bin").exists()
    assert (tmp_path / "small.bin").exists()


def test_stale_lists_only_old_files(tmp_path: Path) -> None:
    _write(tmp_path / "ancient.log", 10, days_old=100)
    _write(tmp_path / "new.log", 10)

    result = _run("--stale-days", "30", "stale", str(tmp_path))

    assert result.exit_code == 0, result.output
    assert "ancient.log" in result.output
    assert "new.log" not in result.output


def test_stale_json(tmp_path: Path) -> None:
    _write(tmp_path / "ancient.log", 10, days_old=100)

    result = _run("--stale-days", "30", "stale", "-o", "json", str(tmp_path))

    data = json.loads(result.output)
    assert [c["path"] for c in data["candidates"]] == [str(tmp_path / "ancient.log")]
    assert data["candidates"][0]["age_days"] == 100
    assert data["reference"] == "modified"


def test_clean_dry_run_removes_nothing(tmp_path: Path) -> None:
    _write(tmp_path / "ancient.log", 10, days_old=100)

    result = _run("--stale-days", "30", "--dry-run", "--non-interactive", "clean", str(tmp_path))

    assert result.exit_code == 0, result.output
    assert "Would remove" in result.output
    assert (tmp_path / "ancient.log").exists()


def test_clean_with_yes_deletes_stale_files(tmp_path: Path) -> None:
    _write(tmp_path / "ancient.log", 10, days_old=100)
    _write(tmp_path / "new.log", 10)

    result = _run("--stale-days", "30", "--non-interactive", "--yes", "clean", str(tmp_path))

    assert result.exit_code == 0, result.output
    assert not (tmp_path / "ancient.log").exists()
    assert (tmp_path / "new.log").exists()


def test_clean_declined_keeps_files(tmp_path: Path) -> None:
    _write(tmp_path / "ancient.log", 10, days_old=100)

    result = _run("--stale-days", "30", "--non-interactive", "clean", str(tmp_path), input="n\n")

    assert result.exit_code == 0, result.output
    assert "Skipped (declined)" in result.output
    assert (tmp_path / "ancient.log").exists()


def test_clean_respects_limit(tmp_path: Path) -> None:
    for i in range(3):
        _write(tmp_path / f"old{i}.log", 10, days_old=100 + i)

    result = _run("--stale-days", "30", "--non-interactive", "--yes", "clean", "-l", "1", str(tmp_path))

    assert result.exit_code == 0, result.output
    assert sorted(p.name for p in tmp_path.iterdir()) == ["old0.log", "old1.log"]


def test_missing_root_exits_with_error(tmp_path: Path) -> None:
    result = _run("--non-interactive", "top", str(tmp_path / "missing"))

    assert result.exit_code == 1
    assert "Error" in result.output


def test_bad_config_exits_with_error(tmp_path: Path) -> None:
    config_file = tmp_path / "sdisk.yaml"
    config_file.write_text("stale:\n  reference: created\n", encoding="utf-8")

    result = _run("--config", str(config_file), "top", str(tmp_path))

    assert result.exit_code == 1
    assert "Configuration error" in result.output


def test_parse_selection() -> None:
    assert parse_selection("", 5) == []
    assert parse_selection("all", 3) == [0, 1, 2]
    assert parse_selection("1,3-4", 5) == [0, 2, 3]
    assert parse_selection("2 2", 5) == [1]


@pytest.mark.parametrize("text", ["0", "6", "x", "3-1"])
def test_parse_selection_rejects_bad_input(text: str) -> None:
    with pytest.raises(click.BadParameter):
        parse_selection(text, 5)


def test_collect_roots(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    assert collect_roots(None, []) == [str(tmp_path)]
    assert collect_roots(str(tmp_path / "x"), [str(tmp_path / "x"), "sub"]) == [str(tmp_path / "x"), str(tmp_path / "sub")]


def test_nested_roots_are_scanned_once(tmp_path: Path) -> None:
    _write(tmp_path / "sub" / "big.bin", 1000)
    _write(tmp_path / "other.bin", 10)

    result = _run("--non-interactive", "top", str(tmp_path), str(tmp_path / "sub"))

    assert result.exit_code == 0, result.output
    assert result.output.count("big.bin") == 1


def test_nested_roots_are_merged(tmp_path: Path) -> None:
    sub = str(tmp_path / "sub")

    assert collect_roots(sub, [str(tmp_path)]) == [str(tmp_path)]
    assert collect_roots(None, [str(tmp_path / "a"), str(tmp_path / "ab")]) == [
        str(tmp_path / "a"),
        str(tmp_path / "ab"),
    ]


def test_fractional_threshold_in_json(tmp_path: Path) -> None:
    _write(tmp_path / "ancient.log", 10, days_old=100)

    result = _run("--stale-days", "0.5", "stale", "-o", "json", str(tmp_path))

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["threshold_days"] == 0.5
