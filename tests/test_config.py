from __future__ import annotations

from pathlib import Path

import pytest

from sdisk.config.config_manager import ConfigManager
from sdisk.core.analyzer import DiskAnalyzer
from sdisk.core.errors import ConfigError
from sdisk.core.models import ReferenceAttribute


def _write(path: Path, text: str) -> None:
    path.write_text(text, encoding="utf-8")


def test_defaults_without_config_file() -> None:
    manager = ConfigManager()
    config = manager.load_config()

    assert manager.source is None
    assert config["scan"] == {
        "follow_symlinks": False,
        "stay_on_device": True,
        "max_depth": None,
        "workers": 1,
    }
    assert config["stale"] == {"days": 90, "reference": "modified"}
    assert manager.get_top_config()["count"] == 20
    assert manager.get_clean_config()["limit"] == 100
    assert manager.get_logging_config()["level"] == "WARNING"


def test_file_values_merge_with_defaults(tmp_path: Path) -> None:
    config_file = tmp_path / "sdisk.yaml"
    _write(config_file, "scan:\n  workers: 4\nstale:\n  days: 30\n  reference: accessed\ntop:\n  count: null\n")

    manager = ConfigManager(str(config_file))
    config = manager.load_config()

    assert manager.source == str(config_file)
    assert config["scan"]["workers"] == 4
    assert config["scan"]["stay_on_device"] is True
    assert config["stale"] == {"days": 30, "reference": "accessed"}
    assert config["top"]["count"] == 20


def test_default_location_is_searched(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_file = tmp_path / "found.yaml"
    _write(config_file, "clean:\n  limit: 5\n")
    monkeypatch.setattr(ConfigManager, "DEFAULT_CONFIG_LOCATIONS", [str(tmp_path / "nope.yaml"), str(config_file)])

    manager = ConfigManager()
    manager.load_config()

    assert manager.get_clean_config()["limit"] == 5


def test_missing_explicit_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        ConfigManager(str(tmp_path / "missing.yaml")).load_config()


def test_invalid_yaml_is_an_error(tmp_path: Path) -> None:
    config_file = tmp_path / "bad.yaml"
    _write(config_file, "scan: [unclosed\n")

    with pytest.raises(ConfigError):
        ConfigManager(str(config_file)).load_config()


@pytest.mark.parametrize(
    "text",
    [
        "unknown:\n  key: 1\n",
        "scan: 3\n",
        "scan:\n  follow_symlinks: maybe\n",
        "scan:\n  max_depth: -1\n",
        "scan:\n  workers: 0\n",
        "stale:\n  days: -2\n",
        "stale:\n  days: true\n",
        "stale:\n  reference: created\n",
        "top:\n  count: many\n",
        "clean:\n  limit: -1\n",
        "logging:\n  level: LOUD\n",
    ],
)
def test_invalid_values_are_rejected(tmp_path: Path, text: str) -> None:
    config_file = tmp_path / "sdisk.yaml"
    _write(config_file, text)

    with pytest.raises(ConfigError):
        ConfigManager(str(config_file)).load_config()


def test_overrides_skip_none_and_revalidate() -> None:
    manager = ConfigManager()
    manager.load_config()

    config = manager.apply_overrides({"scan": {"workers": 8, "max_depth": None}})
    assert config["scan"]["workers"] == 8
    assert config["scan"]["max_depth"] is None

    with pytest.raises(ConfigError):
        manager.apply_overrides({"stale": {"reference": "changed"}})


def test_analyzer_uses_configuration(tmp_path: Path) -> None:
    config_file = tmp_path / "sdisk.yaml"
    _write(config_file, "scan:\n  max_depth: 2\nstale:\n  days: 7\n")

    analyzer = DiskAnalyzer(str(config_file), {"stale": {"reference": "accessed"}})

    assert analyzer.scan_options.max_depth == 2
    assert analyzer.classifier.threshold.days == 7
    assert analyzer.classifier.reference is ReferenceAttribute.ACCESSED
