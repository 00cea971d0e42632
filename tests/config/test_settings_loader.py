from pathlib import Path

import pytest
import yaml

from crawler_utils.config.settings import SettingsLoadError, default_settings, load_settings


def _write(tmp_path: Path, data: object) -> Path:
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.safe_dump(data, allow_unicode=False), encoding="utf-8")
    return path


def test_settings_loader_reads_bundled_settings() -> None:
    settings = load_settings(Path("config/settings.yaml"))
    assert settings.process.max_buffer_bytes == 1024 * 1024
    assert settings.process.timeout_seconds is None
    assert "EEE MMM d yyyy" in settings.dates.extra_formats
    assert settings.logging.level == "INFO"


def test_settings_loader_applies_defaults_for_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("", encoding="utf-8")
    assert load_settings(path) == default_settings()


def test_settings_loader_rejects_missing_file(tmp_path: Path) -> None:
    with pytest.raises(SettingsLoadError):
        load_settings(tmp_path / "absent.yaml")


def test_settings_loader_rejects_invalid_yaml(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("process: [unclosed", encoding="utf-8")
    with pytest.raises(SettingsLoadError):
        load_settings(path)


def test_settings_loader_rejects_non_object_section(tmp_path: Path) -> None:
    with pytest.raises(SettingsLoadError):
        load_settings(_write(tmp_path, {"process": ["utf-8"]}))


def test_settings_loader_rejects_unknown_encoding(tmp_path: Path) -> None:
    with pytest.raises(SettingsLoadError):
        load_settings(_write(tmp_path, {"process": {"encoding": "no-such-codec"}}))


def test_settings_loader_rejects_non_positive_limits(tmp_path: Path) -> None:
    with pytest.raises(SettingsLoadError):
        load_settings(_write(tmp_path, {"process": {"max_buffer_bytes": 0}}))
    with pytest.raises(SettingsLoadError):
        load_settings(_write(tmp_path, {"process": {"timeout_seconds": -1}}))


def test_settings_loader_rejects_blank_date_format(tmp_path: Path) -> None:
    with pytest.raises(SettingsLoadError):
        load_settings(_write(tmp_path, {"dates": {"extra_formats": ["  "]}}))


def test_settings_loader_normalizes_log_level(tmp_path: Path) -> None:
    settings = load_settings(_write(tmp_path, {"logging": {"level": "debug"}}))
    assert settings.logging.level == "DEBUG"
    with pytest.raises(SettingsLoadError):
        load_settings(_write(tmp_path, {"logging": {"level": "chatty"}}))
