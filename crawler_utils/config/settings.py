"""Settings loader for crawler-utils."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from crawler_utils.core.process import DEFAULT_ENCODING, DEFAULT_ERRORS, DEFAULT_MAX_BUFFER

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class DateSettings:
    extra_formats: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ProcessSettings:
    encoding: str = DEFAULT_ENCODING
    errors: str = DEFAULT_ERRORS
    max_buffer_bytes: int = DEFAULT_MAX_BUFFER
    timeout_seconds: Optional[float] = None


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"

    @property
    def level_no(self) -> int:
        return logging.getLevelName(self.level)


@dataclass(frozen=True)
class Settings:
    version: str
    dates: DateSettings
    process: ProcessSettings
    logging: LoggingSettings


class SettingsLoadError(RuntimeError):
    """Raised when settings cannot be loaded."""


def default_settings() -> Settings:
    return Settings(
        version="1",
        dates=DateSettings(),
        process=ProcessSettings(),
        logging=LoggingSettings(),
    )


def _section(raw: dict[str, Any], key: str) -> dict[str, Any]:
    value = raw.get(key, {})
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise SettingsLoadError(f"{key} must be an object")
    return value


def load_settings(path: Path) -> Settings:
    if not path.exists():
        raise SettingsLoadError(f"settings file not found: {path}")

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise SettingsLoadError(f"settings file is not valid YAML: {path}") from exc
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise SettingsLoadError("settings root must be an object")

    dates_raw = _section(raw, "dates")
    process_raw = _section(raw, "process")
    logging_raw = _section(raw, "logging")

    extra_formats = dates_raw.get("extra_formats", [])
    if not isinstance(extra_formats, list) or not all(isinstance(f, str) and f.strip() for f in extra_formats):
        raise SettingsLoadError("dates.extra_formats must be a list of non-empty strings")

    encoding = str(process_raw.get("encoding", DEFAULT_ENCODING)).strip()
    try:
        "".encode(encoding)
    except LookupError as exc:
        raise SettingsLoadError(f"invalid process.encoding: {encoding}") from exc

    errors = str(process_raw.get("errors", DEFAULT_ERRORS)).strip()
    if errors not in {"strict", "replace", "ignore", "backslashreplace", "surrogateescape"}:
        raise SettingsLoadError(f"invalid process.errors: {errors}")

    max_buffer_bytes = int(process_raw.get("max_buffer_bytes", DEFAULT_MAX_BUFFER))
    if max_buffer_bytes <= 0:
        raise SettingsLoadError("process.max_buffer_bytes must be > 0")

    timeout_raw = process_raw.get("timeout_seconds")
    timeout_seconds = float(timeout_raw) if timeout_raw is not None else None
    if timeout_seconds is not None and timeout_seconds <= 0:
        raise SettingsLoadError("process.timeout_seconds must be > 0")

    level = str(logging_raw.get("level", "INFO")).strip().upper()
    if level not in _LOG_LEVELS:
        raise SettingsLoadError(f"invalid logging.level: {level}")

    return Settings(
        version=str(raw.get("version", "1")),
        dates=DateSettings(extra_formats=[f.strip() for f in extra_formats]),
        process=ProcessSettings(
            encoding=encoding,
            errors=errors,
            max_buffer_bytes=max_buffer_bytes,
            timeout_seconds=timeout_seconds,
        ),
        logging=LoggingSettings(level=level),
    )
