"""Configuration management for Preform."""

import json
import logging
import logging.handlers
import tomllib
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Iterator

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from preform.exceptions import ConfigError

PREFORM_DIR = ".pre-form-git"
DEFAULT_COMPONENTS_DIR = f"{PREFORM_DIR}/components"
CONFIG_FILENAME = "config.toml"

CONVENTIONAL_TYPES = ["feat", "fix", "docs", "style", "refactor", "test", "chore"]

_LOG_LEVELS = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}
_LOG_RECORD_KEYS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
}


def _parse_log_level(level: str) -> int:
    normalized = level.strip().lower()
    if normalized in _LOG_LEVELS:
        return _LOG_LEVELS[normalized]
    valid = ", ".join(sorted({k for k in _LOG_LEVELS if k != "warn"}))
    raise ValueError(f"Invalid log level: {level}. Valid: {valid}")


def _coerce_log_levels(levels: dict[str, str]) -> dict[str, str]:
    normalized: dict[str, str] = {}
    for name, level in levels.items():
        _parse_log_level(level)
        normalized[name] = level.strip().lower()
    return normalized


def _iter_log_levels(
    default_level: str,
    per_component: dict[str, str],
) -> Iterable[int]:
    yield _parse_log_level(default_level)
    for level in per_component.values():
        yield _parse_log_level(level)


class _StructuredFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _LOG_RECORD_KEYS
        }
        for key, value in extras.items():
            if isinstance(value, (str, int, float, bool)) or value is None:
                payload[key] = value
            else:
                payload[key] = str(value)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack_info"] = record.stack_info
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(config: "PreformConfig") -> None:
    """Configure structured logging for CLI usage.

    The form owns the terminal while it runs, so anything below warning
    should go to ``log_file`` rather than stderr.
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    handler: logging.Handler
    if config.log_file:
        handler = logging.FileHandler(config.log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler()
    handler.setLevel(logging.NOTSET)
    handler.setFormatter(_StructuredFormatter())
    root_logger.addHandler(handler)

    min_level = min(_iter_log_levels(config.log_level, config.log_levels))
    root_logger.setLevel(min_level)

    for name, level in config.log_levels.items():
        logging.getLogger(name).setLevel(_parse_log_level(level))


@contextmanager
def hold_console_logging(capacity: int = 10000) -> Iterator[None]:
    """Buffer records bound for the console until the block exits.

    While the full-screen form owns the terminal, stderr output would draw
    over the frame. File handlers keep writing as usual.
    """
    root_logger = logging.getLogger()
    held: list[tuple[logging.Handler, logging.handlers.MemoryHandler]] = []
    for handler in list(root_logger.handlers):
        if type(handler) is not logging.StreamHandler:
            continue
        buffer = logging.handlers.MemoryHandler(
            capacity, flushLevel=logging.CRITICAL + 1, target=None, flushOnClose=False
        )
        buffer.setLevel(handler.level)
        root_logger.removeHandler(handler)
        root_logger.addHandler(buffer)
        held.append((handler, buffer))
    try:
        yield
    finally:
        for handler, buffer in held:
            root_logger.removeHandler(buffer)
            root_logger.addHandler(handler)
            for record in buffer.buffer:
                handler.handle(record)
            buffer.close()


class PreformConfig(BaseModel):
    """Main configuration for Preform."""

    model_config = ConfigDict(extra="forbid")

    components_dir: str = Field(
        default=DEFAULT_COMPONENTS_DIR,
        description="Directory holding one file per commit type (relative to repo root)",
    )
    fallback_types: list[str] = Field(
        default_factory=list,
        description="Types offered when the components directory is empty",
    )
    allow_add_types: bool = Field(
        default=True, description="Allow adding new types from the form with '+'"
    )
    highlight_symbol: str = Field(
        default="➡ ", description="Marker drawn before the selected type"
    )

    log_level: str = Field(default="warning", description="Log level")
    log_levels: dict[str, str] = Field(
        default_factory=dict,
        description="Per-component log levels (e.g., {'preform.options': 'debug'})",
    )
    log_file: str | None = Field(
        default=None,
        description="Optional log file path (structured JSON)",
    )

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        _parse_log_level(value)
        return value.strip().lower()

    @field_validator("log_levels")
    @classmethod
    def _validate_log_levels(cls, value: dict[str, str]) -> dict[str, str]:
        return _coerce_log_levels(value)

    @field_validator("highlight_symbol")
    @classmethod
    def _validate_highlight_symbol(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("highlight_symbol must not be blank")
        return value

    @field_validator("fallback_types")
    @classmethod
    def _validate_fallback_types(cls, value: list[str]) -> list[str]:
        return [item.strip() for item in value if item.strip()]

    @classmethod
    def from_file(cls, path: str | Path) -> "PreformConfig":
        """Load configuration from TOML file.

        A missing file yields the defaults.
        """
        path = Path(path)
        if not path.exists():
            return cls()

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigError(f"Cannot load config file: {e}", {"path": str(path)}) from e

        try:
            return cls(**data)
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}", {"path": str(path)}) from e

    @classmethod
    def default_path(cls, repo_root: Path) -> Path:
        """Get default config file path for a repository."""
        return repo_root / PREFORM_DIR / CONFIG_FILENAME

    def resolve_components_dir(self, repo_root: Path) -> Path:
        """Absolute components directory; relative paths hang off the repo root."""
        path = Path(self.components_dir).expanduser()
        if path.is_absolute():
            return path
        return repo_root / path

    def to_toml_dict(self) -> dict[str, Any]:
        """Settings as written by ``preform init``."""
        data = self.model_dump(exclude_none=True)
        if not data.get("log_levels"):
            data.pop("log_levels", None)
        return data
