from __future__ import annotations

import io
import json
import logging
from pathlib import Path

import pytest

from preform.config import (
    CONVENTIONAL_TYPES,
    DEFAULT_COMPONENTS_DIR,
    PreformConfig,
    _parse_log_level,
    _StructuredFormatter,
    configure_logging,
    hold_console_logging,
)
from preform.exceptions import ConfigError


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


class TestPreformConfig:
    def test_defaults(self):
        config = PreformConfig()
        assert config.components_dir == DEFAULT_COMPONENTS_DIR
        assert config.fallback_types == []
        assert config.allow_add_types is True
        assert config.log_level == "warning"

    def test_from_missing_file_gives_defaults(self, tmp_path: Path):
        assert PreformConfig.from_file(tmp_path / "none.toml") == PreformConfig()

    def test_from_file(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_text(
            'components_dir = "types"\n'
            'fallback_types = ["feat", " ", "fix "]\n'
            'log_level = "DEBUG"\n'
        )
        config = PreformConfig.from_file(path)
        assert config.components_dir == "types"
        assert config.fallback_types == ["feat", "fix"]
        assert config.log_level == "debug"

    def test_invalid_toml_raises_config_error(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_text("components_dir = [unclosed\n")
        with pytest.raises(ConfigError):
            PreformConfig.from_file(path)

    def test_unknown_key_raises_config_error(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_text('colour = "blue"\n')
        with pytest.raises(ConfigError):
            PreformConfig.from_file(path)

    def test_invalid_log_level_raises(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_text('log_level = "loud"\n')
        with pytest.raises(ConfigError):
            PreformConfig.from_file(path)

    def test_blank_highlight_symbol_rejected(self):
        with pytest.raises(ValueError):
            PreformConfig(highlight_symbol="  ")

    def test_default_path(self, tmp_path: Path):
        assert PreformConfig.default_path(tmp_path) == tmp_path / ".pre-form-git" / "config.toml"

    def test_resolve_components_dir(self, tmp_path: Path):
        assert PreformConfig().resolve_components_dir(tmp_path) == tmp_path / DEFAULT_COMPONENTS_DIR
        absolute = tmp_path / "elsewhere"
        config = PreformConfig(components_dir=str(absolute))
        assert config.resolve_components_dir(Path("/repo")) == absolute

    def test_to_toml_dict_drops_unset(self):
        data = PreformConfig().to_toml_dict()
        assert "log_file" not in data
        assert "log_levels" not in data
        assert data["components_dir"] == DEFAULT_COMPONENTS_DIR

    def test_conventional_types(self):
        assert CONVENTIONAL_TYPES[:2] == ["feat", "fix"]


class TestLogging:
    def test_parse_log_level(self):
        assert _parse_log_level(" Warn ") == logging.WARNING
        with pytest.raises(ValueError):
            _parse_log_level("verbose")

    def test_structured_formatter(self):
        record = logging.LogRecord("preform.options", logging.INFO, __file__, 1, "loaded", None, None)
        record.count = 3
        payload = json.loads(_StructuredFormatter().format(record))
        assert payload["level"] == "info"
        assert payload["logger"] == "preform.options"
        assert payload["message"] == "loaded"
        assert payload["count"] == 3

    def test_configure_logging_to_file(self, tmp_path: Path, restore_root_logger):
        log_file = tmp_path / "preform.log"
        config = PreformConfig(
            log_level="info",
            log_file=str(log_file),
            log_levels={"preform.options": "debug"},
        )
        configure_logging(config)

        assert restore_root_logger.level == logging.DEBUG
        assert logging.getLogger("preform.options").level == logging.DEBUG

        logging.getLogger("preform.test").info("hello", extra={"target": "x"})
        for handler in restore_root_logger.handlers:
            handler.flush()
        line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
        assert json.loads(line)["target"] == "x"
        logging.getLogger("preform.options").setLevel(logging.NOTSET)

    def test_console_records_held_until_exit(self, restore_root_logger):
        stream = io.StringIO()
        console = logging.StreamHandler(stream)
        restore_root_logger.addHandler(console)
        restore_root_logger.setLevel(logging.INFO)

        with hold_console_logging():
            logging.getLogger("preform.options").info("Added type option")
            assert stream.getvalue() == ""
            assert console not in restore_root_logger.handlers

        assert "Added type option" in stream.getvalue()
        assert console in restore_root_logger.handlers

    def test_file_handler_not_held(self, tmp_path: Path, restore_root_logger):
        log_file = tmp_path / "preform.log"
        configure_logging(PreformConfig(log_level="info", log_file=str(log_file)))

        with hold_console_logging():
            logging.getLogger("preform.test").info("written now")
            for handler in restore_root_logger.handlers:
                handler.flush()
            assert "written now" in log_file.read_text(encoding="utf-8")
