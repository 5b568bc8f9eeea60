import logging
from pathlib import Path

import pytest

from libman.config import Settings
from libman.core.logging.builder import make_dict_config, setup_logging
from libman.core.logging.formatters import ColorFormatter, JsonFormatter


def test_stdout_config_has_console_and_error_console():
    config = make_dict_config(Settings(LOG_TO_STDOUT=True, LOG_FORMAT="json", LOG_LEVEL="info"))

    assert set(config["handlers"]) == {"console", "error_console"}
    assert config["handlers"]["console"]["formatter"] == "json"
    assert config["handlers"]["console"]["level"] == "INFO"
    assert config["formatters"]["json"]["()"] is JsonFormatter
    assert config["loggers"][""]["handlers"] == ["console", "error_console"]


def test_file_config_uses_log_dir(tmp_path: Path):
    config = make_dict_config(Settings(LOG_TO_STDOUT=False, LOG_DIR=tmp_path, LOG_FORMAT="text"))

    handlers = config["handlers"]
    assert set(handlers) == {"console", "file", "error_file"}
    assert handlers["file"]["filename"] == str(tmp_path / "app.log")
    assert handlers["error_file"]["filename"] == str(tmp_path / "errors.log")
    assert handlers["error_file"]["level"] == "ERROR"
    assert handlers["console"]["formatter"] == "standard"
    assert config["formatters"]["standard"]["()"] is ColorFormatter


def test_every_handler_runs_request_id_and_redact_filters(tmp_path: Path):
    config = make_dict_config(Settings(LOG_TO_STDOUT=False, LOG_DIR=tmp_path))

    for handler in config["handlers"].values():
        assert handler["filters"] == ["request_id", "redact"]


@pytest.mark.parametrize("enabled, level", [(True, "INFO"), (False, "WARNING")])
def test_sql_logging_toggle(enabled: bool, level: str):
    config = make_dict_config(Settings(ENABLE_SQL_LOGGING=enabled))

    assert config["loggers"]["sqlalchemy.engine"]["level"] == level


def test_setup_logging_creates_log_dir_and_writes(tmp_path: Path):
    log_dir = tmp_path / "logs"
    try:
        setup_logging(Settings(LOG_TO_STDOUT=False, LOG_DIR=log_dir, LOG_FORMAT="json", LOG_LEVEL="INFO"))
        logging.getLogger("libman.test").error("disk full", extra={"model": "Book"})
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert (log_dir / "app.log").exists()
        assert "disk full" in (log_dir / "errors.log").read_text(encoding="utf-8")
    finally:
        # back to the session configuration installed by conftest
        setup_logging(Settings(LOG_TO_STDOUT=True, LOG_FORMAT="text", LOG_LEVEL="DEBUG"))
