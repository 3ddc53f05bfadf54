"""Tests for JSON log output and logger namespacing."""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys

import pytest

from vision100.config import BaseConfig
from vision100.logging_config import JSONFormatter, get_logger, setup_logging


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="vision100.services.goals",
        level=logging.INFO,
        pathname="goals.py",
        lineno=12,
        msg="Replaced goals",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_emits_core_fields():
    entry = json.loads(JSONFormatter().format(make_record()))

    assert entry["level"] == "INFO"
    assert entry["logger"] == "vision100.services.goals"
    assert entry["message"] == "Replaced goals"
    assert entry["line"] == 12
    assert "timestamp" in entry
    assert "extra" not in entry


def test_formatter_nests_extra_fields():
    entry = json.loads(JSONFormatter().format(make_record(username="alice", count=3)))

    assert entry["extra"] == {"username": "alice", "count": 3}


def test_formatter_includes_exception():
    try:
        raise RuntimeError("table service unreachable")
    except RuntimeError:
        record = make_record()
        record.exc_info = sys.exc_info()

    entry = json.loads(JSONFormatter().format(record))

    assert entry["exception"]["type"] == "RuntimeError"
    assert "unreachable" in entry["exception"]["message"]


def test_setup_logging_writes_json_file(tmp_path):
    config = BaseConfig()
    config.DATA_DIR = tmp_path

    logger = setup_logging(config)
    get_logger("services.goals").warning("Goal sync failed", extra={"username": "alice"})

    assert logger.name == "vision100"
    assert len(logger.handlers) == 2
    lines = (tmp_path / "logs" / "vision100.log").read_text(encoding="utf-8").splitlines()
    entries = [json.loads(line) for line in lines if line.strip()]
    assert entries[0]["message"] == "Logging initialized"
    assert entries[0]["extra"]["storage_backend"] == "sqlite"
    assert entries[-1]["extra"] == {"username": "alice"}


def test_get_logger_prefixes_once():
    assert get_logger("client.sync").name == "vision100.client.sync"
    assert get_logger("vision100.client.sync").name == "vision100.client.sync"
    assert get_logger("vision100").name == "vision100"


@pytest.mark.parametrize("dev_mode,level", [(True, logging.INFO), (False, logging.WARNING)])
def test_console_level_follows_dev_mode(tmp_path, dev_mode, level):
    config = BaseConfig()
    config.DATA_DIR = tmp_path
    config.DEV_MODE = dev_mode

    logger = setup_logging(config)

    (console,) = [
        handler
        for handler in logger.handlers
        if not isinstance(handler, logging.handlers.RotatingFileHandler)
    ]
    assert console.level == level
