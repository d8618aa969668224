"""Tests for logging setup."""

import logging
import os
from pathlib import Path

from mjbot.config import LoggingConfig
from mjbot.log import setup_logging


def test_setup_logging_writes_file(tmp_path: Path) -> None:
    config = LoggingConfig(level="WARNING", dir=str(tmp_path / "logs"))

    setup_logging(config)
    logging.getLogger("mjbot.test").debug("debug line")
    for handler in logging.getLogger("mjbot").handlers:
        handler.flush()

    log_file = tmp_path / "logs" / "mjbot.log"
    assert "debug line" in log_file.read_text(encoding="utf-8")
    console = logging.getLogger("mjbot").handlers[0]
    assert console.level == logging.WARNING


def test_old_logs_pruned_over_cap(tmp_path: Path) -> None:
    log_dir = tmp_path / "logs"
    log_dir.mkdir()
    old = log_dir / "mjbot.log.2024-01-01"
    old.write_bytes(b"x" * (2 * 1024 * 1024))
    os.utime(old, (1, 1))
    current = log_dir / "mjbot.log"
    current.write_text("current\n")

    setup_logging(LoggingConfig(dir=str(log_dir), max_total_mb=1))

    assert not old.exists()
    assert current.exists()
