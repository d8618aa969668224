"""Logging setup: console output plus daily rotated log files."""

import logging
import logging.handlers
import sys
from pathlib import Path

from mjbot.config import LoggingConfig

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _prune_logs(log_dir: Path, max_total_mb: int) -> None:
    """Delete the oldest rotated files until the directory fits the size cap."""
    files = sorted(
        (p for p in log_dir.glob("mjbot.log*") if p.is_file()),
        key=lambda p: p.stat().st_mtime,
    )
    limit = max_total_mb * 1024 * 1024
    total = sum(p.stat().st_size for p in files)
    # Never delete the active log file (newest)
    for path in files[:-1]:
        if total <= limit:
            break
        total -= path.stat().st_size
        path.unlink(missing_ok=True)


def setup_logging(config: LoggingConfig) -> None:
    """Configure the "mjbot" logger hierarchy.

    Console handler uses the configured level; the file handler always
    captures DEBUG and rotates at midnight, keeping `keep_days` files.
    """
    log_dir = Path(config.dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    _prune_logs(log_dir, config.max_total_mb)

    formatter = logging.Formatter(_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(config.level.upper())
    console.setFormatter(formatter)

    file_handler = logging.handlers.TimedRotatingFileHandler(
        log_dir / "mjbot.log",
        when="midnight",
        backupCount=config.keep_days,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    root = logging.getLogger("mjbot")
    root.setLevel(logging.DEBUG)
    root.handlers.clear()
    root.addHandler(console)
    root.addHandler(file_handler)

    # Third-party noise stays at WARNING unless explicitly debugging
    for name in ("httpx", "websockets", "uvicorn.access"):
        logging.getLogger(name).setLevel(logging.WARNING)
