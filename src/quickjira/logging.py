"""Logging for quickjira.

Two log files live under ~/.quickjira/logs:

- quickjira.log: application log, level from ``[logging] level``
- performance.log: one ``op=... | duration_ms=...`` line per timed call

Console output goes to stderr at ``[logging] console_level`` (debug with
``--verbose``). Handlers are attached by configure_logging(); library users
that never call it get plain ``logging`` behaviour.
"""

import logging
import sys
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from .config import QUICKJIRA_HOME, LoggingConfig, load_config

LOGS_DIR = QUICKJIRA_HOME / "logs"
APP_LOG = LOGS_DIR / "quickjira.log"
PERFORMANCE_LOG = LOGS_DIR / "performance.log"

ROOT_LOGGER = "quickjira"
PERFORMANCE_LOGGER = "quickjira.performance"

MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 3

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def get_logger(name: str) -> logging.Logger:
    """Logger for a quickjira module, e.g. get_logger("jira") -> "quickjira.jira"."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def parse_log_level(value: str) -> int:
    return LEVELS.get(value.lower(), logging.INFO)


def _rotating_handler(path: Path, level: int, fmt: str) -> RotatingFileHandler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def configure_logging(verbose: bool = False, config: LoggingConfig | None = None) -> None:
    """Attach the file and console handlers, and the performance log file.

    Safe to call more than once; handlers are only added the first time, but
    the console level is updated on every call.
    """
    if config is None:
        config = load_config().logging

    console_level = logging.DEBUG if verbose else parse_log_level(config.console_level)
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG)

    console = next(
        (h for h in logger.handlers if getattr(h, "name", None) == "quickjira-console"), None
    )
    if console is not None:
        console.setLevel(console_level)
        return

    logger.addHandler(
        _rotating_handler(
            APP_LOG,
            parse_log_level(config.level),
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        )
    )
    console = logging.StreamHandler(sys.stderr)
    console.set_name("quickjira-console")
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logger.addHandler(console)

    perf_logger = get_performance_logger()
    perf_logger.setLevel(logging.INFO)
    perf_logger.propagate = False
    perf_logger.addHandler(
        _rotating_handler(PERFORMANCE_LOG, logging.INFO, "%(asctime)s | %(message)s")
    )


def get_performance_logger() -> logging.Logger:
    """The performance logger; silent until configure_logging() attaches performance.log."""
    return logging.getLogger(PERFORMANCE_LOGGER)


def log_performance(operation: str, duration_ms: float, **metrics: Any) -> None:
    parts = [f"op={operation}", f"duration_ms={duration_ms:.2f}"]
    parts.extend(f"{key}={value}" for key, value in metrics.items())
    get_performance_logger().info(" | ".join(parts))


class PerformanceTimer:
    """Time a block and write one line to the performance log.

    Usage:
        with PerformanceTimer("jira_request", path="/rest/api/3/myself") as timer:
            ...
            timer.add_metric("status", 200)

    A block that raises is still logged, with ``error=<ExceptionName>``.
    """

    def __init__(self, operation: str, **metrics: Any):
        self.operation = operation
        self.metrics = metrics
        self._started: float | None = None

    def __enter__(self) -> "PerformanceTimer":
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._started is None:
            return
        if exc_type is not None:
            self.metrics["error"] = exc_type.__name__
        log_performance(self.operation, (time.perf_counter() - self._started) * 1000, **self.metrics)

    def add_metric(self, key: str, value: Any) -> None:
        self.metrics[key] = value
