"""
Logging for shiftplan
=====================
One ``shiftplan`` logger tree with a console handler and an optional
size-rotated file handler.

Levels in use:
    TRACE (5)     call tracing of scoring helpers
    DEBUG         counts, windows, passing rule checks
    INFO          workflow progress (request created, swap approved, export written)
    WARNING       rejected operations, failing rule checks, understaffing
    ERROR         storage and mail delivery failures
"""
import functools
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Optional

ROOT_LOGGER = "shiftplan"
DEFAULT_LOG_FILE = "logs/shiftplan.log"

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

CONSOLE_FORMAT = "[%(asctime)s] %(levelname)-7s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"


class ConsoleFormatter(logging.Formatter):
    """Colours the whole line by level when writing to a terminal."""

    LEVEL_COLORS = {
        "TRACE": "90",
        "DEBUG": "36",
        "INFO": "32",
        "WARNING": "33",
        "ERROR": "31",
        "CRITICAL": "35",
    }

    def __init__(self, stream=None):
        super().__init__(CONSOLE_FORMAT, datefmt="%H:%M:%S")
        self.use_color = bool(getattr(stream, "isatty", lambda: False)())

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        code = self.LEVEL_COLORS.get(record.levelname)
        return f"\033[{code}m{line}\033[0m" if self.use_color and code else line


def _level(name: Optional[str], default: int = logging.INFO) -> int:
    if not name:
        return default
    if name.upper() == "TRACE":
        return TRACE
    return getattr(logging, name.upper(), default)


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(ConsoleFormatter(sys.stderr))
    return handler


def _file_handler(path: Path, level: int, max_bytes: int, backup_count: int) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = DEFAULT_LOG_FILE,
    console_level: Optional[str] = None,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
) -> logging.Logger:
    """
    (Re)configure the ``shiftplan`` logger.

    Args:
        level: Threshold for the file handler
        log_file: Rotating log file; None logs to the console only
        console_level: Threshold for the console (defaults to ``level``)
        max_bytes: File size that triggers rotation
        backup_count: Rotated files to keep

    Returns:
        The ``shiftplan`` logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    # Handlers do the filtering
    logger.setLevel(TRACE)

    file_level = _level(level)
    console = _level(console_level or level)
    logger.addHandler(_console_handler(console))
    if log_file:
        logger.addHandler(_file_handler(Path(log_file), file_level, max_bytes, backup_count))

    logger.debug(
        f"Logging ready: console={logging.getLevelName(console)} "
        f"file={logging.getLevelName(file_level) if log_file else 'off'}"
    )
    return logger


def get_logger(name: str) -> logging.Logger:
    """Module logger, e.g. ``get_logger("shiftplan.analysis.fairness")``."""
    return logging.getLogger(name)


def _describe_call(func_name: str, args: tuple, kwargs: dict) -> str:
    parts = [repr(a)[:50] for a in args[:3]]
    parts += [f"{k}={repr(v)[:30]}" for k, v in list(kwargs.items())[:3]]
    return f"{func_name}({', '.join(parts)})"


def log_function_call(func: Callable) -> Callable:
    """
    Trace entry and result of ``func`` at TRACE level; exceptions are
    logged at ERROR and re-raised.
    """
    logger = logging.getLogger(func.__module__)

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        name = func.__name__
        logger.log(TRACE, f"→ {_describe_call(name, args, kwargs)}")
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            logger.error(f"✖ {name} raised: {type(e).__name__}: {e}")
            raise
        logger.log(TRACE, f"← {name} returned: {repr(result)[:100]}")
        return result

    return wrapper


def log_check(logger: logging.Logger, name: str, passed: bool, details: str = "", level: int = logging.DEBUG):
    """
    Log one business-rule check, e.g. ``same_date`` or ``min_staffing[early]``.

    Passing checks go out at ``level``, failing ones always as WARNING.
    """
    text = f"[{'✓' if passed else '✗'}] {name}"
    if details:
        text = f"{text} ({details})"
    logger.log(level if passed else logging.WARNING, text)


class WorkflowLogger:
    """
    Readable trail for multi-step workflows such as a swap request or a
    vacation approval: a banner per phase, steps, and nested detail blocks.
    """

    def __init__(self, name: str = "shiftplan.workflow"):
        self.logger = logging.getLogger(name)
        self.indent = 0

    @property
    def _pad(self) -> str:
        return "  " * self.indent

    def phase(self, name: str):
        self.logger.info(f"==== {name} ====")

    def step(self, description: str):
        self.logger.info(f"{self._pad}▸ {description}")

    def detail(self, key: str, value: Any):
        self.logger.debug(f"{self._pad}  {key}: {value}")

    def check(self, name: str, passed: bool, details: str = ""):
        log_check(self.logger, name, passed, details)

    def enter(self, context: str):
        self.logger.debug(f"{self._pad}┌─ {context}")
        self.indent += 1

    def exit(self, context: str = ""):
        self.indent = max(0, self.indent - 1)
        if context:
            self.logger.debug(f"{self._pad}└─ {context}")


def init_logging(level: str = "INFO", log_file: Optional[str] = DEFAULT_LOG_FILE) -> logging.Logger:
    """Entry point used by the CLI and the Streamlit app."""
    return setup_logging(level=level, log_file=log_file)
