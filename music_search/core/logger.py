"""
Logging configuration for music-search.

This module sets up the logging system with up to four outputs:
    - Console: colored, compact messages (INFO and above, DEBUG when verbose)
    - log_full_<ts>.log: Complete log of all events (DEBUG and above)
    - log_errors_<ts>.log: Only ERROR and CRITICAL level messages
    - dropped_items_<ts>.log: Vendor items discarded by the response normalizers

File outputs are only created when a log directory is given. Library code
never configures logging itself; it only obtains loggers through get_logger().

Usage:
    from music_search.core.logger import setup_logging, get_logger

    setup_logging(Path("logs"))  # Call once at startup
    logger = get_logger(__name__)

    logger.info("Searching NetEase")
    log_dropped_item(logger, "qqmusic", "song", "missing 'name'", raw_item)
"""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, TextIO

import colorama
from colorama import Back, Fore, Style


# Log file name prefixes (created in the log directory)
LOG_FULL_PREFIX = "log_full"
LOG_ERRORS_PREFIX = "log_errors"
DROPPED_ITEMS_PREFIX = "dropped_items"

# Log format for file output (detailed with timestamp)
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Log format for console output
CONSOLE_LOG_FORMAT = "%(levelname)s: %(message)s"

# Third-party loggers that are too chatty at DEBUG
EXTERNAL_LOGGERS = ["aiohttp", "aiohttp.access", "aiohttp.client", "asyncio", "charset_normalizer"]


class ColoredConsoleFormatter(logging.Formatter):
    """
    Formatter that colors the level name using colorama.

    Colors:
        - DEBUG: Cyan
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Bright red on white
    """

    LEVEL_COLORS = {
        logging.DEBUG: Fore.CYAN,
        logging.INFO: Fore.GREEN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Back.WHITE + Style.BRIGHT,
    }

    def __init__(self, fmt: str = CONSOLE_LOG_FORMAT, use_colors: bool = True) -> None:
        super().__init__(fmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        """
        Format the log record with a colored level name.

        The original record is left untouched so that file handlers
        attached to the same logger still see the plain level name.
        """
        if not self.use_colors:
            return super().format(record)

        color = self.LEVEL_COLORS.get(record.levelno, Fore.WHITE)
        record_copy = logging.makeLogRecord(record.__dict__)
        record_copy.levelname = f"{color}{record.levelname}{Style.RESET_ALL}"
        return super().format(record_copy)


class ErrorOnlyFilter(logging.Filter):
    """Filter that only allows ERROR and CRITICAL level records."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


class DroppedItemHandler(logging.Handler):
    """
    Handler that writes normalizer-dropped items to a report file.

    The response normalizers never abort a whole search because one item is
    malformed: they drop the item and log a warning. This handler collects
    those warnings in a dedicated file, one block per item:

        [qqmusic] song: missing required field 'name'
        {"id": 1, "mid": "abc"}

    The handler only reacts to records carrying the 'dropped_item_source'
    extra field (see log_dropped_item()). Everything else is ignored.

    Attributes:
        report_path: Path to the dropped_items log file.
        report_file: Open file handle, or None until open() is called.
    """

    def __init__(self, report_path: Path) -> None:
        super().__init__()
        self.report_path = report_path
        self.report_file: TextIO | None = None

    def open(self) -> None:
        """Open the report file for writing (overwrites existing content)."""
        self.report_file = open(self.report_path, "w", encoding="utf-8")

    def emit(self, record: logging.LogRecord) -> None:
        if not hasattr(record, "dropped_item_source"):
            return

        if self.report_file is None:
            return

        try:
            source = getattr(record, "dropped_item_source", "unknown")
            kind = getattr(record, "dropped_item_kind", "item")
            reason = getattr(record, "dropped_item_reason", "")
            raw = getattr(record, "dropped_item_raw", "")

            self.report_file.write(f"[{source}] {kind}: {reason}\n")
            self.report_file.write(f"{raw}\n\n")
            self.report_file.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        """Close the report file handle. Safe to call multiple times."""
        if self.report_file is not None:
            self.report_file.close()
            self.report_file = None
        super().close()


def setup_logging(
    log_dir: Path | None = None,
    verbose: bool = False,
    use_colors: bool = True,
    stream: TextIO | None = None
) -> None:
    """
    Configure the logging system for the application.

    This function should be called ONCE at application startup (the CLI
    does it right after loading the configuration).

    Args:
        log_dir: Directory where log files will be created. When None,
                 only the console handler is installed.
        verbose: If True, the console shows DEBUG messages as well.
        use_colors: Disable to get plain console output (e.g. when piping).
        stream: Console stream, defaults to sys.stderr.

    Behavior:
        1. Configure root logger level to DEBUG and clear existing handlers
        2. Add the colored console handler (INFO, or DEBUG when verbose)
        3. When log_dir is given, create it and add the full log, error log
           and dropped item handlers with a per-run timestamp
        4. Raise noisy third-party loggers to WARNING
    """
    colorama.init()

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(ColoredConsoleFormatter(use_colors=use_colors))
    root_logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")

        full_handler = logging.FileHandler(
            log_dir / f"{LOG_FULL_PREFIX}_{timestamp}.log", mode="w", encoding="utf-8"
        )
        full_handler.setLevel(logging.DEBUG)
        full_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
        root_logger.addHandler(full_handler)

        error_handler = logging.FileHandler(
            log_dir / f"{LOG_ERRORS_PREFIX}_{timestamp}.log", mode="w", encoding="utf-8"
        )
        error_handler.setLevel(logging.DEBUG)  # Filter handles the level restriction
        error_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
        error_handler.addFilter(ErrorOnlyFilter())
        root_logger.addHandler(error_handler)

        dropped_handler = DroppedItemHandler(log_dir / f"{DROPPED_ITEMS_PREFIX}_{timestamp}.log")
        dropped_handler.open()
        root_logger.addHandler(dropped_handler)

    for name in EXTERNAL_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def shutdown_logging() -> None:
    """Flush and close every handler attached to the root logger."""
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        handler.flush()
        handler.close()
        root_logger.removeHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The logger name, typically __name__ of the calling module.

    Returns:
        logging.Logger: A logger in the 'music_search.*' hierarchy.
    """
    return logging.getLogger(name)


def log_dropped_item(
    logger: logging.Logger,
    source: str,
    kind: str,
    reason: str,
    raw: Any = None
) -> None:
    """
    Log a vendor item that a normalizer discarded.

    Uses the extra fields recognized by DroppedItemHandler so the item
    also lands in the dropped_items report when file logging is enabled.

    Args:
        logger: Logger of the calling normalizer module.
        source: Vendor name ("netease" or "qqmusic").
        kind: Item kind ("song", "album", "playlist", ...).
        reason: Why the item could not be parsed.
        raw: The raw JSON item, serialized into the report.
    """
    try:
        raw_text = json.dumps(raw, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        raw_text = repr(raw)

    logger.warning(
        f"Dropped {source} {kind}: {reason}",
        extra={
            "dropped_item_source": source,
            "dropped_item_kind": kind,
            "dropped_item_reason": reason,
            "dropped_item_raw": raw_text,
        }
    )
