"""
Logging configuration for spot-library.

This module sets up the logging system with multiple outputs:
    - Console: Real-time output with tqdm-compatible formatting
    - log_full.log: Complete log of all events (DEBUG and above)
    - log_errors.log: Only ERROR and CRITICAL level messages
    - playlist_failures.log: Playlists whose tracks could not be aggregated

The logging system follows the principle: everything to screen is also saved
to file, then filtered into specialized files.

Log File Locations:
    All log files are created in <output directory>/logs, with a timestamp
    in the file name so every run gets its own set.

Usage:
    from spot_library.core.logger import setup_logging, get_logger

    setup_logging(output_dir)  # Call once at startup
    logger = get_logger(__name__)  # Get logger for each module

    logger.info("Starting aggregation")
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

from tqdm import tqdm


# Log file name prefixes (created in output_dir/logs)
LOG_FULL_PREFIX = "log_full"
LOG_ERRORS_PREFIX = "log_errors"
PLAYLIST_FAILURES_PREFIX = "playlist_failures"

# Log format for file output (detailed with timestamp)
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are too chatty at DEBUG
_NOISY_LOGGERS = ("spotipy", "urllib3", "requests")


class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    BOLD = "\033[1m"


class ColoredConsoleFormatter(logging.Formatter):
    """
    Formatter that colors the level name on console output.

    Colors:
        - DEBUG: Blue
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Bold Red
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.BLUE,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        return f"{color}{record.levelname}{Colors.RESET}: {record.getMessage()}"


class TqdmLoggingHandler(logging.Handler):
    """
    Logging handler that writes to console without breaking progress bars.

    Progress bars redraw themselves in place on stderr. Plain writes to the
    same stream corrupt the bar, so records go through tqdm.write(), which
    prints above any active bar.
    """

    def __init__(self, stream: TextIO = sys.stderr) -> None:
        super().__init__()
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            tqdm.write(msg, file=self.stream)
        except Exception:
            self.handleError(record)


class PlaylistFailureHandler(logging.Handler):
    """
    Handler that captures playlist aggregation failures in a report file.

    Only records logged through log_playlist_failure() carry the
    'failed_playlist_id' extra field; everything else is ignored. The report
    is human-readable:

        Road Trip Mix
        37i9dQZF1DXcBWIGoYBM5M (network)
        Failed to fetch playlist items: read timed out

    Attributes:
        report_path: Path to the playlist_failures log file.
        report_file: Open file handle, or None before open() / after close().
    """

    def __init__(self, report_path: Path) -> None:
        super().__init__()
        self.report_path = report_path
        self.report_file: TextIO | None = None

    def open(self) -> None:
        """Open the report file for writing (overwrites existing content)."""
        self.report_file = open(self.report_path, "w", encoding="utf-8")

    def emit(self, record: logging.LogRecord) -> None:
        if not hasattr(record, "failed_playlist_id"):
            return

        if self.report_file is None:
            return

        try:
            name = getattr(record, "failed_playlist_name", "Unknown")
            playlist_id = getattr(record, "failed_playlist_id")
            kind = getattr(record, "failed_playlist_error_kind", "error")
            reason = getattr(record, "failed_playlist_reason", "")

            self.report_file.write(f"{name}\n")
            self.report_file.write(f"{playlist_id} ({kind})\n")
            self.report_file.write(f"{reason}\n\n")
            self.report_file.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        """Close the report file handle. Safe to call multiple times."""
        if self.report_file is not None:
            self.report_file.close()
            self.report_file = None
        super().close()


class ErrorOnlyFilter(logging.Filter):
    """Filter that only allows ERROR and CRITICAL level records."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def setup_logging(output_dir: Path, verbose: bool = False) -> None:
    """
    Configure the logging system for the application.

    This function should be called ONCE at application startup, after
    the configuration is loaded but before any other operations.

    Args:
        output_dir: Directory where log files will be created.
                    Logs are stored in a 'logs' subdirectory.
        verbose: If True, the console shows DEBUG records too.

    Behavior:
        1. Create output_dir/logs if it doesn't exist
        2. Generate timestamp for this run's log files
        3. Reset the root logger and set it to DEBUG
        4. Console handler (TqdmLoggingHandler, colored, INFO or DEBUG)
        5. Full log file handler (DEBUG)
        6. Error log file handler (ERROR+ via ErrorOnlyFilter)
        7. Playlist failure report handler
        8. Lower third-party HTTP loggers to WARNING

    Thread Safety:
        This function is NOT thread-safe. Call it once from the main
        thread before starting any worker threads.
    """
    logs_dir = output_dir / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = TqdmLoggingHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(ColoredConsoleFormatter())
    root_logger.addHandler(console_handler)

    file_formatter = logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT)

    full_handler = logging.FileHandler(
        logs_dir / f"{LOG_FULL_PREFIX}_{timestamp}.log", mode="w", encoding="utf-8"
    )
    full_handler.setLevel(logging.DEBUG)
    full_handler.setFormatter(file_formatter)
    root_logger.addHandler(full_handler)

    error_handler = logging.FileHandler(
        logs_dir / f"{LOG_ERRORS_PREFIX}_{timestamp}.log", mode="w", encoding="utf-8"
    )
    error_handler.setLevel(logging.DEBUG)  # Filter handles the level restriction
    error_handler.setFormatter(file_formatter)
    error_handler.addFilter(ErrorOnlyFilter())
    root_logger.addHandler(error_handler)

    failures_handler = PlaylistFailureHandler(
        logs_dir / f"{PLAYLIST_FAILURES_PREFIX}_{timestamp}.log"
    )
    failures_handler.open()
    root_logger.addHandler(failures_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The logger name, typically __name__ of the calling module.

    Note:
        Loggers obtained before setup_logging() is called will have no
        handlers and will not produce output.
    """
    return logging.getLogger(name)


def log_playlist_failure(
    logger: logging.Logger,
    playlist_name: str,
    playlist_id: str,
    error_kind: str,
    reason: str
) -> None:
    """
    Log a playlist whose tracks could not be aggregated.

    Attaches the extra fields PlaylistFailureHandler writes to the
    playlist_failures report.

    Example:
        log_playlist_failure(
            logger,
            playlist_name="Road Trip Mix",
            playlist_id="37i9dQZF1DXcBWIGoYBM5M",
            error_kind="network",
            reason="Failed to fetch playlist items: read timed out"
        )
    """
    logger.error(
        f"Failed to aggregate playlist '{playlist_name}': {reason}",
        extra={
            "failed_playlist_id": playlist_id,
            "failed_playlist_name": playlist_name,
            "failed_playlist_error_kind": error_kind,
            "failed_playlist_reason": reason,
        }
    )


def format_summary_line(label: str, value: object) -> str:
    """Format one aligned line of a statistics block."""
    return f"{label + ':':<19}{Colors.CYAN}{value}{Colors.RESET}"


def shutdown_logging() -> None:
    """
    Flush, close and detach every root handler.

    Typically called in a finally block at application exit.
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        handler.flush()
        handler.close()
        root_logger.removeHandler(handler)
