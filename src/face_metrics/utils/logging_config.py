"""
Logging Configuration for the Face Metrics Tool

Provides centralized logging setup. Console output goes to stderr so that
reports written to stdout stay machine-readable.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, TextIO

try:
    import colorlog
    HAS_COLORLOG = True
except ImportError:
    colorlog = None
    HAS_COLORLOG = False

DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

LOG_COLORS = {
    'DEBUG': 'cyan',
    'INFO': 'green',
    'WARNING': 'yellow',
    'ERROR': 'red',
    'CRITICAL': 'red,bg_white',
}


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    enable_colors: bool = True,
    format_string: Optional[str] = None,
    stream: Optional[TextIO] = None
) -> None:
    """
    Setup logging configuration for the application.

    Args:
        level: Logging level (e.g., logging.INFO)
        log_file: Optional path to a rotating log file
        enable_colors: Whether to enable colored console output
        format_string: Custom format string for log messages
        stream: Console stream (stderr if None)
    """
    if format_string is None:
        format_string = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setLevel(level)

    if enable_colors and HAS_COLORLOG:
        console_formatter = colorlog.ColoredFormatter(
            '%(log_color)s' + format_string,
            datefmt=DATE_FORMAT,
            log_colors=LOG_COLORS,
        )
    else:
        console_formatter = logging.Formatter(format_string, datefmt=DATE_FORMAT)

    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(format_string, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)

    configure_module_logging()


def configure_module_logging() -> None:
    """Quiet down chatty third-party loggers."""
    logging.getLogger('cv2').setLevel(logging.WARNING)
    logging.getLogger('mediapipe').setLevel(logging.WARNING)
    logging.getLogger('absl').setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def level_from_name(name: str) -> int:
    """
    Resolve a level name such as "debug" or "WARNING".

    Raises:
        ValueError: If the name is not a standard logging level
    """
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level


def setup_cli_logging(
    verbose: bool = False,
    quiet: bool = False,
    log_file: Optional[str] = None,
    default_level: int = logging.INFO
) -> None:
    """
    Setup logging specifically for CLI usage.

    Args:
        verbose: Enable verbose (DEBUG) logging
        quiet: Enable quiet mode (ERROR only)
        log_file: Optional log file path
        default_level: Level used when neither flag is given
    """
    if quiet:
        level = logging.ERROR
        enable_colors = False
    elif verbose:
        level = logging.DEBUG
        enable_colors = True
    else:
        level = default_level
        enable_colors = True

    setup_logging(level=level, log_file=log_file, enable_colors=enable_colors)


class LoggingContext:
    """
    Context manager for temporary logging configuration.

    Useful for changing logging behavior for specific operations.
    """

    def __init__(self, level: int, logger_name: Optional[str] = None):
        """
        Initialize logging context.

        Args:
            level: Temporary logging level
            logger_name: Specific logger name (None for root logger)
        """
        self.level = level
        self.logger_name = logger_name
        self.original_level = None
        self.logger = None

    def __enter__(self):
        self.logger = logging.getLogger(self.logger_name)
        self.original_level = self.logger.level
        self.logger.setLevel(self.level)
        return self.logger

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.logger:
            self.logger.setLevel(self.original_level)
