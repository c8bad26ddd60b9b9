"""
Logging Configuration for ripcheck

All modules log through children of the 'ripcheck' logger. setup_logging()
attaches the handlers once per process:

- console: stderr, colored, WARNING by default (reports go to stdout)
- ripcheck.log: rotating, everything from DEBUG
- errors_<session>.log: warnings and errors of this run, created on first use
"""

import os
import sys
import logging
import logging.handlers
from datetime import datetime
from pathlib import Path
from typing import Optional


PACKAGE_LOGGER = 'ripcheck'

CONSOLE_FORMAT = '%(asctime)s %(levelname)-8s %(name)s: %(message)s'
FILE_FORMAT = '%(asctime)s %(levelname)-8s %(threadName)s %(name)s:%(lineno)d %(message)s'

# Components that should not inherit DEBUG from the package logger
COMPONENT_LEVELS = {
    'main': logging.INFO,
    'batch': logging.INFO,
    'scheduler': logging.INFO,
    'repair': logging.INFO,
    'scanner': logging.INFO,
    'catalog': logging.INFO,
    'file_ops': logging.INFO,
}

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


class ColoredFormatter(logging.Formatter):
    """Paints the level name; the record itself is left unchanged"""

    LEVEL_COLORS = {
        logging.DEBUG: '\033[36m',
        logging.INFO: '\033[32m',
        logging.WARNING: '\033[33m',
        logging.ERROR: '\033[31m',
        logging.CRITICAL: '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record):
        color = self.LEVEL_COLORS.get(record.levelno)
        if color is None:
            return super().format(record)
        plain = record.levelname
        record.levelname = f"{color}{plain}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = plain


class RipCheckLogger:
    """Owns the handlers of the package logger and a few structured helpers"""

    def __init__(self, log_dir: Optional[str] = None, console_level: str = "WARNING",
                 file_level: str = "DEBUG", enable_console: bool = True,
                 enable_files: bool = True, color: bool = True):
        """
        Args:
            log_dir: Directory for log files (default: ~/.ripcheck/logs)
            console_level: Level name for the stderr handler
            file_level: Level name for ripcheck.log
            enable_console: Attach the stderr handler
            enable_files: Attach the file handlers
            color: Color the level names on the console
        """
        self.log_dir = log_dir or os.path.join(os.path.expanduser('~'), '.ripcheck', 'logs')
        self.console_level = logging.getLevelName(console_level.upper())
        self.file_level = logging.getLevelName(file_level.upper())
        self.enable_console = enable_console
        self.enable_files = enable_files
        self.color = color

        package_logger = logging.getLogger(PACKAGE_LOGGER)
        package_logger.setLevel(logging.DEBUG)
        self._reset_handlers(package_logger)

        if enable_console:
            package_logger.addHandler(self._console_handler())
        if enable_files:
            Path(self.log_dir).mkdir(parents=True, exist_ok=True)
            for handler in self._file_handlers():
                package_logger.addHandler(handler)

        for component, level in COMPONENT_LEVELS.items():
            logging.getLogger(f'{PACKAGE_LOGGER}.{component}').setLevel(level)

    @staticmethod
    def _reset_handlers(logger: logging.Logger):
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

    def _console_handler(self) -> logging.Handler:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(self.console_level)
        formatter = ColoredFormatter if self.color else logging.Formatter
        handler.setFormatter(formatter(CONSOLE_FORMAT, datefmt='%H:%M:%S'))
        return handler

    def _file_handlers(self):
        formatter = logging.Formatter(FILE_FORMAT)

        main_handler = logging.handlers.RotatingFileHandler(
            os.path.join(self.log_dir, 'ripcheck.log'),
            maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS, encoding='utf-8'
        )
        main_handler.setLevel(self.file_level)
        main_handler.setFormatter(formatter)

        session = datetime.now().strftime('%Y%m%d_%H%M%S')
        error_handler = logging.FileHandler(
            os.path.join(self.log_dir, f'errors_{session}.log'), encoding='utf-8', delay=True
        )
        error_handler.setLevel(logging.WARNING)
        error_handler.setFormatter(formatter)

        return [main_handler, error_handler]

    def log_batch_start(self, name: str, item_count: int, workers: int):
        get_logger('batch').info(f"{name}: {item_count} tracks queued for {workers} workers")

    def log_batch_complete(self, name: str, total: int, failed: int, total_time: float):
        per_track = total_time / total if total else 0.0
        get_logger('batch').info(
            f"{name}: {total - failed}/{total} tracks without errors in {total_time:.1f}s "
            f"({per_track:.2f}s per track)"
        )

    def log_file_operation(self, operation: str, source: str, target: str = None,
                           success: bool = True, error: str = None):
        """One line per changed file; failures go to the error log as well"""
        logger = get_logger('file_ops')
        name = os.path.basename(source)
        if target:
            name = f"{name} -> {os.path.basename(target)}"
        if success:
            logger.info(f"{operation}: {name}")
        else:
            logger.error(f"{operation} failed: {name}" + (f" ({error})" if error else ""))


_app_logger: Optional[RipCheckLogger] = None


def setup_logging(log_dir: Optional[str] = None, console_level: str = "WARNING",
                  file_level: str = "DEBUG", enable_console: bool = True,
                  enable_files: bool = True, color: bool = True) -> RipCheckLogger:
    """(Re)configure the package logger; returns the shared RipCheckLogger"""
    global _app_logger
    _app_logger = RipCheckLogger(log_dir, console_level, file_level,
                                 enable_console, enable_files, color)
    return _app_logger


def get_logger(name: str = 'main') -> logging.Logger:
    """Component logger; does not install handlers"""
    return logging.getLogger(f'{PACKAGE_LOGGER}.{name}')


def get_app_logger() -> RipCheckLogger:
    """Shared RipCheckLogger, configured console-only on first use"""
    if _app_logger is None:
        return setup_logging(enable_files=False)
    return _app_logger
