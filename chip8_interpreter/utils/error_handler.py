"""
Error reporting and logging setup for the CHIP-8 Interpreter.

Every failure the interpreter surfaces goes through the shared
`error_handler`: CPU faults that stop the execution loop, ROM files that
cannot be read, bad settings and failed snapshots. Each one is logged under
the "Chip8Interpreter" logger and kept as an error record, so the runner can
report what stopped a program after the worker thread has exited.
"""

import logging
import sys
import os
import traceback
import datetime
import threading
from collections import deque
from typing import Dict, List, Any, Optional
from enum import Enum, auto
from functools import wraps

from ..constants import LOGGER_NAME, LOG_FORMAT

# Root of the interpreter's logger hierarchy
logger = logging.getLogger(LOGGER_NAME)

class ErrorLevel(Enum):
    """Error severity levels, named after their logging levels."""
    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()

class ErrorCategory(Enum):
    """Where an error came from."""
    SYSTEM = auto()
    CONFIGURATION = auto()
    INPUT = auto()
    HARDWARE = auto()
    DISPLAY = auto()
    UNKNOWN = auto()

class ErrorHandler:
    """
    Owns the interpreter's log handlers and a bounded history of error records.

    Records are plain dictionaries with the keys `timestamp`, `level`,
    `category`, `message`, `exception_type`, `traceback` and `context`.
    The execution thread and the host thread may both report errors, so the
    history is lock-guarded.
    """

    def __init__(self,
                log_file: Optional[str] = None,
                console_level: int = logging.INFO,
                file_level: int = logging.DEBUG,
                max_error_history: int = 100):
        """
        Initialize the error handler and install its log handlers.

        Args:
            log_file: Path to log file (None for console only)
            console_level: Logging level for console output
            file_level: Logging level for file output
            max_error_history: Number of error records to keep
        """
        self.log_file = None
        self.file_level = file_level
        self.error_history = deque(maxlen=max_error_history)
        self._lock = threading.Lock()

        # The logger passes everything; handlers do the filtering
        logger.handlers = []
        logger.setLevel(logging.DEBUG)

        self._console = logging.StreamHandler(sys.stdout)
        self._console.setLevel(console_level)
        self._console.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(self._console)

        self._file = None
        if log_file:
            self.set_log_file(log_file)

    def set_log_levels(self, console_level: int, file_level: Optional[int] = None) -> None:
        """
        Change the console (and optionally file) logging thresholds.

        Args:
            console_level: Logging level for console output
            file_level: Logging level for file output (None to keep current)
        """
        self._console.setLevel(console_level)
        if file_level is not None:
            self.file_level = file_level
            if self._file is not None:
                self._file.setLevel(file_level)

    def set_log_file(self, log_file: Optional[str]) -> None:
        """
        Send log output to a file as well as the console.

        Args:
            log_file: Path to log file (None to stop file logging)
        """
        if self._file is not None:
            logger.removeHandler(self._file)
            self._file.close()
            self._file = None

        self.log_file = log_file
        if not log_file:
            return

        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)

        self._file = logging.FileHandler(log_file)
        self._file.setLevel(self.file_level)
        self._file.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(self._file)
        logger.debug(f"Logging to {log_file}")

    def handle_error(self,
                  exception: Optional[Exception] = None,
                  message: Optional[str] = None,
                  level: ErrorLevel = ErrorLevel.ERROR,
                  category: ErrorCategory = ErrorCategory.UNKNOWN,
                  context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Log an error and add it to the history.

        Args:
            exception: Exception that caused the error, if any
            message: Message to log (defaults to the exception text)
            level: Error severity level
            category: Error category
            context: Extra details kept with the record

        Returns:
            The error record
        """
        if message is None:
            message = str(exception) if exception is not None else "Unknown error"

        record = {
            "timestamp": datetime.datetime.now().isoformat(),
            "level": level.name,
            "category": category.name,
            "message": message,
            "exception_type": type(exception).__name__ if exception is not None else None,
            "traceback": "".join(traceback.format_exception(
                type(exception), exception, exception.__traceback__))
                if exception is not None else None,
            "context": dict(context or {}),
        }

        logger.log(getattr(logging, level.name), f"[{category.name}] {message}")
        if record["traceback"]:
            logger.debug(record["traceback"].rstrip())

        with self._lock:
            self.error_history.append(record)

        return record

    def report_fault(self, exception: Exception, cpu_state: Dict[str, Any]) -> Dict[str, Any]:
        """
        Record a fault that stopped the execution loop.

        Args:
            exception: The interpreter fault
            cpu_state: CPU register snapshot taken when the fault was raised

        Returns:
            The error record, with the register snapshot as its context
        """
        where = ""
        if "PC" in cpu_state:
            where = f" (PC=${cpu_state['PC']:03X}, I=${cpu_state.get('I', 0):03X}, SP={cpu_state.get('SP', 0)})"
        return self.handle_error(exception=exception,
                                 message=f"{exception}{where}",
                                 category=ErrorCategory.HARDWARE,
                                 context=cpu_state)

    def report_rom_failure(self, rom_path: str, exception: OSError) -> Dict[str, Any]:
        """
        Record a ROM file that could not be read.

        Args:
            rom_path: Path that was requested
            exception: The error raised while opening or reading it

        Returns:
            The error record
        """
        return self.handle_error(exception=exception,
                                 message=f"Cannot read ROM {rom_path}: {exception.strerror or exception}",
                                 category=ErrorCategory.INPUT,
                                 context={"rom_path": rom_path})

    def log_exception(self, exception: Exception,
                    message: Optional[str] = None,
                    category: ErrorCategory = ErrorCategory.UNKNOWN,
                    context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Record an exception at ERROR level."""
        return self.handle_error(exception=exception, message=message,
                                 category=category, context=context)

    def log_error(self, message: str,
                category: ErrorCategory = ErrorCategory.UNKNOWN,
                context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Record an error message."""
        return self.handle_error(message=message, category=category, context=context)

    def log_warning(self, message: str,
                  category: ErrorCategory = ErrorCategory.UNKNOWN,
                  context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Record a warning message."""
        return self.handle_error(message=message, level=ErrorLevel.WARNING,
                                 category=category, context=context)

    def get_error_history(self,
                         level: Optional[ErrorLevel] = None,
                         category: Optional[ErrorCategory] = None) -> List[Dict[str, Any]]:
        """
        Get error records, oldest first.

        Args:
            level: Only records of this level
            category: Only records of this category

        Returns:
            List of error records
        """
        with self._lock:
            records = list(self.error_history)

        return [r for r in records
                if (level is None or r["level"] == level.name)
                and (category is None or r["category"] == category.name)]

    def last_error(self, category: Optional[ErrorCategory] = None) -> Optional[Dict[str, Any]]:
        """
        Get the most recent error record.

        Args:
            category: Only consider records of this category

        Returns:
            Error record, or None if there is none
        """
        records = self.get_error_history(category=category)
        return records[-1] if records else None

    def clear_error_history(self) -> None:
        """Forget all error records."""
        with self._lock:
            self.error_history.clear()


# Global error handler instance
error_handler = ErrorHandler()

def error_boundary(category: ErrorCategory = ErrorCategory.UNKNOWN):
    """
    Decorator that records exceptions raised by the wrapped function.

    SYSTEM and HARDWARE errors are re-raised after being recorded. Errors in
    any other category are contained and the wrapped function returns None.

    Args:
        category: Error category for recorded exceptions

    Returns:
        Decorator function
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                error_handler.log_exception(e, message=f"{func.__name__} failed: {e}",
                                            category=category,
                                            context={"function": func.__name__})
                if category in (ErrorCategory.SYSTEM, ErrorCategory.HARDWARE):
                    raise
                return None

        return wrapper
    return decorator
