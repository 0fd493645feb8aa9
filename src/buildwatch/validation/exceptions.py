"""
Exception types and error handling helpers.

This module defines the error taxonomy of the watch coordinator and the
helpers used to log errors consistently across the application.

Recoverable errors (`ConfigLoadError`, `BuildError`) are reported and the
process keeps watching. `WatchPrimitiveError` and anything else that escapes
are fatal and end in a non-zero exit.
"""

import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ValidationError(Exception):
    """
    Exception raised when validation fails.

    This is the exception type used throughout the configuration validators.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class BuildWatchError(Exception):
    """Base class for errors raised by the watch coordinator."""

    recoverable = True


class ConfigLoadError(BuildWatchError):
    """
    The configuration file is missing, unreadable or malformed.

    Recovered locally: the error is reported and the previously active watch
    session keeps running.
    """

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        super().__init__(message)
        self.path = str(path) if path is not None else None


class BuildError(BuildWatchError):
    """
    A bundle failed to build inside an active watch session.

    Reported, and the session keeps watching for the next change.
    """

    def __init__(self, message: str, bundle: Optional[str] = None,
                 command: Optional[str] = None, exit_code: Optional[int] = None):
        super().__init__(message)
        self.bundle = bundle
        self.command = command
        self.exit_code = exit_code


class WatchPrimitiveError(BuildWatchError):
    """
    A filesystem watch or build session primitive itself failed.

    Always fatal: the coordinator must not keep watching a dead handle.
    """

    recoverable = False


# Severities whose log record carries the traceback.
_TRACEBACK_SEVERITIES = (ErrorSeverity.DEBUG, ErrorSeverity.CRITICAL)


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Handle errors with consistent logging and optional re-raising.

    Args:
        error: The exception that occurred
        context: Context description of where the error occurred
        severity: Severity level for logging
        reraise: Whether to re-raise the exception after logging
        logger: Logger instance to use (defaults to module logger)
    """
    if isinstance(severity, str):
        severity = ErrorSeverity(severity.lower())
    log = getattr(logger or globals()["logger"], severity.value)

    message = f"Error in {context}: {error}"
    if severity in _TRACEBACK_SEVERITIES:
        log(message, exc_info=error)
    else:
        log(message)

    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    """Handle configuration-related errors."""
    handle_error(error, f"config {context}", **kwargs)


def handle_cli_error(error: Exception, context: str, **kwargs) -> None:
    """Handle CLI-related errors and exit."""
    exit_code = kwargs.pop('exit_code', 1)

    severity = kwargs.pop('severity', ErrorSeverity.ERROR)
    handle_error(error, f"CLI {context}", severity=severity, reraise=False, **kwargs)

    sys.exit(exit_code)
