"""
Validation and error handling for the buildwatch package.

This module provides input validation, the error taxonomy of the watch
coordinator, and consistent error reporting across the application.
"""

from .exceptions import (
    BuildError,
    BuildWatchError,
    ConfigLoadError,
    ErrorSeverity,
    ValidationError,
    WatchPrimitiveError,
    handle_cli_error,
    handle_config_error,
    handle_error,
)
from .error_handler import TaskErrorContext, supervise_task
from .validators import (
    validate_boolean,
    validate_input_spec,
    validate_non_empty_string,
    validate_positive_integer,
    validate_string_list,
)

__all__ = [
    # Error taxonomy
    "BuildError",
    "BuildWatchError",
    "ConfigLoadError",
    "ErrorSeverity",
    "ValidationError",
    "WatchPrimitiveError",
    # Handlers
    "handle_cli_error",
    "handle_config_error",
    "handle_error",
    "TaskErrorContext",
    "supervise_task",
    # Validators
    "validate_boolean",
    "validate_input_spec",
    "validate_non_empty_string",
    "validate_positive_integer",
    "validate_string_list",
]
