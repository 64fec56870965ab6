#!/usr/bin/env python3
"""Centralized error handling for CLI operations"""

from typing import Optional, Callable, Any, TypeVar
from functools import wraps
import sys
import logging

logger = logging.getLogger(__name__)

# Type variable for decorator
F = TypeVar("F", bound=Callable[..., Any])


class CLIError(Exception):
    """Base exception for benchmark operations."""

    exit_code = 1

    def __init__(self, message: str, context: Optional[str] = None):
        self.message = message
        self.context = context
        super().__init__(message)


class ConfigurationError(CLIError):
    """Invalid or missing run configuration, reported before any worker starts."""

    exit_code = 3


class InvalidSizeFormat(ConfigurationError, ValueError):
    """A size literal could not be parsed."""


class InvalidRange(ConfigurationError, ValueError):
    """Minimum file size is not below the maximum file size."""


class WriteFailure(CLIError):
    """A worker failed to create, write or map a file."""

    exit_code = 2

    def __init__(self, message: str, path: Optional[str] = None, context: Optional[str] = None):
        self.path = path
        super().__init__(message, context)


class CleanupFailure(CLIError):
    """A leftover file could not be deleted during shutdown. Logged, never fatal."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)


def format_error_message(
    error: BaseException, context: Optional[str] = None, include_traceback: bool = False
) -> str:
    """
    Format error message for user display.

    Args:
        error: Exception that occurred
        context: Additional context about operation
        include_traceback: Whether to include full traceback

    Returns:
        Formatted error message string
    """
    error_types = {
        FileNotFoundError: "File not found",
        PermissionError: "Permission denied",
        ConfigurationError: "Invalid configuration",
        InvalidSizeFormat: "Invalid size",
        InvalidRange: "Invalid size range",
        WriteFailure: "Write failed",
        KeyboardInterrupt: "Operation cancelled",
    }

    error_name = error_types.get(type(error), type(error).__name__)

    if context:
        message = f"❌ {context}: {error_name}"
    else:
        message = f"❌ {error_name}"

    if str(error):
        message += f" - {str(error)}"

    if include_traceback:
        import traceback

        message += f"\n{traceback.format_exc()}"

    return message


def handle_cli_errors(
    context: str = "", exit_on_keyboard_interrupt: bool = True
) -> Callable[[F], F]:
    """
    Decorator to handle CLI errors automatically.

    Args:
        context: Context string for error messages
        exit_on_keyboard_interrupt: Exit on Ctrl+C (vs re-raise)

    Returns:
        Decorated function
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except KeyboardInterrupt:
                if exit_on_keyboard_interrupt:
                    print("\n⚠️  Operation cancelled by user", file=sys.stderr)
                    sys.exit(130)  # Standard SIGINT exit code
                else:
                    raise
            except CLIError as e:
                message = format_error_message(e, context or e.context)
                print(message, file=sys.stderr)
                logger.debug(f"CLI Error: {message}", exc_info=True)
                sys.exit(e.exit_code)
            except (FileNotFoundError, PermissionError) as e:
                op_context = context or "File operation"
                message = format_error_message(e, op_context)
                print(message, file=sys.stderr)
                sys.exit(2)
            except Exception as e:
                op_context = context or "Operation"
                message = format_error_message(e, op_context, include_traceback=True)
                print(message, file=sys.stderr)
                sys.exit(1)

        return wrapper  # type: ignore

    return decorator
