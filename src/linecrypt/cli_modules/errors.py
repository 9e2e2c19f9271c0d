"""CLI error handling utilities.

This module maps engine and configuration errors to exit codes and
prints them in a consistent format.
"""

from __future__ import annotations

import functools
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Callable, TypeVar

import typer

from linecrypt.config import ConfigurationError
from linecrypt.encryption import (
    DecryptionError,
    EncryptionConfigError,
    EncryptionError,
    InvalidKeyLengthError,
    IOFailureError,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Error Codes
# =============================================================================


class ErrorCode(Enum):
    """Standard CLI error codes."""

    # General errors (1-9)
    GENERAL_ERROR = 1
    USAGE_ERROR = 2

    # File errors (10-19)
    FILE_NOT_FOUND = 10
    IO_ERROR = 11

    # Key errors (20-29)
    KEY_ERROR = 20

    # Data errors (50-59)
    DATA_ERROR = 50


# =============================================================================
# Exception Classes
# =============================================================================


class CLIError(Exception):
    """Base exception for CLI errors.

    Attributes:
        message: Error message
        code: Error code
        hint: Helpful hint for resolution
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.GENERAL_ERROR,
        hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.hint = hint

    def __str__(self) -> str:
        parts = [self.message]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        return "\n".join(parts)


class InputNotFoundError(CLIError):
    """Error when the input file is not found."""

    def __init__(self, path: Path | str) -> None:
        super().__init__(
            message=f"opening input file {str(path)!r}: no such file",
            code=ErrorCode.FILE_NOT_FOUND,
            hint="Check the path, or pass '-' to read from stdin.",
        )
        self.path = path


# =============================================================================
# Error Translation
# =============================================================================


def to_cli_error(error: Exception) -> CLIError:
    """Translate an engine or configuration error into a CLI error."""
    if isinstance(error, CLIError):
        return error
    if isinstance(error, ConfigurationError):
        return CLIError(str(error), ErrorCode.USAGE_ERROR)
    if isinstance(error, EncryptionConfigError):
        return CLIError(f"usage error: {error}", ErrorCode.USAGE_ERROR)
    if isinstance(error, InvalidKeyLengthError):
        return CLIError(
            f"reading key: {error}",
            ErrorCode.KEY_ERROR,
            hint="Generate a valid key with 'linecrypt gen-key'.",
        )
    if isinstance(error, IOFailureError):
        return CLIError(f"processing data: {error}", ErrorCode.IO_ERROR)
    if isinstance(error, DecryptionError):
        return CLIError(
            f"processing data: {error}",
            ErrorCode.DATA_ERROR,
            hint="Check that the input was encrypted with the same key and mode.",
        )
    if isinstance(error, EncryptionError):
        return CLIError(f"processing data: {error}", ErrorCode.DATA_ERROR)
    return CLIError(f"{error}", ErrorCode.GENERAL_ERROR)


# =============================================================================
# Decorator
# =============================================================================


F = TypeVar("F", bound=Callable[..., Any])


def error_boundary(func: F) -> F:
    """Convert exceptions raised by a command into an error message and exit code.

    Args:
        func: Function to wrap

    Returns:
        Wrapped function
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except (CLIError, ConfigurationError, EncryptionError) as e:
            error = to_cli_error(e)
        except Exception as e:
            logger.exception("Unexpected error")
            error = to_cli_error(e)

        typer.echo(typer.style(f"Error: {error.message}", fg="red"), err=True)
        if error.hint:
            typer.echo(typer.style(f"Hint: {error.hint}", fg="yellow"), err=True)
        raise typer.Exit(error.code.value)

    return wrapper  # type: ignore


# =============================================================================
# Validation Helpers
# =============================================================================


def require_file(path: Path) -> Path:
    """Require that an input file exists.

    Raises:
        InputNotFoundError: If the file doesn't exist
    """
    if not path.is_file():
        raise InputNotFoundError(path)
    return path
