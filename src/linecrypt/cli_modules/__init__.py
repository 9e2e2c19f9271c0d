"""CLI building blocks for linecrypt.

This package provides the shared pieces the commands in
:mod:`linecrypt.cli` are assembled from:
    - errors: error codes, CLI exceptions and the ``error_boundary`` decorator
    - options: reusable Annotated options bound to ``LINECRYPT_*`` variables
"""

from linecrypt.cli_modules.errors import (
    CLIError,
    ErrorCode,
    InputNotFoundError,
    error_boundary,
    require_file,
    to_cli_error,
)

__all__ = [
    "CLIError",
    "ErrorCode",
    "InputNotFoundError",
    "error_boundary",
    "require_file",
    "to_cli_error",
]
