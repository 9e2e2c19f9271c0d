"""Base types, constants, and exceptions for the encryption engine.

This module defines the closed set of values the engine works with
(operations, modes, IV policies) and the exception taxonomy every other
module raises. Nothing here performs I/O.

Wire formats:
    - Whole-stream: ``[IV, 16 bytes raw][ciphertext, same length as input]``
    - Line: ``"<decrypt marker>: " + base64(IV + ciphertext)``

Example:
    >>> from linecrypt.encryption.base import Mode, Operation
    >>>
    >>> Operation("encrypt") is Operation.ENCRYPT
    True
    >>> Mode.LINE.value
    'line'
"""

from __future__ import annotations

import os
from enum import Enum


# =============================================================================
# Constants
# =============================================================================

KEY_SIZE = 32  # AES-256
BLOCK_SIZE = 16  # AES block size, also the IV size
DEFAULT_CHUNK_SIZE = 4096

DEFAULT_ENCRYPT_MARKER = "### DIRECTIVE: ENCRYPT"
DEFAULT_DECRYPT_MARKER = "### DIRECTIVE: DECRYPT"
DIRECTIVE_DELIMITER = ": "


# =============================================================================
# Exceptions
# =============================================================================


class EncryptionError(Exception):
    """Base exception for encryption errors."""

    def __init__(self, message: str, line: int | None = None) -> None:
        self.message = message
        self.line = line  # 1-based, set by the line processor
        super().__init__(message)

    def __str__(self) -> str:
        if self.line is not None:
            return f"[line {self.line}] {self.message}"
        return self.message


class InvalidKeyLengthError(EncryptionError):
    """Key does not have the length required by the cipher."""

    def __init__(self, length: int, expected: int = KEY_SIZE) -> None:
        self.length = length
        self.expected = expected
        super().__init__(f"invalid key length: got {length} bytes, want {expected}")


class DecryptionError(EncryptionError):
    """Error while reading ciphertext."""

    pass


class TruncatedInputError(DecryptionError):
    """Ciphertext or IV is shorter than one cipher block."""

    pass


class InvalidEncodingError(DecryptionError):
    """Malformed textual encoding (base64 or hex)."""

    pass


class IOFailureError(EncryptionError):
    """Read or write failure on the underlying streams."""

    pass


class EncryptionConfigError(EncryptionError):
    """Invalid engine configuration."""

    pass


class UnsupportedModeError(EncryptionConfigError):
    """Mode is outside the supported set."""

    def __init__(self, mode: object) -> None:
        self.mode = mode
        available = ", ".join(m.value for m in Mode)
        super().__init__(f"unsupported mode {mode!r}. Available: {available}")


class UnsupportedOperationError(EncryptionConfigError):
    """Operation is outside the supported set."""

    def __init__(self, operation: object) -> None:
        self.operation = operation
        available = ", ".join(o.value for o in Operation)
        super().__init__(f"unsupported operation {operation!r}. Available: {available}")


# =============================================================================
# Enums
# =============================================================================


class Operation(str, Enum):
    """Direction of the cipher for a whole run."""

    ENCRYPT = "encrypt"
    DECRYPT = "decrypt"

    @property
    def past_tense(self) -> str:
        """Verb used in status messages ("encrypted", "decrypted")."""
        return f"{self.value}ed"

    @classmethod
    def parse(cls, value: "str | Operation") -> "Operation":
        """Coerce a string into an operation."""
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedOperationError(value) from None


class Mode(str, Enum):
    """How the input is split into cipher units."""

    FILE = "file"  # whole stream, one cipher session
    LINE = "line"  # directive-tagged lines only

    @classmethod
    def parse(cls, value: "str | Mode") -> "Mode":
        """Coerce a string into a mode."""
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedModeError(value) from None


class IVPolicy(str, Enum):
    """Where initialization vectors come from."""

    RANDOM = "random"
    DETERMINISTIC = "deterministic"  # first BLOCK_SIZE bytes of the key


# =============================================================================
# Utilities
# =============================================================================


def generate_iv() -> bytes:
    """Generate a cryptographically random IV of one block."""
    return os.urandom(BLOCK_SIZE)
