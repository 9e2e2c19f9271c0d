"""Key material for the AES-256 engine.

Keys arrive as raw bytes, hex text, or a file containing hex text. All
paths end in :class:`KeyMaterial`, which enforces the 32-byte length once
and is immutable afterwards.

Example:
    >>> from linecrypt.encryption.keys import KeyMaterial
    >>>
    >>> key = KeyMaterial.generate()
    >>> KeyMaterial.from_hex(key.hex()) == key
    True
"""

from __future__ import annotations

import binascii
import secrets
from dataclasses import dataclass, field
from pathlib import Path

from linecrypt.encryption.base import (
    BLOCK_SIZE,
    KEY_SIZE,
    InvalidEncodingError,
    InvalidKeyLengthError,
    IOFailureError,
)


@dataclass(frozen=True)
class KeyMaterial:
    """A validated symmetric key.

    Attributes:
        raw: The key bytes. Always exactly ``KEY_SIZE`` long.
    """

    raw: bytes = field(repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.raw, (bytes, bytearray, memoryview)):
            raise TypeError(f"key must be bytes, got {type(self.raw).__name__}")
        raw = bytes(self.raw)
        if len(raw) != KEY_SIZE:
            raise InvalidKeyLengthError(len(raw))
        object.__setattr__(self, "raw", raw)

    def __repr__(self) -> str:
        return f"KeyMaterial(<{KEY_SIZE} bytes>)"

    @property
    def iv_prefix(self) -> bytes:
        """Leading block of the key, used as the deterministic IV."""
        return self.raw[:BLOCK_SIZE]

    def hex(self) -> str:
        """Encode the key as lowercase hex."""
        return self.raw.hex()

    @classmethod
    def from_hex(cls, text: str | bytes) -> "KeyMaterial":
        """Decode a hex-encoded key.

        Surrounding whitespace is ignored so keys read from files with a
        trailing newline decode cleanly.

        Raises:
            InvalidEncodingError: If the text is not valid hex.
            InvalidKeyLengthError: If the decoded key is not 32 bytes.
        """
        if isinstance(text, bytes):
            try:
                text = text.decode("ascii")
            except UnicodeDecodeError as e:
                raise InvalidEncodingError(f"invalid hex key: {e}") from e
        try:
            raw = binascii.unhexlify(text.strip())
        except (binascii.Error, ValueError) as e:
            raise InvalidEncodingError(f"invalid hex key: {e}") from e
        return cls(raw)

    @classmethod
    def from_file(cls, path: str | Path) -> "KeyMaterial":
        """Load a hex-encoded key from a file."""
        try:
            content = Path(path).read_bytes()
        except OSError as e:
            raise IOFailureError(f"reading key file {str(path)!r}: {e}") from e
        return cls.from_hex(content)

    @classmethod
    def generate(cls) -> "KeyMaterial":
        """Generate a new random key."""
        return cls(secrets.token_bytes(KEY_SIZE))


def generate_key_hex() -> str:
    """Generate a new random key and return it hex-encoded."""
    return KeyMaterial.generate().hex()
