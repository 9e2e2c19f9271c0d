"""Directive markers for line-oriented mode.

A line is encrypted when it ends with the encrypt marker and decrypted
when it starts with the decrypt marker followed by ``": "``. Markers are
literal strings; a line that happens to have the same shape is treated
as tagged.
"""

from __future__ import annotations

from dataclasses import dataclass

from linecrypt.encryption.base import (
    DEFAULT_DECRYPT_MARKER,
    DEFAULT_ENCRYPT_MARKER,
    DIRECTIVE_DELIMITER,
    EncryptionConfigError,
    Operation,
)


@dataclass(frozen=True)
class Directives:
    """Pair of marker strings.

    Attributes:
        encrypt: Suffix that tags a plaintext line for encryption.
        decrypt: Prefix (before ``": "``) that tags an encrypted line.
    """

    encrypt: str = DEFAULT_ENCRYPT_MARKER
    decrypt: str = DEFAULT_DECRYPT_MARKER

    def validate(self) -> None:
        """Validate the markers."""
        if not self.encrypt:
            raise EncryptionConfigError("encrypt directive must not be empty")
        if not self.decrypt:
            raise EncryptionConfigError("decrypt directive must not be empty")


class DirectiveMatcher:
    """Classifies lines against a :class:`Directives` pair.

    Works on bytes; markers are UTF-8 encoded once at construction.
    """

    def __init__(self, directives: Directives | None = None) -> None:
        self._directives = directives or Directives()
        self._directives.validate()
        self._encrypt_suffix = self._directives.encrypt.encode("utf-8")
        self._decrypt_prefix = (
            self._directives.decrypt + DIRECTIVE_DELIMITER
        ).encode("utf-8")

    @property
    def directives(self) -> Directives:
        return self._directives

    def match(self, line: bytes, operation: Operation) -> bytes | None:
        """Return the payload to transform, or None if the line is untagged.

        Under encrypt the payload is the whole line, marker included.
        Under decrypt it is everything after the ``"<marker>: "`` prefix.
        """
        if operation is Operation.ENCRYPT:
            if line.endswith(self._encrypt_suffix):
                return line
            return None
        if line.startswith(self._decrypt_prefix):
            return line[len(self._decrypt_prefix):]
        return None

    def wrap(self, encoded: bytes) -> bytes:
        """Prefix an encoded ciphertext with the decrypt directive."""
        return self._decrypt_prefix + encoded
