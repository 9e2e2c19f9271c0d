"""Single-line encryption for line-oriented mode."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass

from linecrypt.encryption.base import (
    BLOCK_SIZE,
    InvalidEncodingError,
    IVPolicy,
    Operation,
    TruncatedInputError,
)
from linecrypt.encryption.directives import DirectiveMatcher
from linecrypt.encryption.keys import KeyMaterial
from linecrypt.encryption.streaming import new_cipher, select_iv


@dataclass(frozen=True)
class LineResult:
    """Outcome for one line.

    Attributes:
        data: Output line, without terminator.
        processed: Whether the line went through the cipher.
    """

    data: bytes
    processed: bool = False


class LineCodec:
    """Encrypts and decrypts directive-tagged lines.

    Encrypted lines have the form ``"<decrypt marker>: " + base64(IV + ciphertext)``.
    The codec is read-only after construction and safe to share between threads.
    """

    def __init__(
        self,
        key: KeyMaterial,
        operation: Operation,
        matcher: DirectiveMatcher | None = None,
        iv_policy: IVPolicy = IVPolicy.RANDOM,
    ) -> None:
        self._key = key
        self._operation = operation
        self._matcher = matcher or DirectiveMatcher()
        self._iv_policy = iv_policy

    @property
    def operation(self) -> Operation:
        return self._operation

    def transform(self, line: bytes) -> LineResult:
        """Apply the configured operation to one line.

        Untagged lines come back verbatim with ``processed=False``.
        """
        payload = self._matcher.match(line, self._operation)
        if payload is None:
            return LineResult(line)
        if self._operation is Operation.ENCRYPT:
            return LineResult(self.encrypt_line(payload), True)
        return LineResult(self.decrypt_payload(payload), True)

    def encrypt_line(self, line: bytes) -> bytes:
        """Encrypt a line and wrap it with the decrypt directive."""
        iv = select_iv(self._key, self._iv_policy)
        encryptor = new_cipher(self._key, iv).encryptor()
        sealed = iv + encryptor.update(line) + encryptor.finalize()
        return self._matcher.wrap(base64.b64encode(sealed))

    def decrypt_payload(self, payload: bytes) -> bytes:
        """Decode and decrypt the text following the decrypt directive.

        Raises:
            InvalidEncodingError: If the payload is not valid base64.
            TruncatedInputError: If the decoded data is shorter than one IV.
        """
        try:
            sealed = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidEncodingError(f"decoding base64: {e}") from e

        if len(sealed) < BLOCK_SIZE:
            raise TruncatedInputError(
                f"ciphertext too short: got {len(sealed)} bytes, want at least {BLOCK_SIZE}"
            )

        iv, ciphertext = sealed[:BLOCK_SIZE], sealed[BLOCK_SIZE:]
        decryptor = new_cipher(self._key, iv).decryptor()
        return decryptor.update(ciphertext) + decryptor.finalize()
