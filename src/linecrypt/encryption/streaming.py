"""Whole-stream encryption.

The entire input is one AES-256-CTR session. The IV is written raw as the
first block of the output, followed by ciphertext of exactly the input's
length. Data moves in fixed-size chunks so memory stays proportional to
the chunk size, not to the stream.

Layout:
    ``[IV: 16 bytes][ciphertext: len(plaintext) bytes]``

Example:
    >>> import io
    >>> from linecrypt.encryption.keys import KeyMaterial
    >>> from linecrypt.encryption.streaming import StreamCodec
    >>>
    >>> codec = StreamCodec(KeyMaterial.generate())
    >>> encrypted, decrypted = io.BytesIO(), io.BytesIO()
    >>> codec.encrypt(io.BytesIO(b"payload"), encrypted)
    True
    >>> encrypted.seek(0)
    0
    >>> codec.decrypt(encrypted, decrypted)
    True
    >>> decrypted.getvalue()
    b'payload'
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, BinaryIO

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from linecrypt.encryption.base import (
    BLOCK_SIZE,
    DEFAULT_CHUNK_SIZE,
    EncryptionConfigError,
    IOFailureError,
    IVPolicy,
    TruncatedInputError,
    generate_iv,
)
from linecrypt.encryption.keys import KeyMaterial

logger = logging.getLogger(__name__)


def new_cipher(key: KeyMaterial, iv: bytes) -> Cipher:
    """Create an AES-256-CTR cipher seeded with ``iv``."""
    return Cipher(algorithms.AES(key.raw), modes.CTR(iv))


def select_iv(key: KeyMaterial, policy: IVPolicy) -> bytes:
    """Pick the IV for a new message under the given policy."""
    if policy is IVPolicy.DETERMINISTIC:
        return key.iv_prefix
    return generate_iv()


@dataclass
class StreamStats:
    """Byte counters for one stream pass.

    Attributes:
        chunks: Number of chunks transformed.
        bytes_in: Payload bytes read (IV excluded).
        bytes_out: Payload bytes written (IV excluded).
    """

    chunks: int = 0
    bytes_in: int = 0
    bytes_out: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "chunks": self.chunks,
            "bytes_in": self.bytes_in,
            "bytes_out": self.bytes_out,
        }


class StreamCodec:
    """Chunked whole-stream encryption and decryption.

    The codec holds no per-stream state, so one instance can process any
    number of streams one after another.
    """

    def __init__(
        self,
        key: KeyMaterial,
        iv_policy: IVPolicy = IVPolicy.RANDOM,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        """Initialize the codec.

        Args:
            key: Validated key.
            iv_policy: Source of the IV for encryption.
            chunk_size: Bytes read per step.
        """
        if chunk_size < 1:
            raise EncryptionConfigError("chunk_size must be at least 1")
        self._key = key
        self._iv_policy = iv_policy
        self._chunk_size = chunk_size
        self.last_stats = StreamStats()

    @property
    def chunk_size(self) -> int:
        """Bytes read per step."""
        return self._chunk_size

    def encrypt(self, reader: BinaryIO, writer: BinaryIO) -> bool:
        """Encrypt ``reader`` into ``writer``.

        Empty input produces empty output.

        Returns:
            True if any data was encrypted.
        """
        self.last_stats = StreamStats()
        first = self._read(reader, self._chunk_size)
        if not first:
            logger.debug("Empty input, nothing to encrypt")
            return False

        iv = select_iv(self._key, self._iv_policy)
        self._write(writer, iv)
        self._pump(new_cipher(self._key, iv).encryptor(), first, reader, writer)
        return True

    def decrypt(self, reader: BinaryIO, writer: BinaryIO) -> bool:
        """Decrypt ``reader`` into ``writer``.

        Empty input produces empty output.

        Returns:
            True if any data was decrypted.

        Raises:
            TruncatedInputError: If fewer than one block is available for the IV.
        """
        self.last_stats = StreamStats()
        iv = self._read_exact(reader, BLOCK_SIZE)
        if not iv:
            logger.debug("Empty input, nothing to decrypt")
            return False
        if len(iv) < BLOCK_SIZE:
            raise TruncatedInputError(
                f"IV too short: got {len(iv)} bytes, want {BLOCK_SIZE}"
            )

        first = self._read(reader, self._chunk_size)
        self._pump(new_cipher(self._key, iv).decryptor(), first, reader, writer)
        return True

    def _pump(
        self,
        context: Any,
        first: bytes,
        reader: BinaryIO,
        writer: BinaryIO,
    ) -> None:
        """Run every chunk through ``context`` and write the result."""
        stats = self.last_stats
        chunk = first
        while chunk:
            out = context.update(chunk)
            self._write(writer, out)
            stats.chunks += 1
            stats.bytes_in += len(chunk)
            stats.bytes_out += len(out)
            chunk = self._read(reader, self._chunk_size)

        tail = context.finalize()
        if tail:
            self._write(writer, tail)
            stats.bytes_out += len(tail)
        logger.debug("Stream processed: %s", stats.to_dict())

    @staticmethod
    def _read(reader: BinaryIO, size: int) -> bytes:
        try:
            return reader.read(size) or b""
        except OSError as e:
            raise IOFailureError(f"reading data: {e}") from e

    @classmethod
    def _read_exact(cls, reader: BinaryIO, size: int) -> bytes:
        """Read up to ``size`` bytes, retrying short reads until EOF."""
        buf = b""
        while len(buf) < size:
            data = cls._read(reader, size - len(buf))
            if not data:
                break
            buf += data
        return buf

    @staticmethod
    def _write(writer: BinaryIO, data: bytes) -> None:
        try:
            writer.write(data)
        except OSError as e:
            raise IOFailureError(f"writing data: {e}") from e
