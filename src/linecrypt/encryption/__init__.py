"""Selective stream encryption engine.

This package encrypts or decrypts byte streams with AES-256 in a counter
stream mode, either as one whole stream or line by line, where only
lines tagged with a directive marker are transformed.

Features:
    - Whole-stream mode with a raw IV prefix and chunked processing
    - Line mode with literal directive markers and base64 ciphertext
    - Order-preserving parallel line processing
    - Random or key-derived (deterministic) IVs

Quick Start:
    >>> from linecrypt.encryption import (
    ...     Engine,
    ...     EngineConfig,
    ...     KeyMaterial,
    ...     Mode,
    ...     Operation,
    ... )
    >>>
    >>> key = KeyMaterial.generate()
    >>> engine = Engine(EngineConfig(key=key, operation=Operation.ENCRYPT, mode=Mode.LINE))
    >>> with open("notes.txt", "rb") as src, open("notes.enc", "wb") as dst:
    ...     processed = engine.process(src, dst)
"""

from linecrypt.encryption.base import (
    # Constants
    BLOCK_SIZE,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_DECRYPT_MARKER,
    DEFAULT_ENCRYPT_MARKER,
    KEY_SIZE,
    # Enums
    IVPolicy,
    Mode,
    Operation,
    # Exceptions
    DecryptionError,
    EncryptionConfigError,
    EncryptionError,
    InvalidEncodingError,
    InvalidKeyLengthError,
    IOFailureError,
    TruncatedInputError,
    UnsupportedModeError,
    UnsupportedOperationError,
    # Utilities
    generate_iv,
)
from linecrypt.encryption.directives import DirectiveMatcher, Directives
from linecrypt.encryption.engine import Engine, EngineConfig, default_parallelism, process
from linecrypt.encryption.keys import KeyMaterial, generate_key_hex
from linecrypt.encryption.lines import LineCodec, LineResult
from linecrypt.encryption.parallel import ParallelLineProcessor, split_lines
from linecrypt.encryption.streaming import StreamCodec, StreamStats

__all__ = [
    # Constants
    "BLOCK_SIZE",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_DECRYPT_MARKER",
    "DEFAULT_ENCRYPT_MARKER",
    "KEY_SIZE",
    # Enums
    "IVPolicy",
    "Mode",
    "Operation",
    # Exceptions
    "DecryptionError",
    "EncryptionConfigError",
    "EncryptionError",
    "InvalidEncodingError",
    "InvalidKeyLengthError",
    "IOFailureError",
    "TruncatedInputError",
    "UnsupportedModeError",
    "UnsupportedOperationError",
    # Keys
    "KeyMaterial",
    "generate_key_hex",
    "generate_iv",
    # Codecs
    "StreamCodec",
    "StreamStats",
    "DirectiveMatcher",
    "Directives",
    "LineCodec",
    "LineResult",
    "ParallelLineProcessor",
    "split_lines",
    # Engine
    "Engine",
    "EngineConfig",
    "default_parallelism",
    "process",
]
