"""Engine: dispatches a run to the whole-stream or line-oriented codec.

The engine is built from an immutable :class:`EngineConfig` and exposes a
single entry point, :meth:`Engine.process`. It performs one pass, never
retries, and returns whether anything was transformed.

Example:
    >>> import io
    >>> from linecrypt.encryption import Engine, EngineConfig, Mode, Operation
    >>>
    >>> config = EngineConfig(
    ...     key=bytes(32),
    ...     operation=Operation.ENCRYPT,
    ...     mode=Mode.LINE,
    ... )
    >>> out = io.BytesIO()
    >>> Engine(config).process(io.BytesIO(b"plain line\\n"), out)
    False
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import BinaryIO

from linecrypt.encryption.base import (
    DEFAULT_CHUNK_SIZE,
    EncryptionConfigError,
    IVPolicy,
    Mode,
    Operation,
    UnsupportedModeError,
    UnsupportedOperationError,
)
from linecrypt.encryption.directives import DirectiveMatcher, Directives
from linecrypt.encryption.keys import KeyMaterial
from linecrypt.encryption.lines import LineCodec
from linecrypt.encryption.parallel import ParallelLineProcessor
from linecrypt.encryption.streaming import StreamCodec

logger = logging.getLogger(__name__)


def default_parallelism() -> int:
    """Worker count used when none is configured."""
    return min(os.cpu_count() or 4, 8)


@dataclass(frozen=True)
class EngineConfig:
    """Immutable configuration for one engine run.

    Attributes:
        key: Key material; raw bytes are validated on construction.
        operation: Encrypt or decrypt.
        mode: Whole-stream (``file``) or line-oriented (``line``).
        directives: Marker strings for line mode.
        parallelism: Worker threads for line mode.
        iv_policy: Random or key-derived IVs.
        chunk_size: Read size for whole-stream mode.
    """

    key: KeyMaterial
    operation: Operation = Operation.ENCRYPT
    mode: Mode = Mode.FILE
    directives: Directives = field(default_factory=Directives)
    parallelism: int = field(default_factory=default_parallelism)
    iv_policy: IVPolicy = IVPolicy.RANDOM
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def __post_init__(self) -> None:
        if not isinstance(self.key, KeyMaterial):
            object.__setattr__(self, "key", KeyMaterial(self.key))
        object.__setattr__(self, "operation", Operation.parse(self.operation))
        object.__setattr__(self, "mode", Mode.parse(self.mode))
        try:
            object.__setattr__(self, "iv_policy", IVPolicy(self.iv_policy))
        except ValueError:
            raise EncryptionConfigError(
                f"unsupported IV policy {self.iv_policy!r}"
            ) from None
        self.validate()

    def validate(self) -> None:
        """Validate configuration."""
        if self.parallelism < 1:
            raise EncryptionConfigError("parallelism must be at least 1")
        if self.chunk_size < 1:
            raise EncryptionConfigError("chunk_size must be at least 1")
        self.directives.validate()


class Engine:
    """Runs one encrypt or decrypt pass over an input/output stream pair."""

    def __init__(self, config: EngineConfig) -> None:
        self._config = config
        if config.iv_policy is IVPolicy.DETERMINISTIC:
            logger.warning(
                "Deterministic IV policy selected: identical plaintexts "
                "produce identical ciphertexts"
            )

    @property
    def config(self) -> EngineConfig:
        return self._config

    def process(self, reader: BinaryIO, writer: BinaryIO) -> bool:
        """Process ``reader`` into ``writer``.

        Returns:
            True if at least one unit (the stream, or a line) was transformed.

        Raises:
            EncryptionError: On the first unrecoverable error.
        """
        config = self._config
        logger.debug(
            "Starting %s run in %s mode", config.operation.value, config.mode.value
        )

        if config.mode is Mode.FILE:
            return self._process_stream(reader, writer)
        if config.mode is Mode.LINE:
            return self._process_lines(reader, writer)
        raise UnsupportedModeError(config.mode)

    def _process_stream(self, reader: BinaryIO, writer: BinaryIO) -> bool:
        config = self._config
        codec = StreamCodec(config.key, config.iv_policy, config.chunk_size)
        if config.operation is Operation.ENCRYPT:
            return codec.encrypt(reader, writer)
        if config.operation is Operation.DECRYPT:
            return codec.decrypt(reader, writer)
        raise UnsupportedOperationError(config.operation)

    def _process_lines(self, reader: BinaryIO, writer: BinaryIO) -> bool:
        config = self._config
        codec = LineCodec(
            config.key,
            config.operation,
            DirectiveMatcher(config.directives),
            config.iv_policy,
        )
        processor = ParallelLineProcessor(codec, config.parallelism)
        return processor.process(reader, writer)


def process(
    config: EngineConfig,
    reader: BinaryIO,
    writer: BinaryIO,
) -> bool:
    """Run a single pass with a fresh engine."""
    return Engine(config).process(reader, writer)
