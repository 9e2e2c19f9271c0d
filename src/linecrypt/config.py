"""CLI-level configuration.

:class:`CryptConfig` holds what the command line and the ``LINECRYPT_*``
environment variables supply. It validates the values as a whole,
resolves the key from either a hex string or a key file, and builds the
immutable :class:`~linecrypt.encryption.EngineConfig`.

Environment variables:
    LINECRYPT_KEY: Hex-encoded key
    LINECRYPT_KEY_FILE: Path to a file containing a hex-encoded key
    LINECRYPT_MODE: ``file`` or ``line`` (default: file)
    LINECRYPT_ENCRYPT: Encrypt directive (default: ``### DIRECTIVE: ENCRYPT``)
    LINECRYPT_DECRYPT: Decrypt directive (default: ``### DIRECTIVE: DECRYPT``)
    LINECRYPT_PARALLEL: Worker threads for line mode
    LINECRYPT_DETERMINISTIC: Use the key-derived IV
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from linecrypt.encryption import (
    DEFAULT_DECRYPT_MARKER,
    DEFAULT_ENCRYPT_MARKER,
    Directives,
    EngineConfig,
    IVPolicy,
    KeyMaterial,
    Mode,
    Operation,
    default_parallelism,
)

ENV_PREFIX = "LINECRYPT"
KEY_MASK = "********"
STDIN_NAME = "-"


def env_var(name: str) -> str:
    """Environment variable bound to an option name."""
    return f"{ENV_PREFIX}_{name.upper().replace('-', '_')}"


class ConfigurationError(Exception):
    """Invalid CLI configuration.

    Attributes:
        errors: Every problem found, in the order checked.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        if len(errors) == 1:
            message = f"usage error: {errors[0]}"
        else:
            message = "usage errors:\n" + "\n".join(f"  - {e}" for e in errors)
        super().__init__(message)


@dataclass
class CryptConfig:
    """Values supplied by the command line.

    Attributes:
        operation: ``encrypt`` or ``decrypt``.
        file: Input path, or ``-`` for stdin.
        key: Hex-encoded key. Exclusive with ``key_file``.
        key_file: Path to a hex key file. Exclusive with ``key``.
        mode: ``file`` or ``line``.
        encrypt_directive: Encrypt marker for line mode.
        decrypt_directive: Decrypt marker for line mode.
        parallel: Worker threads for line mode.
        deterministic: Use the key-derived IV instead of a random one.
        output: Output path, or None for stdout.
    """

    operation: str = Operation.ENCRYPT.value
    file: str = STDIN_NAME
    key: str | None = None
    key_file: Path | None = None
    mode: str = Mode.FILE.value
    encrypt_directive: str = DEFAULT_ENCRYPT_MARKER
    decrypt_directive: str = DEFAULT_DECRYPT_MARKER
    parallel: int = field(default_factory=default_parallelism)
    deterministic: bool = False
    output: Path | None = None

    @property
    def reads_stdin(self) -> bool:
        return self.file == STDIN_NAME

    def validate(self) -> None:
        """Check every value and raise once with all problems found."""
        errors: list[str] = []

        if self.key and self.key_file:
            errors.append("--key and --key-file cannot be used together")
        elif not self.key and not self.key_file:
            errors.append("one of --key or --key-file must be provided")

        if self.mode not in {m.value for m in Mode}:
            errors.append(f"mode must be one of: file, line (got {self.mode!r})")
        if self.operation not in {o.value for o in Operation}:
            errors.append(
                f"operation must be one of: encrypt, decrypt (got {self.operation!r})"
            )
        if not self.encrypt_directive:
            errors.append("--encrypt directive must not be empty")
        if not self.decrypt_directive:
            errors.append("--decrypt directive must not be empty")
        if self.parallel < 1:
            errors.append(f"--parallel must be at least 1 (got {self.parallel})")

        if errors:
            raise ConfigurationError(errors)

    def resolve_key(self) -> KeyMaterial:
        """Load the key from ``key`` or ``key_file``."""
        if self.key:
            return KeyMaterial.from_hex(self.key)
        if self.key_file:
            return KeyMaterial.from_file(self.key_file)
        raise ConfigurationError(["one of --key or --key-file must be provided"])

    def to_engine_config(self, key: KeyMaterial | None = None) -> EngineConfig:
        """Build the engine configuration."""
        return EngineConfig(
            key=key or self.resolve_key(),
            operation=Operation(self.operation),
            mode=Mode(self.mode),
            directives=Directives(
                encrypt=self.encrypt_directive,
                decrypt=self.decrypt_directive,
            ),
            parallelism=self.parallel,
            iv_policy=IVPolicy.DETERMINISTIC if self.deterministic else IVPolicy.RANDOM,
        )

    def as_display_dict(self) -> dict[str, Any]:
        """Configuration with the key masked, for ``--show``."""
        return {
            "operation": self.operation,
            "file": self.file,
            "key": KEY_MASK if self.key else None,
            "key_file": str(self.key_file) if self.key_file else None,
            "mode": self.mode,
            "encrypt": self.encrypt_directive,
            "decrypt": self.decrypt_directive,
            "parallel": self.parallel,
            "deterministic": self.deterministic,
            "output": str(self.output) if self.output else "<stdout>",
        }
