"""linecrypt - selective file and line encryption with AES-256."""

__version__ = "0.1.0"

from linecrypt.encryption import (
    Directives,
    Engine,
    EngineConfig,
    EncryptionError,
    IVPolicy,
    KeyMaterial,
    Mode,
    Operation,
    process,
)
from linecrypt.config import ConfigurationError, CryptConfig

__all__ = [
    "__version__",
    "Directives",
    "Engine",
    "EngineConfig",
    "EncryptionError",
    "IVPolicy",
    "KeyMaterial",
    "Mode",
    "Operation",
    "process",
    "ConfigurationError",
    "CryptConfig",
]
