"""Reusable CLI options and arguments.

Every option of the encrypt/decrypt commands is declared once here using
Typer's Annotated pattern, with its ``LINECRYPT_*`` environment variable.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer

from linecrypt.config import env_var


def positive_int_callback(value: int | None) -> int | None:
    """Validate that a count is at least 1.

    Raises:
        typer.BadParameter: If the value is below 1
    """
    if value is not None and value < 1:
        raise typer.BadParameter(f"must be at least 1 (got {value})")
    return value


FileArg = Annotated[
    str,
    typer.Argument(help="Input file, or '-' to read from stdin"),
]

KeyOpt = Annotated[
    Optional[str],
    typer.Option(
        "--key", "-k",
        help="Encryption key (hex)",
        envvar=env_var("key"),
        show_default=False,
    ),
]

KeyFileOpt = Annotated[
    Optional[Path],
    typer.Option(
        "--key-file", "-f",
        help="Path to the key file with the encryption key (hex)",
        envvar=env_var("key-file"),
    ),
]

ModeOpt = Annotated[
    str,
    typer.Option(
        "--mode", "-m",
        help="Mode of operation: file or line",
        envvar=env_var("mode"),
    ),
]

EncryptDirectiveOpt = Annotated[
    str,
    typer.Option(
        "--encrypt", "-e",
        help="Directive marking lines to encrypt",
        envvar=env_var("encrypt"),
    ),
]

DecryptDirectiveOpt = Annotated[
    str,
    typer.Option(
        "--decrypt", "-d",
        help="Directive marking lines to decrypt",
        envvar=env_var("decrypt"),
    ),
]

ParallelOpt = Annotated[
    Optional[int],
    typer.Option(
        "--parallel", "-j",
        help="Worker threads for line mode [default: number of CPUs, at most 8]",
        envvar=env_var("parallel"),
        callback=positive_int_callback,
        show_default=False,
    ),
]

DeterministicOpt = Annotated[
    bool,
    typer.Option(
        "--deterministic",
        help="Derive the IV from the key, so equal inputs encrypt equally",
        envvar=env_var("deterministic"),
    ),
]

OutputOpt = Annotated[
    Optional[Path],
    typer.Option("--output", "-o", help="Output file [default: stdout]"),
]

ShowOpt = Annotated[
    bool,
    typer.Option("--show", "-s", help="Show the configuration and exit"),
]
