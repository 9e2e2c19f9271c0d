"""Command-line interface for linecrypt."""

import logging
import os
import sys
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, BinaryIO, Iterator, Optional

import typer

from linecrypt import __version__
from linecrypt.cli_modules.errors import CLIError, ErrorCode, error_boundary, require_file
from linecrypt.cli_modules.options import (
    DecryptDirectiveOpt,
    DeterministicOpt,
    EncryptDirectiveOpt,
    FileArg,
    KeyFileOpt,
    KeyOpt,
    ModeOpt,
    OutputOpt,
    ParallelOpt,
    ShowOpt,
)
from linecrypt.config import STDIN_NAME, CryptConfig
from linecrypt.encryption import (
    DEFAULT_DECRYPT_MARKER,
    DEFAULT_ENCRYPT_MARKER,
    Engine,
    EncryptionError,
    Mode,
    Operation,
    default_parallelism,
    generate_key_hex,
)
from linecrypt.report import render_config

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="linecrypt",
    help="File/line encryption utility",
    add_completion=False,
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


def configure_logging(level: int) -> None:
    """Send log records at ``level`` and above to stderr."""
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show the version and exit",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging on stderr"),
    ] = False,
) -> None:
    """linecrypt encrypts and decrypts whole files or tagged lines of text."""
    if verbose:
        configure_logging(logging.DEBUG)


# =============================================================================
# Run
# =============================================================================


@contextmanager
def _open_input(config: CryptConfig) -> Iterator[BinaryIO]:
    if config.reads_stdin:
        yield typer.get_binary_stream("stdin")
        return
    path = require_file(Path(config.file))
    try:
        handle = path.open("rb")
    except OSError as e:
        raise CLIError(
            f"opening input file {config.file!r}: {e}", ErrorCode.IO_ERROR
        ) from e
    with handle:
        yield handle


@contextmanager
def _open_output(config: CryptConfig) -> Iterator[BinaryIO]:
    """Open the output destination.

    A file destination is written through a temp file in the same
    directory and only replaces the target once processing succeeded.
    An existing target, including the input file itself, is left intact
    on failure.
    """
    if config.output is None:
        stream = typer.get_binary_stream("stdout")
        yield stream
        stream.flush()
        return

    target = config.output
    try:
        fd, temp_name = tempfile.mkstemp(
            dir=target.parent,
            prefix=f".{target.name}.",
            suffix=".tmp",
        )
    except OSError as e:
        raise CLIError(
            f"opening output file {str(target)!r}: {e}", ErrorCode.IO_ERROR
        ) from e

    temp_path = Path(temp_name)
    committed = False
    try:
        with os.fdopen(fd, "wb") as handle:
            yield handle
        os.replace(temp_path, target)
        committed = True
    except OSError as e:
        raise CLIError(
            f"writing output file {str(target)!r}: {e}", ErrorCode.IO_ERROR
        ) from e
    finally:
        if not committed:
            temp_path.unlink(missing_ok=True)


def run(config: CryptConfig) -> bool:
    """Validate the configuration, load the key and process the input.

    Returns:
        True if anything was encrypted or decrypted.
    """
    config.validate()
    logger.debug("Configuration: %s", config.as_display_dict())

    try:
        key = config.resolve_key()
    except EncryptionError as e:
        raise CLIError(
            f"reading key: {e}",
            ErrorCode.KEY_ERROR,
            hint="Generate a valid key with 'linecrypt gen-key'.",
        ) from e

    engine = Engine(config.to_engine_config(key))
    with _open_input(config) as reader, _open_output(config) as writer:
        processed = engine.process(reader, writer)

    name = "<stdin>" if config.reads_stdin else config.file
    operation = Operation(config.operation)
    if config.mode == Mode.FILE.value:
        typer.echo(f'{operation.past_tense} file: "{name}"', err=True)
    elif processed:
        typer.echo(f'{operation.past_tense} lines in: "{name}"', err=True)

    return processed


def _command(
    operation: Operation,
    file: str,
    key: str | None,
    key_file: Path | None,
    mode: str,
    encrypt: str,
    decrypt: str,
    parallel: int | None,
    deterministic: bool,
    output: Path | None,
    show: bool,
) -> None:
    config = CryptConfig(
        operation=operation.value,
        file=file,
        key=key,
        key_file=key_file,
        mode=mode,
        encrypt_directive=encrypt,
        decrypt_directive=decrypt,
        parallel=parallel if parallel is not None else default_parallelism(),
        deterministic=deterministic,
        output=output,
    )

    if show:
        render_config(config.as_display_dict())
        raise typer.Exit()

    run(config)


# =============================================================================
# Commands
# =============================================================================


@error_boundary
def encrypt_cmd(
    file: FileArg = STDIN_NAME,
    key: KeyOpt = None,
    key_file: KeyFileOpt = None,
    mode: ModeOpt = Mode.FILE.value,
    encrypt: EncryptDirectiveOpt = DEFAULT_ENCRYPT_MARKER,
    decrypt: DecryptDirectiveOpt = DEFAULT_DECRYPT_MARKER,
    parallel: ParallelOpt = None,
    deterministic: DeterministicOpt = False,
    output: OutputOpt = None,
    show: ShowOpt = False,
) -> None:
    """Encrypt a file or stdin.

    In file mode the whole input is encrypted. In line mode only lines
    ending with the encrypt directive are, and they are rewritten as
    "<decrypt directive>: <base64>".

    Examples:
        linecrypt encrypt secrets.bin -k $KEY -o secrets.enc
        linecrypt encrypt config.yaml -f key.hex -m line
    """
    _command(
        Operation.ENCRYPT, file, key, key_file, mode, encrypt, decrypt,
        parallel, deterministic, output, show,
    )


@error_boundary
def decrypt_cmd(
    file: FileArg = STDIN_NAME,
    key: KeyOpt = None,
    key_file: KeyFileOpt = None,
    mode: ModeOpt = Mode.FILE.value,
    encrypt: EncryptDirectiveOpt = DEFAULT_ENCRYPT_MARKER,
    decrypt: DecryptDirectiveOpt = DEFAULT_DECRYPT_MARKER,
    parallel: ParallelOpt = None,
    deterministic: DeterministicOpt = False,
    output: OutputOpt = None,
    show: ShowOpt = False,
) -> None:
    """Decrypt a file or stdin.

    In line mode only lines starting with "<decrypt directive>: " are
    decrypted; everything else is copied unchanged.

    Examples:
        linecrypt decrypt secrets.enc -k $KEY -o secrets.bin
        linecrypt decrypt config.yaml -f key.hex -m line
    """
    _command(
        Operation.DECRYPT, file, key, key_file, mode, encrypt, decrypt,
        parallel, deterministic, output, show,
    )


@error_boundary
def gen_key_cmd(
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write the key to this file instead of stdout"),
    ] = None,
) -> None:
    """Generate a random 256-bit key, hex-encoded."""
    key = generate_key_hex()
    if output is None:
        typer.echo(key)
        return
    try:
        output.write_text(key + "\n", encoding="ascii")
    except OSError as e:
        raise CLIError(
            f"writing key file {str(output)!r}: {e}", ErrorCode.IO_ERROR
        ) from e
    typer.echo(f'key written to: "{output}"', err=True)


app.command(name="encrypt")(encrypt_cmd)
app.command(name="enc", hidden=True)(encrypt_cmd)
app.command(name="decrypt")(decrypt_cmd)
app.command(name="dec", hidden=True)(decrypt_cmd)
app.command(name="gen-key")(gen_key_cmd)


if __name__ == "__main__":
    app()
