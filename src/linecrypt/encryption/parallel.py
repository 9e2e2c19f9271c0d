"""Order-preserving parallel line processing.

All lines are read up front and addressed by index. A fixed number of
worker threads claim indexes from a shared queue and write each result
into the arena slot for that index, so every slot has exactly one writer
and the arena needs no lock. Output is written only after every worker
has finished, in index order.

Failure handling:
    - A failing worker pushes ``(index, error)`` onto an unbounded queue,
      which never blocks, and sets the abort event.
    - Other workers stop claiming new indexes once the event is set; work
      already in flight finishes normally.
    - The error of the lowest failing index is raised and nothing is
      written.

Usage:
    from linecrypt.encryption.parallel import ParallelLineProcessor

    processor = ParallelLineProcessor(codec, parallelism=4)
    processed = processor.process(reader, writer)
"""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from typing import BinaryIO, Sequence

from linecrypt.encryption.base import EncryptionError, IOFailureError
from linecrypt.encryption.lines import LineCodec, LineResult

logger = logging.getLogger(__name__)

LINE_TERMINATOR = b"\n"


def split_lines(data: bytes) -> list[bytes]:
    """Split input into lines.

    A trailing newline does not start an extra empty line, a final
    unterminated line is kept, and one trailing ``\\r`` is dropped from
    each line.
    """
    if not data:
        return []
    lines = data.split(LINE_TERMINATOR)
    if data.endswith(LINE_TERMINATOR):
        lines.pop()
    return [line[:-1] if line.endswith(b"\r") else line for line in lines]


class ParallelLineProcessor:
    """Applies a :class:`LineCodec` to every line with N worker threads."""

    def __init__(self, codec: LineCodec, parallelism: int = 1) -> None:
        """Initialize the processor.

        Args:
            codec: Codec applied to each line.
            parallelism: Number of worker threads (values below 1 mean 1).
        """
        self._codec = codec
        self._parallelism = max(1, parallelism)

    @property
    def parallelism(self) -> int:
        return self._parallelism

    def process(self, reader: BinaryIO, writer: BinaryIO) -> bool:
        """Transform every line of ``reader`` and write the result to ``writer``.

        Returns:
            True if at least one line went through the cipher.
        """
        try:
            data = reader.read()
        except OSError as e:
            raise IOFailureError(f"reading data: {e}") from e

        lines = split_lines(data or b"")
        results = self.transform(lines)

        try:
            for result in results:
                writer.write(result.data + LINE_TERMINATOR)
        except OSError as e:
            raise IOFailureError(f"writing data: {e}") from e

        return any(result.processed for result in results)

    def transform(self, lines: Sequence[bytes]) -> list[LineResult]:
        """Transform lines in parallel, returning results in input order.

        Raises:
            EncryptionError: The error of the lowest failing line, with its
                1-based line number attached.
        """
        if not lines:
            return []

        arena: list[LineResult | None] = [None] * len(lines)
        work: queue.SimpleQueue[int] = queue.SimpleQueue()
        for index in range(len(lines)):
            work.put(index)

        errors: queue.SimpleQueue[tuple[int, Exception]] = queue.SimpleQueue()
        abort = threading.Event()

        def worker() -> None:
            while not abort.is_set():
                try:
                    index = work.get_nowait()
                except queue.Empty:
                    return
                try:
                    arena[index] = self._codec.transform(lines[index])
                except Exception as e:
                    errors.put((index, e))
                    abort.set()
                    return

        logger.debug(
            "Processing %d lines with %d workers", len(lines), self._parallelism
        )
        with ThreadPoolExecutor(
            max_workers=self._parallelism,
            thread_name_prefix="linecrypt-line",
        ) as executor:
            futures = [executor.submit(worker) for _ in range(self._parallelism)]
            wait(futures)

        failures: list[tuple[int, Exception]] = []
        while not errors.empty():
            failures.append(errors.get_nowait())

        if failures:
            failures.sort(key=lambda item: item[0])
            index, error = failures[0]
            if len(failures) > 1:
                logger.debug("%d lines failed, reporting the first", len(failures))
            if isinstance(error, EncryptionError):
                error.line = index + 1
            raise error

        results: list[LineResult] = []
        for index, result in enumerate(arena):
            if result is None:
                raise EncryptionError("line was not processed", line=index + 1)
            results.append(result)
        return results
