"""Tests for order-preserving parallel line processing."""

import io
import random
import threading
import time

import pytest

from linecrypt.encryption.base import (
    EncryptionError,
    InvalidEncodingError,
    IOFailureError,
    Operation,
    TruncatedInputError,
)
from linecrypt.encryption.keys import KeyMaterial
from linecrypt.encryption.lines import LineCodec, LineResult
from linecrypt.encryption.parallel import ParallelLineProcessor, split_lines

KEY = KeyMaterial(bytes(32))
MARKER = b" ### DIRECTIVE: ENCRYPT"


class JitterCodec:
    """Codec stub that sleeps a random time and records worker threads."""

    def __init__(self, fail_on: set[bytes] | None = None):
        self.fail_on = fail_on or set()
        self.threads: set[str] = set()
        self.calls = 0
        self._lock = threading.Lock()

    def transform(self, line: bytes) -> LineResult:
        with self._lock:
            self.threads.add(threading.current_thread().name)
            self.calls += 1
        time.sleep(random.uniform(0, 0.002))
        if line in self.fail_on:
            raise InvalidEncodingError(f"bad line {line!r}")
        if line.startswith(b"tag"):
            return LineResult(line.upper(), True)
        return LineResult(line, False)


class WorkerCrash(BaseException):
    """Raised past the worker's Exception handler."""


class CrashingCodec:
    """Codec stub whose worker dies without reporting an error."""

    def __init__(self, on: bytes):
        self.on = on

    def transform(self, line: bytes) -> LineResult:
        if line == self.on:
            raise WorkerCrash()
        return LineResult(line, False)


class FailingWriter(io.RawIOBase):
    def writable(self):
        return True

    def write(self, data):
        raise OSError("broken pipe")


class TestSplitLines:
    """Tests for split_lines."""

    def test_empty(self):
        """Test zero lines."""
        assert split_lines(b"") == []

    def test_trailing_newline(self):
        """Test a final newline does not add a line."""
        assert split_lines(b"a\nb\n") == [b"a", b"b"]

    def test_unterminated_last_line(self):
        """Test a final line without newline is kept."""
        assert split_lines(b"a\nb") == [b"a", b"b"]

    def test_blank_lines(self):
        """Test blank lines are kept."""
        assert split_lines(b"\n\na\n\n") == [b"", b"", b"a", b""]

    def test_crlf(self):
        """Test one trailing carriage return is dropped."""
        assert split_lines(b"a\r\nb\r\r\n") == [b"a", b"b\r"]


class TestParallelLineProcessor:
    """Tests for ParallelLineProcessor."""

    @pytest.mark.parametrize("parallelism", [1, 2, 8])
    def test_order_preserved(self, parallelism):
        """Test output order equals input order regardless of scheduling."""
        lines = [f"tag-{i}".encode() if i % 3 == 0 else f"line-{i}".encode() for i in range(300)]
        codec = JitterCodec()

        results = ParallelLineProcessor(codec, parallelism).transform(lines)

        expected = [line.upper() if line.startswith(b"tag") else line for line in lines]
        assert [r.data for r in results] == expected
        assert codec.calls == len(lines)

    @pytest.mark.parametrize("parallelism", [1, 2, 8])
    def test_worker_count(self, parallelism):
        """Test no more than N worker threads are used."""
        codec = JitterCodec()
        ParallelLineProcessor(codec, parallelism).transform([b"x"] * 200)

        assert 1 <= len(codec.threads) <= parallelism
        assert all(name.startswith("linecrypt-line") for name in codec.threads)

    def test_minimum_parallelism(self):
        """Test values below 1 fall back to one worker."""
        assert ParallelLineProcessor(JitterCodec(), 0).parallelism == 1

    def test_processed_flag(self):
        """Test the flag is the OR of per-line flags."""
        processor = ParallelLineProcessor(JitterCodec(), 4)
        assert processor.process(io.BytesIO(b"a\nb\n"), io.BytesIO()) is False
        assert processor.process(io.BytesIO(b"a\ntag\n"), io.BytesIO()) is True

    def test_zero_lines(self):
        """Test empty input produces no output."""
        out = io.BytesIO()
        assert ParallelLineProcessor(JitterCodec(), 4).process(io.BytesIO(b""), out) is False
        assert out.getvalue() == b""

    def test_output_terminated(self):
        """Test each line is followed by a newline."""
        out = io.BytesIO()
        ParallelLineProcessor(JitterCodec(), 2).process(io.BytesIO(b"a\nb"), out)
        assert out.getvalue() == b"a\nb\n"

    def test_failure_reports_lowest_line(self):
        """Test a failure surfaces as a single error with its line number."""
        lines = [f"line-{i}".encode() for i in range(100)]
        codec = JitterCodec(fail_on={lines[5], lines[50]})

        with pytest.raises(InvalidEncodingError) as exc_info:
            ParallelLineProcessor(codec, 8).transform(lines)

        assert exc_info.value.line == 6
        assert str(exc_info.value).startswith("[line 6]")

    def test_many_failures_do_not_block(self):
        """Test concurrent failures from every worker are all accepted."""
        lines = [f"line-{i}".encode() for i in range(64)]
        codec = JitterCodec(fail_on=set(lines))

        finished = threading.Event()
        error: list[Exception] = []

        def run():
            try:
                ParallelLineProcessor(codec, 8).transform(lines)
            except InvalidEncodingError as e:
                error.append(e)
            finished.set()

        thread = threading.Thread(target=run, daemon=True)
        thread.start()

        assert finished.wait(timeout=10)
        assert error and error[0].line == 1

    def test_failure_stops_claiming_work(self):
        """Test workers stop taking new lines after the first failure."""
        lines = [b"bad"] + [b"ok"] * 1000
        codec = JitterCodec(fail_on={b"bad"})

        with pytest.raises(InvalidEncodingError):
            ParallelLineProcessor(codec, 1).transform(lines)

        assert codec.calls == 1

    def test_no_output_on_failure(self):
        """Test nothing is written when a line fails."""
        out = io.BytesIO()
        codec = JitterCodec(fail_on={b"bad"})

        with pytest.raises(InvalidEncodingError):
            ParallelLineProcessor(codec, 4).process(io.BytesIO(b"a\nb\nbad\nc\n"), out)

        assert out.getvalue() == b""

    def test_unfilled_slot_raises(self):
        """Test a line left without a result fails instead of being dropped."""
        lines = [b"a", b"crash", b"c"]
        codec = CrashingCodec(on=b"crash")

        with pytest.raises(EncryptionError) as exc_info:
            ParallelLineProcessor(codec, 2).transform(lines)

        assert exc_info.value.line == 2
        assert "not processed" in str(exc_info.value)

    def test_write_failure(self):
        """Test write errors surface as IOFailureError."""
        with pytest.raises(IOFailureError):
            ParallelLineProcessor(JitterCodec(), 2).process(io.BytesIO(b"a\n"), FailingWriter())


class TestWithLineCodec:
    """Tests combining the processor with the real codec."""

    @pytest.mark.parametrize("parallelism", [1, 2, 8])
    def test_round_trip(self, parallelism):
        """Test encrypting then decrypting a document."""
        lines = []
        for i in range(200):
            if i % 4 == 0:
                lines.append(f"secret-{i}".encode() + MARKER)
            else:
                lines.append(f"plain line {i}".encode())
        document = b"\n".join(lines) + b"\n"

        encryptor = ParallelLineProcessor(LineCodec(KEY, Operation.ENCRYPT), parallelism)
        decryptor = ParallelLineProcessor(LineCodec(KEY, Operation.DECRYPT), parallelism)

        encrypted = io.BytesIO()
        assert encryptor.process(io.BytesIO(document), encrypted) is True

        encrypted_lines = encrypted.getvalue().splitlines()
        assert len(encrypted_lines) == len(lines)
        for original, enc in zip(lines, encrypted_lines):
            if original.endswith(MARKER):
                assert enc.startswith(b"### DIRECTIVE: DECRYPT: ")
            else:
                assert enc == original

        decrypted = io.BytesIO()
        assert decryptor.process(io.BytesIO(encrypted.getvalue()), decrypted) is True
        assert decrypted.getvalue() == document

    def test_truncated_line(self):
        """Test a truncated ciphertext line aborts the batch."""
        document = b"ok\n### DIRECTIVE: DECRYPT: AAAA\n"
        processor = ParallelLineProcessor(LineCodec(KEY, Operation.DECRYPT), 2)

        with pytest.raises(TruncatedInputError) as exc_info:
            processor.process(io.BytesIO(document), io.BytesIO())

        assert exc_info.value.line == 2
