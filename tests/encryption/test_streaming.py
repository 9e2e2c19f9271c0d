"""Tests for whole-stream encryption."""

import io
import os

import pytest

from linecrypt.encryption.base import (
    BLOCK_SIZE,
    DEFAULT_CHUNK_SIZE,
    EncryptionConfigError,
    IOFailureError,
    IVPolicy,
    TruncatedInputError,
)
from linecrypt.encryption.keys import KeyMaterial
from linecrypt.encryption.streaming import StreamCodec, StreamStats, select_iv


class RecordingReader(io.RawIOBase):
    """Reader that records the largest read request."""

    def __init__(self, data: bytes, max_return: int | None = None):
        self._buf = io.BytesIO(data)
        self._max_return = max_return
        self.largest_request = 0

    def readable(self):
        return True

    def read(self, size=-1):
        self.largest_request = max(self.largest_request, size)
        if self._max_return is not None and size > self._max_return:
            size = self._max_return
        return self._buf.read(size)


class RecordingWriter(io.RawIOBase):
    """Writer that records the largest single write."""

    def __init__(self):
        self._buf = io.BytesIO()
        self.largest_write = 0

    def writable(self):
        return True

    def write(self, data):
        self.largest_write = max(self.largest_write, len(data))
        return self._buf.write(data)

    def getvalue(self):
        return self._buf.getvalue()


class FailingWriter(io.RawIOBase):
    """Writer that always fails."""

    def writable(self):
        return True

    def write(self, data):
        raise OSError("disk full")


@pytest.fixture
def key():
    """Generate test key."""
    return KeyMaterial.generate()


@pytest.fixture
def codec(key):
    """Codec with a random IV policy."""
    return StreamCodec(key)


def encrypt_bytes(codec: StreamCodec, data: bytes) -> bytes:
    out = io.BytesIO()
    codec.encrypt(io.BytesIO(data), out)
    return out.getvalue()


def decrypt_bytes(codec: StreamCodec, data: bytes) -> bytes:
    out = io.BytesIO()
    codec.decrypt(io.BytesIO(data), out)
    return out.getvalue()


class TestStreamEncryption:
    """Tests for StreamCodec.encrypt."""

    def test_layout(self, codec):
        """Test output is IV followed by same-length ciphertext."""
        plaintext = b"hello world"
        encrypted = encrypt_bytes(codec, plaintext)

        assert len(encrypted) == BLOCK_SIZE + len(plaintext)
        assert encrypted[BLOCK_SIZE:] != plaintext

    def test_random_iv(self, codec):
        """Test identical plaintexts encrypt differently."""
        plaintext = b"same data" * 10
        assert encrypt_bytes(codec, plaintext) != encrypt_bytes(codec, plaintext)

    def test_deterministic_iv(self, key):
        """Test the deterministic policy repeats ciphertexts."""
        codec = StreamCodec(key, iv_policy=IVPolicy.DETERMINISTIC)
        first = encrypt_bytes(codec, b"same data")
        second = encrypt_bytes(codec, b"same data")

        assert first == second
        assert first[:BLOCK_SIZE] == key.iv_prefix

    def test_empty_input(self, codec):
        """Test empty input produces empty output."""
        out = io.BytesIO()
        assert codec.encrypt(io.BytesIO(b""), out) is False
        assert out.getvalue() == b""

    def test_returns_processed(self, codec):
        """Test non-empty input reports processing."""
        assert codec.encrypt(io.BytesIO(b"x"), io.BytesIO()) is True

    def test_stats(self, key):
        """Test byte counters."""
        codec = StreamCodec(key, chunk_size=100)
        encrypt_bytes(codec, b"x" * 250)

        assert codec.last_stats.chunks == 3
        assert codec.last_stats.bytes_in == 250
        assert codec.last_stats.bytes_out == 250
        assert codec.last_stats.to_dict()["chunks"] == 3

    def test_write_failure(self, codec):
        """Test write errors surface as IOFailureError."""
        with pytest.raises(IOFailureError):
            codec.encrypt(io.BytesIO(b"data"), FailingWriter())

    def test_invalid_chunk_size(self, key):
        """Test chunk size validation."""
        with pytest.raises(EncryptionConfigError):
            StreamCodec(key, chunk_size=0)


class TestStreamDecryption:
    """Tests for StreamCodec.decrypt."""

    def test_round_trip(self, codec):
        """Test encrypt then decrypt."""
        plaintext = b"The quick brown fox jumps over the lazy dog\n" * 50
        assert decrypt_bytes(codec, encrypt_bytes(codec, plaintext)) == plaintext

    def test_round_trip_binary(self, codec):
        """Test arbitrary bytes including newlines and NULs."""
        plaintext = bytes(range(256)) * 20
        assert decrypt_bytes(codec, encrypt_bytes(codec, plaintext)) == plaintext

    def test_empty_round_trip(self, codec):
        """Test empty input decrypts to empty output."""
        out = io.BytesIO()
        assert codec.decrypt(io.BytesIO(b""), out) is False
        assert out.getvalue() == b""

    @pytest.mark.parametrize("length", [1, 8, BLOCK_SIZE - 1])
    def test_truncated_iv(self, codec, length):
        """Test input shorter than one block."""
        with pytest.raises(TruncatedInputError):
            codec.decrypt(io.BytesIO(b"\x00" * length), io.BytesIO())

    def test_iv_only(self, codec):
        """Test ciphertext of exactly one block decrypts to nothing."""
        out = io.BytesIO()
        assert codec.decrypt(io.BytesIO(b"\x00" * BLOCK_SIZE), out) is True
        assert out.getvalue() == b""

    def test_short_reads(self, codec):
        """Test the IV is assembled from short reads."""
        plaintext = b"short reads are fine"
        reader = RecordingReader(encrypt_bytes(codec, plaintext), max_return=3)
        out = io.BytesIO()
        codec.decrypt(reader, out)
        assert out.getvalue() == plaintext

    def test_wrong_key(self, codec):
        """Test a different key yields different bytes (no integrity check)."""
        plaintext = b"secret payload"
        encrypted = encrypt_bytes(codec, plaintext)
        other = StreamCodec(KeyMaterial.generate())
        assert decrypt_bytes(other, encrypted) != plaintext

    def test_decrypt_ignores_policy(self, key):
        """Test the IV is always read from the stream."""
        deterministic = StreamCodec(key, iv_policy=IVPolicy.DETERMINISTIC)
        random = StreamCodec(key)
        encrypted = encrypt_bytes(random, b"payload")
        assert decrypt_bytes(deterministic, encrypted) == b"payload"


class TestLargeStream:
    """Tests for chunked processing of large inputs."""

    def test_one_megabyte_round_trip(self, codec):
        """Test 1 MB of random data with bounded read and write sizes."""
        plaintext = os.urandom(1024 * 1024)

        reader = RecordingReader(plaintext)
        encrypted = RecordingWriter()
        codec.encrypt(reader, encrypted)

        assert reader.largest_request <= DEFAULT_CHUNK_SIZE
        assert encrypted.largest_write <= DEFAULT_CHUNK_SIZE

        reader = RecordingReader(encrypted.getvalue())
        decrypted = RecordingWriter()
        codec.decrypt(reader, decrypted)

        assert reader.largest_request <= DEFAULT_CHUNK_SIZE
        assert decrypted.largest_write <= DEFAULT_CHUNK_SIZE
        assert decrypted.getvalue() == plaintext

    def test_chunk_boundaries(self, key):
        """Test lengths around the chunk size."""
        codec = StreamCodec(key, chunk_size=64)
        for length in (63, 64, 65, 128, 129):
            plaintext = os.urandom(length)
            assert decrypt_bytes(codec, encrypt_bytes(codec, plaintext)) == plaintext


class TestHelpers:
    """Tests for module helpers."""

    def test_select_iv(self, key):
        """Test IV selection per policy."""
        assert select_iv(key, IVPolicy.DETERMINISTIC) == key.iv_prefix
        assert len(select_iv(key, IVPolicy.RANDOM)) == BLOCK_SIZE

    def test_stream_stats_defaults(self):
        """Test empty stats."""
        assert StreamStats().to_dict() == {"chunks": 0, "bytes_in": 0, "bytes_out": 0}
