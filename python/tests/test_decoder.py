"""Tests for incremental decoding."""

import io

import pytest

from streamcsv import CsvError, Decoder, EncodingError


class TestChunks:
    """Tests for chunked decoding of each source type."""

    def test_text_source(self):
        """Test str input is sliced without decoding."""
        decoder = Decoder("abcdefg", chunk_size=3)

        assert list(decoder.chunks()) == ["abc", "def", "g"]
        assert decoder.bytes_read == decoder.total_bytes == 7

    def test_bytes_source(self):
        """Test bytes input decodes to the same text."""
        text = "naïve,東京\n"
        decoder = Decoder(text.encode("utf-8"), chunk_size=2)

        chunks = list(decoder.chunks())

        assert "".join(chunks) == text
        assert all(len(chunk) <= 2 for chunk in chunks)

    def test_binary_file_source(self):
        """Test reading from a binary file object."""
        decoder = Decoder(io.BytesIO(b"a,b\n1,2\n"), chunk_size=3)

        assert "".join(decoder.chunks()) == "a,b\n1,2\n"
        assert decoder.total_bytes == 8

    def test_text_file_source(self):
        """Test a text-mode file passes strings through."""
        decoder = Decoder(io.StringIO("a,b\n"), chunk_size=2)

        assert "".join(decoder.chunks()) == "a,b\n"

    def test_bom_removed(self):
        """Test a leading byte order mark is dropped."""
        decoder = Decoder("\ufeffx,y\n".encode("utf-8"), chunk_size=1)

        assert "".join(decoder.chunks()) == "x,y\n"

    def test_utf16(self):
        """Test a multi-byte encoding with its own byte order mark."""
        decoder = Decoder("a,b\n1,2\n".encode("utf-16"), encoding="utf-16", chunk_size=3)

        assert "".join(decoder.chunks()) == "a,b\n1,2\n"


class TestRestart:
    """Tests for rewinding to the start of the source."""

    def test_chunks_restart(self):
        """Test each chunks() call starts over."""
        decoder = Decoder(io.BytesIO(b"abc"), chunk_size=2)

        assert list(decoder.chunks()) == list(decoder.chunks())

    def test_seekable_file_starts_at_initial_position(self):
        """Test rewinding returns to where the file was when wrapped."""
        stream = io.BytesIO(b"skip|a,b\n")
        stream.seek(5)
        decoder = Decoder(stream)

        assert "".join(decoder.chunks()) == "a,b\n"
        assert "".join(decoder.chunks()) == "a,b\n"

    def test_non_seekable_stream(self):
        """Test a one-shot stream cannot be read twice."""

        class OneShot(io.RawIOBase):
            def __init__(self, data):
                self._data = io.BytesIO(data)

            def readable(self):
                return True

            def read(self, size=-1):
                return self._data.read(size)

        decoder = Decoder(OneShot(b"abc"))

        assert not decoder.rewindable
        assert decoder.total_bytes == 0
        assert "".join(decoder.chunks()) == "abc"
        with pytest.raises(CsvError, match="not seekable"):
            decoder.reset()


class TestEncodingErrors:
    """Tests for malformed byte sequences."""

    @pytest.mark.parametrize("chunk_size", [1, 2, 3, 1024])
    def test_invalid_byte_offset(self, chunk_size):
        """Test the offset of an invalid byte does not depend on chunking."""
        decoder = Decoder(b"ab\xc3\xa9cd\xffef", chunk_size=chunk_size)

        with pytest.raises(EncodingError) as excinfo:
            list(decoder.chunks())

        assert excinfo.value.offset == 6
        assert excinfo.value.encoding == "utf-8"

    @pytest.mark.parametrize("chunk_size", [1, 2, 1024])
    def test_bad_continuation_byte(self, chunk_size):
        """Test a lead byte followed by a non-continuation byte."""
        decoder = Decoder(b"1,\xc3(", chunk_size=chunk_size)

        with pytest.raises(EncodingError) as excinfo:
            list(decoder.chunks())

        assert excinfo.value.offset == 2

    def test_truncated_at_end(self):
        """Test a multi-byte sequence cut off by end of input."""
        decoder = Decoder(b"1,\xe6\x9d", chunk_size=1)

        with pytest.raises(EncodingError) as excinfo:
            list(decoder.chunks())

        assert excinfo.value.offset == 2
        assert "byte 2" in str(excinfo.value)


class TestValidation:
    """Tests for constructor arguments."""

    def test_unknown_encoding(self):
        """Test an unknown codec name."""
        with pytest.raises(LookupError):
            Decoder(b"", encoding="no-such-codec")

    @pytest.mark.parametrize("chunk_size", [0, -5])
    def test_chunk_size(self, chunk_size):
        """Test non-positive chunk sizes."""
        with pytest.raises(ValueError):
            Decoder(b"", chunk_size=chunk_size)

    def test_unsupported_source(self):
        """Test objects without read()."""
        with pytest.raises(TypeError):
            Decoder(42)
