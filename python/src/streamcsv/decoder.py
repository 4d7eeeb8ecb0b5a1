"""Incremental decoding of byte sources into chunks of text."""

from __future__ import annotations

import codecs
import io
from typing import Iterator, Union

from streamcsv._errors import CsvError, EncodingError

DEFAULT_BUFFER_SIZE = 64 * 1024

_BOM = "\ufeff"

Source = Union[str, bytes, bytearray, memoryview, io.IOBase]


class Decoder:
    """Turn a byte source into a restartable sequence of text chunks.

    Parameters
    ----------
    source : str, bytes-like, or file object
        The data to decode. ``str`` input is passed through unchanged. File
        objects are read incrementally with ``read(chunk_size)``; a text-mode
        file yields its strings directly.
    encoding : str, default "utf-8"
        Codec used for bytes. A leading byte order mark is dropped.
    chunk_size : int
        Number of bytes (or characters, for text) read per refill. Each
        decoded chunk holds at most this many characters.

    Raises
    ------
    LookupError
        If the encoding is unknown.
    ValueError
        If chunk_size is not positive.
    TypeError
        If the source is not text, bytes, or a readable object.
    """

    def __init__(
        self,
        source: Source,
        encoding: str = "utf-8",
        chunk_size: int = DEFAULT_BUFFER_SIZE,
    ) -> None:
        if not isinstance(chunk_size, int) or chunk_size <= 0:
            raise ValueError("chunk_size must be a positive integer")
        codecs.lookup(encoding)

        self.encoding = encoding
        self.chunk_size = chunk_size
        self.bytes_read = 0
        self.total_bytes = 0
        self._start = None
        self._started = False

        if isinstance(source, (bytes, bytearray, memoryview)):
            source = bytes(source)
        if isinstance(source, (str, bytes)):
            self.total_bytes = len(source)
        elif hasattr(source, "read"):
            if _seekable(source):
                self._start = source.tell()
                end = source.seek(0, io.SEEK_END)
                source.seek(self._start)
                self.total_bytes = max(end - self._start, 0)
        else:
            raise TypeError(
                f"expected str, bytes, or a readable file object, got {type(source).__name__}"
            )
        self._source = source

    @property
    def rewindable(self) -> bool:
        """Whether ``reset()`` can return to the start of the source."""
        return isinstance(self._source, (str, bytes)) or self._start is not None

    def reset(self) -> None:
        """Rewind to the start of the source.

        Raises
        ------
        CsvError
            If the source is a non-seekable stream that has already been read.
        """
        if self._started and not self.rewindable:
            raise CsvError("source is not seekable and has already been read")
        if self._start is not None:
            self._source.seek(self._start)
        self.bytes_read = 0

    def chunks(self) -> Iterator[str]:
        """Yield decoded text chunks from the start of the source.

        Raises
        ------
        EncodingError
            On the first malformed byte sequence, including a sequence
            truncated by the end of input.
        """
        self.reset()
        self._started = True

        decoder = codecs.getincrementaldecoder(self.encoding)(errors="strict")
        fed = 0
        first = True
        for block in self._reads():
            self.bytes_read += len(block)
            if isinstance(block, str):
                text = block
            else:
                text = self._decode(decoder, block, fed, final=False)
                fed += len(block)
            if first and text:
                first = False
                if text.startswith(_BOM):
                    text = text[1:]
            if text:
                yield text

        tail = self._decode(decoder, b"", fed, final=True)
        if tail:
            yield tail[1:] if first and tail.startswith(_BOM) else tail

    def _decode(self, decoder, block: bytes, fed: int, final: bool) -> str:
        pending = len(decoder.getstate()[0])
        try:
            return decoder.decode(block, final=final)
        except UnicodeDecodeError as exc:
            raise EncodingError(fed - pending + exc.start, self.encoding, exc.reason) from None

    def _reads(self) -> Iterator[Union[str, bytes]]:
        size = self.chunk_size
        source = self._source
        if isinstance(source, (str, bytes)):
            for start in range(0, len(source), size):
                yield source[start:start + size]
            return
        while True:
            block = source.read(size)
            if not block:
                return
            yield block


def _seekable(stream) -> bool:
    seekable = getattr(stream, "seekable", None)
    return bool(seekable and seekable())
