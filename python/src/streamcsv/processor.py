"""CSV processor facade: decoding, tokenizing, inference and row access."""

from __future__ import annotations

import logging
import os
import warnings
from typing import Callable, Iterator, List, Optional, Union

from streamcsv._errors import EmptyInputError, RaggedRowWarning
from streamcsv.assembler import OverflowPolicy, Record, RowAssembler, normalize_row
from streamcsv.decoder import DEFAULT_BUFFER_SIZE, Decoder, Source
from streamcsv.dialect import Dialect
from streamcsv.inference import (
    DEFAULT_SEPARATORS,
    InferenceStrictness,
    Metadata,
    MetadataInferencer,
)
from streamcsv.tokenizer import Tokenizer

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_SIZE = 64 * 1024
# Separator detection needs at least this many line breaks in its sample
MIN_SAMPLE_LINES = 2

ProgressCallback = Callable[[int, int], None]


class CsvProcessor:
    """Parse a CSV source once and expose its metadata and data rows.

    The whole input is tokenized during construction. Completed rows are
    cached on the processor, so the source is read exactly once and metadata
    and rows never disagree.

    Parameters
    ----------
    contents : str, bytes-like, or binary file object
        The CSV data.
    buffer_size : int, default 65536
        Refill size in bytes (characters for text input). Affects only how
        often the tokenizer is refilled; fields may be longer than the buffer.
    delimiter : str, optional
        Field separator. Detected from the start of the input when omitted.
    has_header : bool, optional
        Whether the first row is a header. Detected when omitted.
    quote_char : str, default '"'
        Quote character.
    escape_char : str or None, default '\\'
        Escape character inside quoted fields. Use None with
        ``double_quote=True`` for doubled-quote escaping.
    double_quote : bool, default False
        Whether "" inside a quoted field is a literal quote.
    encoding : str, default "utf-8"
        Encoding of byte input.
    strictness : InferenceStrictness or str, default "lenient"
        Whether quoted values force the string type.
    sample_rows : int, optional
        Number of leading rows used for inference. All rows when omitted.
    sample_size : int, default 65536
        Minimum number of characters examined for separator detection.
    on_overflow : OverflowPolicy or str, default "truncate"
        Handling of rows wider than the column count.
    inferencer : MetadataInferencer, optional
        Custom inferencer; ``strictness`` is ignored when given.
    progress : callable, optional
        Called as ``progress(bytes_read, total_bytes)`` after every refill.

    Raises
    ------
    ValueError
        If an option is invalid.
    EncodingError
        If the input is not valid in ``encoding``.
    MalformedQuoteError
        If a quoted field is unterminated or followed by stray characters.
    EmptyInputError
        If the input has no rows and a header is expected.
    """

    def __init__(
        self,
        contents: Source,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        *,
        delimiter: Optional[str] = None,
        has_header: Optional[bool] = None,
        quote_char: str = '"',
        escape_char: Optional[str] = "\\",
        double_quote: bool = False,
        encoding: str = "utf-8",
        strictness: Union[InferenceStrictness, str] = InferenceStrictness.LENIENT,
        sample_rows: Optional[int] = None,
        sample_size: int = DEFAULT_SAMPLE_SIZE,
        on_overflow: Union[OverflowPolicy, str] = OverflowPolicy.TRUNCATE,
        inferencer: Optional[MetadataInferencer] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        if not isinstance(buffer_size, int) or buffer_size <= 0:
            raise ValueError("buffer_size must be a positive integer")
        if sample_rows is not None and sample_rows <= 0:
            raise ValueError("sample_rows must be a positive integer")
        if delimiter is None:
            # Placeholder until detection runs; it must differ from the quote and escape
            placeholder = next(
                (c for c in DEFAULT_SEPARATORS if c not in (quote_char, escape_char)),
                DEFAULT_SEPARATORS[0],
            )
        dialect = Dialect(
            delimiter=delimiter if delimiter is not None else placeholder,
            quote_char=quote_char,
            escape_char=escape_char,
            double_quote=double_quote,
        )

        self.buffer_size = buffer_size
        self.on_overflow = OverflowPolicy(on_overflow)
        self._inferencer = inferencer or MetadataInferencer(strictness=strictness)
        self._decoder = Decoder(contents, encoding=encoding, chunk_size=buffer_size)
        self._progress = progress

        self._records, dialect, confidence, tokenizer, assembler = self._parse(
            dialect, detect=delimiter is None, sample_size=sample_size
        )
        if not assembler.row_count and has_header is not False:
            raise EmptyInputError("input contains no rows")

        if sample_rows is None:
            self._metadata = self._inferencer.infer(
                self._records, dialect.delimiter, has_header, width=assembler.max_fields
            )
        else:
            self._metadata = self._inferencer.infer(
                self._records[:sample_rows], dialect.delimiter, has_header
            )
        self._dialect = dialect.with_detection(
            line_ending=_line_ending(tokenizer.line_endings),
            has_header=self._metadata.has_header_row,
            confidence=confidence,
        )
        logger.debug(
            "parsed %d rows, %d columns, separator %r, header=%s",
            assembler.row_count,
            len(self._metadata.columns),
            dialect.delimiter,
            self._metadata.has_header_row,
        )

    @classmethod
    def from_path(cls, path: Union[str, os.PathLike], **kwargs) -> "CsvProcessor":
        """Open ``path`` in binary mode and parse it."""
        with open(path, "rb") as f:
            return cls(f, **kwargs)

    def _parse(self, dialect: Dialect, detect: bool, sample_size: int):
        chunks = self._decoder.chunks()
        sample: List[str] = []
        confidence = 1.0
        if detect:
            length = lf = cr = 0
            complete = True
            for chunk in chunks:
                self._report()
                sample.append(chunk)
                length += len(chunk)
                lf += chunk.count("\n")
                cr += chunk.count("\r")
                if length >= sample_size and max(lf, cr) >= MIN_SAMPLE_LINES:
                    complete = False
                    break
            separator, confidence = self._inferencer.detect_separator(
                "".join(sample), complete, dialect
            )
            dialect = dialect.with_detection(delimiter=separator)

        tokenizer = Tokenizer(dialect)
        assembler = RowAssembler()
        records: List[Record] = []
        for chunk in sample:
            records.extend(assembler.push(tokenizer.feed(chunk)))
        for chunk in chunks:
            self._report()
            records.extend(assembler.push(tokenizer.feed(chunk)))
        records.extend(assembler.push(tokenizer.finish()))
        return records, dialect, confidence, tokenizer, assembler

    def _report(self) -> None:
        if self._progress is not None:
            self._progress(self._decoder.bytes_read, self._decoder.total_bytes)

    @property
    def metadata(self) -> Metadata:
        """Inferred separator, header flag and columns."""
        return self._metadata

    @property
    def dialect(self) -> Dialect:
        """Dialect used for parsing, with detection results filled in."""
        return self._dialect

    @property
    def num_rows(self) -> int:
        """Number of data rows (header excluded)."""
        return len(self._records) - self._first_data_row

    @property
    def _first_data_row(self) -> int:
        return 1 if self._metadata.has_header_row and self._records else 0

    def iter_rows(self) -> Iterator[List[str]]:
        """Yield data rows padded to the column count, starting over on each call."""
        width = len(self._metadata.columns)
        policy = self.on_overflow
        truncated = 0
        for record in self._records[self._first_data_row:]:
            if len(record.cells) > width and policy is OverflowPolicy.TRUNCATE:
                truncated += 1
            yield normalize_row(record.cells, width, policy)
        if truncated:
            logger.warning("truncated %d rows wider than %d columns", truncated, width)
            warnings.warn(
                f"{truncated} rows had more than {width} fields and were truncated",
                RaggedRowWarning,
                stacklevel=2,
            )

    def read_all(self) -> List[List[str]]:
        """Return all data rows, in input order, padded to the column count.

        Raises
        ------
        ParseError
            If a row is wider than the column count and ``on_overflow`` is
            ``"error"``.
        """
        return list(self.iter_rows())

    def __iter__(self) -> Iterator[List[str]]:
        return self.iter_rows()

    def __repr__(self) -> str:
        return (
            f"CsvProcessor(rows={self.num_rows}, columns={len(self._metadata.columns)}, "
            f"separator={self._metadata.separator!r}, "
            f"has_header_row={self._metadata.has_header_row})"
        )


def _line_ending(counts) -> str:
    seen = [ending for ending, count in counts.items() if count]
    if not seen:
        return "unknown"
    if len(seen) > 1:
        return "mixed"
    return seen[0]
