"""High-level read functions."""

from __future__ import annotations

import logging
import os
from typing import BinaryIO, Optional, Sequence, Union

from streamcsv.decoder import DEFAULT_BUFFER_SIZE
from streamcsv.dialect import Dialect
from streamcsv.assembler import OverflowPolicy
from streamcsv.inference import InferenceStrictness
from streamcsv.processor import CsvProcessor, ProgressCallback
from streamcsv.table import RowIterator, Table, resolve_columns, select_metadata

logger = logging.getLogger(__name__)

PathOrBuffer = Union[str, "os.PathLike[str]", bytes, BinaryIO]


def _process(source: PathOrBuffer, **kwargs) -> CsvProcessor:
    if isinstance(source, (str, os.PathLike)):
        return CsvProcessor.from_path(source, **kwargs)
    return CsvProcessor(source, **kwargs)


def _check_window(skip_rows: int, n_rows: Optional[int]) -> None:
    if skip_rows < 0:
        raise ValueError("skip_rows must be non-negative")
    if n_rows is not None and n_rows < 0:
        raise ValueError("n_rows must be non-negative")


def read_csv(
    source: PathOrBuffer,
    delimiter: Optional[str] = None,
    quote_char: Optional[str] = None,
    has_header: Optional[bool] = None,
    encoding: str = "utf-8",
    skip_rows: int = 0,
    n_rows: Optional[int] = None,
    usecols: Optional[Sequence[Union[str, int]]] = None,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    strictness: Union[InferenceStrictness, str] = InferenceStrictness.LENIENT,
    escape_char: Optional[str] = "\\",
    double_quote: bool = False,
    sample_rows: Optional[int] = None,
    on_overflow: Union[OverflowPolicy, str] = OverflowPolicy.TRUNCATE,
    progress: Optional[ProgressCallback] = None,
) -> Table:
    """Read a CSV file and return a Table object.

    Parameters
    ----------
    source : str, os.PathLike, bytes, or binary file object
        Path to the CSV file, its raw bytes, or an open binary file.
    delimiter : str, optional
        Field delimiter character. Auto-detected when not specified.
    quote_char : str, optional
        Quote character for enclosing fields. Default is '"'.
    has_header : bool, optional
        Whether the first row contains column headers. Auto-detected when
        not specified.
    encoding : str, default "utf-8"
        File encoding.
    skip_rows : int, default 0
        Number of data rows to skip.
    n_rows : int, optional
        Maximum number of data rows to return.
    usecols : sequence of str or int, optional
        Column names or indices to keep, in the given order.
    buffer_size : int, default 65536
        Refill size used while tokenizing.
    strictness : InferenceStrictness or str, default "lenient"
        With "strict", quoted values make their column a string column.
    escape_char : str or None, default "\\"
        Escape character inside quoted fields. Pass None together with
        ``double_quote=True`` to read files that double their quotes.
    double_quote : bool, default False
        Whether "" inside a quoted field is a literal quote.
    sample_rows : int, optional
        Number of leading rows used for inference. All rows when omitted.
    on_overflow : OverflowPolicy or str, default "truncate"
        Handling of rows wider than the column count: "truncate", "keep"
        or "error".
    progress : callable, optional
        Called as ``progress(bytes_read, total_bytes)`` after each refill.

    Returns
    -------
    Table
        The parsed data rows with inferred metadata.

    Raises
    ------
    ValueError
        If an option is invalid (e.g. a multi-character delimiter).
    ParseError
        If the input cannot be decoded or tokenized.
    EmptyInputError
        If the input has no rows.
    IndexError
        If a column index in usecols is out of range.
    KeyError
        If a column name in usecols is not found.
    """
    _check_window(skip_rows, n_rows)
    processor = _process(
        source,
        buffer_size=buffer_size,
        delimiter=delimiter,
        quote_char=quote_char or '"',
        has_header=has_header,
        encoding=encoding,
        strictness=strictness,
        escape_char=escape_char,
        double_quote=double_quote,
        sample_rows=sample_rows,
        on_overflow=on_overflow,
        progress=progress,
    )
    metadata = processor.metadata
    rows = processor.read_all()[skip_rows:]
    if n_rows is not None:
        rows = rows[:n_rows]
    if usecols is not None:
        indices = resolve_columns(metadata, usecols)
        rows = [[row[i] for i in indices] for row in rows]
        metadata = select_metadata(metadata, indices)
    logger.debug("read %d rows x %d columns", len(rows), len(metadata.columns))
    return Table(metadata, rows)


def read_csv_rows(
    source: PathOrBuffer,
    delimiter: Optional[str] = None,
    quote_char: Optional[str] = None,
    has_header: Optional[bool] = None,
    encoding: str = "utf-8",
    skip_rows: int = 0,
    n_rows: Optional[int] = None,
    usecols: Optional[Sequence[Union[str, int]]] = None,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    strictness: Union[InferenceStrictness, str] = InferenceStrictness.LENIENT,
    escape_char: Optional[str] = "\\",
    double_quote: bool = False,
    sample_rows: Optional[int] = None,
    on_overflow: Union[OverflowPolicy, str] = OverflowPolicy.TRUNCATE,
    progress: Optional[ProgressCallback] = None,
) -> RowIterator:
    """Read a CSV file and return an iterator of row dictionaries.

    Parameters are as for :func:`read_csv`. Rows are produced lazily from
    the parsed input, one ``dict`` per data row keyed by column name.
    """
    _check_window(skip_rows, n_rows)
    processor = _process(
        source,
        buffer_size=buffer_size,
        delimiter=delimiter,
        quote_char=quote_char or '"',
        has_header=has_header,
        encoding=encoding,
        strictness=strictness,
        escape_char=escape_char,
        double_quote=double_quote,
        sample_rows=sample_rows,
        on_overflow=on_overflow,
        progress=progress,
    )
    metadata = processor.metadata
    indices = None
    if usecols is not None:
        indices = resolve_columns(metadata, usecols)
        metadata = select_metadata(metadata, indices)
    return RowIterator(metadata, processor.iter_rows(), skip_rows, n_rows, indices)


def detect_dialect(
    source: PathOrBuffer,
    quote_char: Optional[str] = None,
    encoding: str = "utf-8",
    escape_char: Optional[str] = "\\",
    double_quote: bool = False,
) -> Dialect:
    """Detect the CSV dialect of a file.

    ``escape_char`` and ``double_quote`` select the escaping convention used
    while trying candidate separators, as for :func:`read_csv`.

    Returns
    -------
    Dialect
        The detected delimiter, header flag, line ending and confidence.

    Raises
    ------
    ParseError
        If the file cannot be decoded or tokenized.
    EmptyInputError
        If the file has no rows.
    """
    return _process(
        source,
        quote_char=quote_char or '"',
        encoding=encoding,
        escape_char=escape_char,
        double_quote=double_quote,
    ).dialect
