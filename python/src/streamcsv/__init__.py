"""
streamcsv: Streaming CSV tokenizer with schema inference.

This package parses delimited text from a byte stream of unknown size,
featuring:
- A suspendable tokenizer whose output does not depend on buffer boundaries
- Separator, header row and column type inference
- Padding of ragged rows to the inferred column count
- Arrow export of parsed tables through PyArrow

Basic Usage
-----------
>>> import streamcsv
>>> table = streamcsv.read_csv("data.csv")
>>> print(f"Loaded {table.num_rows} rows, {table.num_columns} columns")

Metadata
--------
>>> processor = streamcsv.CsvProcessor(b"a,b\\n1,2\\n")
>>> processor.metadata.separator, processor.metadata.has_header_row
(',', True)
>>> processor.read_all()
[['1', '2']]

Dialect Detection
-----------------
>>> dialect = streamcsv.detect_dialect("data.csv")
>>> print(f"Delimiter: {dialect.delimiter!r}, Has header: {dialect.has_header}")

Progress Reporting
------------------
>>> table = streamcsv.read_csv("large.csv", progress=streamcsv.default_progress)
"""

import sys

from streamcsv._api import detect_dialect, read_csv, read_csv_rows
from streamcsv._errors import (
    CsvError,
    EmptyInputError,
    EncodingError,
    MalformedQuoteError,
    ParseError,
    RaggedRowWarning,
)
from streamcsv.assembler import OverflowPolicy, Record, RowAssembler
from streamcsv.decoder import DEFAULT_BUFFER_SIZE, Decoder
from streamcsv.dialect import Dialect
from streamcsv.inference import (
    Column,
    ColumnType,
    ConsistencySeparatorDetector,
    InferenceStrictness,
    Metadata,
    MetadataInferencer,
    TypeMismatchHeaderDetector,
    infer_column_type,
)
from streamcsv.processor import CsvProcessor
from streamcsv.table import RowIterator, Table
from streamcsv.tokenizer import ParseState, Token, Tokenizer

# Version from setuptools-scm; source trees without build metadata have no _version
try:
    from streamcsv._version import version as __version__
except ImportError:
    __version__ = "0.0.0.dev0"


def _format_bytes(num_bytes: int) -> str:
    """Format bytes as human-readable string."""
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if abs(num_bytes) < 1024:
            return f"{num_bytes:.1f}{unit}"
        num_bytes /= 1024  # type: ignore[assignment]
    return f"{num_bytes:.1f}PB"


def default_progress(bytes_read: int, total_bytes: int) -> None:
    """Default progress callback that displays a progress bar.

    Displays a progress bar to stderr showing percentage complete and
    bytes processed. Nothing is drawn when the total size is unknown.

    Parameters
    ----------
    bytes_read : int
        Number of bytes read so far.
    total_bytes : int
        Total number of bytes to read, or 0 if unknown.

    Examples
    --------
    >>> import streamcsv
    >>> table = streamcsv.read_csv("large.csv", progress=streamcsv.default_progress)
    [===============>              ]  50.0% (512.0MB / 1.0GB)
    """
    if total_bytes == 0:
        return

    pct = min(bytes_read / total_bytes, 1.0)
    bar_width = 30
    filled = int(bar_width * pct)
    bar = "=" * filled + (">" if filled < bar_width else "") + " " * (bar_width - filled - 1)

    bytes_str = _format_bytes(bytes_read)
    total_str = _format_bytes(total_bytes)

    sys.stderr.write(f"\r[{bar}] {pct * 100:5.1f}% ({bytes_str} / {total_str})")
    sys.stderr.flush()

    if bytes_read >= total_bytes:
        sys.stderr.write("\n")
        sys.stderr.flush()


__all__ = [
    "Column",
    "ColumnType",
    "ConsistencySeparatorDetector",
    "CsvError",
    "CsvProcessor",
    "DEFAULT_BUFFER_SIZE",
    "Decoder",
    "Dialect",
    "EmptyInputError",
    "EncodingError",
    "InferenceStrictness",
    "MalformedQuoteError",
    "Metadata",
    "MetadataInferencer",
    "OverflowPolicy",
    "ParseError",
    "ParseState",
    "RaggedRowWarning",
    "Record",
    "RowAssembler",
    "RowIterator",
    "Table",
    "Token",
    "Tokenizer",
    "TypeMismatchHeaderDetector",
    "default_progress",
    "detect_dialect",
    "infer_column_type",
    "read_csv",
    "read_csv_rows",
    "__version__",
]
