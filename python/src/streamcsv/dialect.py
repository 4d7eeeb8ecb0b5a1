"""CSV dialect description."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

_NEWLINES = ("\n", "\r")


@dataclass(frozen=True)
class Dialect:
    """CSV dialect configuration and detection result.

    The first four attributes configure tokenization. ``line_ending``,
    ``has_header`` and ``confidence`` describe what was detected in a file.

    Attributes
    ----------
    delimiter : str
        Field separator character (e.g., ',' for CSV, '\\t' for TSV).
    quote_char : str
        Quote character for enclosing fields (typically '"').
    escape_char : str or None
        Character that escapes a quote inside a quoted field (typically '\\').
        None disables backslash-style escaping.
    double_quote : bool
        Whether a doubled quote ("") inside a quoted field is a literal quote.
    line_ending : str
        Detected line ending style ('\\n', '\\r\\n', '\\r', 'mixed', or 'unknown').
    has_header : bool
        Whether the first row is a header.
    confidence : float
        Separator detection confidence from 0.0 to 1.0.
    """

    delimiter: str = ","
    quote_char: str = '"'
    escape_char: Optional[str] = "\\"
    double_quote: bool = False
    line_ending: str = "\n"
    has_header: bool = True
    confidence: float = 1.0

    def __post_init__(self) -> None:
        _check_char("delimiter", self.delimiter)
        _check_char("quote_char", self.quote_char)
        if self.escape_char is not None:
            _check_char("escape_char", self.escape_char)
        special = [self.delimiter, self.quote_char]
        if self.escape_char is not None:
            special.append(self.escape_char)
        if len(set(special)) != len(special):
            raise ValueError(
                "delimiter, quote_char and escape_char must be distinct characters"
            )
        if self.escape_char is not None and self.double_quote:
            raise ValueError("choose either escape_char or double_quote, not both")

    def with_detection(self, **changes) -> "Dialect":
        """Return a copy with detection results (or other fields) replaced."""
        return replace(self, **changes)


def _check_char(name: str, value: object) -> None:
    if not isinstance(value, str) or len(value) != 1:
        raise ValueError(f"{name} must be a single character")
    if value in _NEWLINES:
        raise ValueError(f"{name} cannot be a newline character")
