"""Grouping of field tokens into rows, and ragged-row normalization."""

from __future__ import annotations

import enum
from typing import FrozenSet, Iterable, List, NamedTuple

from streamcsv._errors import ParseError
from streamcsv.tokenizer import Token


class Record(NamedTuple):
    """A completed row and the indices of its quoted fields."""

    cells: List[str]
    quoted: FrozenSet[int]


class OverflowPolicy(enum.Enum):
    """What to do with rows that have more fields than there are columns."""

    TRUNCATE = "truncate"
    KEEP = "keep"
    ERROR = "error"


class RowAssembler:
    """Collect tokens into records, tracking the widest row seen."""

    def __init__(self) -> None:
        self._cells: List[str] = []
        self._quoted: List[int] = []
        self.max_fields = 0
        self.row_count = 0

    @property
    def pending(self) -> bool:
        """Whether a partially assembled row is buffered."""
        return bool(self._cells)

    def push(self, tokens: Iterable[Token]) -> List[Record]:
        """Add tokens and return the records they complete."""
        records = []
        cells = self._cells
        for text, row_end, quoted in tokens:
            if quoted:
                self._quoted.append(len(cells))
            cells.append(text)
            if row_end:
                records.append(Record(cells, frozenset(self._quoted)))
                if len(cells) > self.max_fields:
                    self.max_fields = len(cells)
                cells = self._cells = []
                self._quoted = []
        self.row_count += len(records)
        return records


def normalize_row(
    cells: List[str],
    width: int,
    policy: OverflowPolicy = OverflowPolicy.TRUNCATE,
) -> List[str]:
    """Return a copy of ``cells`` fitted to ``width`` columns.

    Short rows are padded with empty strings. Long rows are truncated, kept
    as they are, or rejected depending on ``policy``.

    Raises
    ------
    ParseError
        If the row is too wide and ``policy`` is ``OverflowPolicy.ERROR``.
    """
    count = len(cells)
    if count < width:
        return cells + [""] * (width - count)
    if count > width:
        if policy is OverflowPolicy.ERROR:
            raise ParseError(f"row has {count} fields, expected at most {width}")
        if policy is OverflowPolicy.TRUNCATE:
            return cells[:width]
    return list(cells)
