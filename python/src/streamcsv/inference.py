"""Schema inference: separator, header row, and column types.

Separator and header detection are strategies. Any object with a matching
``detect`` method can replace the defaults passed to
:class:`MetadataInferencer`, without changes to the tokenizer.
"""

from __future__ import annotations

import enum
import logging
import re
from collections import Counter
from dataclasses import dataclass
from typing import (
    Any,
    Dict,
    Iterable,
    List,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    Union,
)

from streamcsv._errors import ParseError
from streamcsv.assembler import Record
from streamcsv.dialect import Dialect
from streamcsv.tokenizer import Tokenizer

logger = logging.getLogger(__name__)

_INT_PATTERN = re.compile(r"-?[0-9]+")

DEFAULT_SEPARATORS: Tuple[str, ...] = (",", "\t", ";", "|")


class ColumnType(enum.Enum):
    """Inferred type of a column.

    Members are ordered from most to least specific in ``TYPE_PRECEDENCE``;
    ``STRING`` accepts every value and must stay last.
    """

    INT = "int"
    STRING = "string"

    def parses(self, value: str) -> bool:
        """Whether ``value`` is a valid literal of this type."""
        matcher = _MATCHERS.get(self)
        return matcher is None or matcher(value) is not None


_MATCHERS = {
    ColumnType.INT: _INT_PATTERN.fullmatch,
}

TYPE_PRECEDENCE: Tuple[ColumnType, ...] = (ColumnType.INT, ColumnType.STRING)


class InferenceStrictness(enum.Enum):
    """How quoted fields take part in type inference.

    ``LENIENT`` parses quoted and unquoted values alike, so ``"2"`` counts
    as an integer. ``STRICT`` makes any quoted value force ``STRING``.
    """

    LENIENT = "lenient"
    STRICT = "strict"


@dataclass(frozen=True)
class Column:
    name: str
    type: ColumnType


@dataclass(frozen=True)
class Metadata:
    """Schema inferred for one CSV input."""

    separator: str
    has_header_row: bool
    columns: Tuple[Column, ...]

    @property
    def column_names(self) -> List[str]:
        return [column.name for column in self.columns]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "separator": self.separator,
            "has_header_row": self.has_header_row,
            "columns": [
                {"name": column.name, "type": column.type.value}
                for column in self.columns
            ],
        }


def _widen(current: Optional[ColumnType], value: str) -> ColumnType:
    start = TYPE_PRECEDENCE.index(current) if current is not None else 0
    for column_type in TYPE_PRECEDENCE[start:]:
        if column_type.parses(value):
            return column_type
    return ColumnType.STRING


def infer_column_type(
    values: Iterable[str],
    quoted: Optional[Iterable[bool]] = None,
    strictness: Union[InferenceStrictness, str] = InferenceStrictness.LENIENT,
) -> ColumnType:
    """Infer the type of a single column.

    Empty values are skipped. The result is the most specific type every
    remaining value parses as; a column with no non-empty values is ``INT``.

    Parameters
    ----------
    values : iterable of str
        Cell values, header excluded.
    quoted : iterable of bool, optional
        Parallel flags telling which values came from quoted fields.
    strictness : InferenceStrictness or str
        With ``"strict"``, any quoted non-empty value makes the column
        ``STRING``.
    """
    strict = InferenceStrictness(strictness) is InferenceStrictness.STRICT
    flags = iter(quoted) if quoted is not None else None
    current: Optional[ColumnType] = None
    for value in values:
        was_quoted = next(flags, False) if flags is not None else False
        if not value:
            continue
        current = ColumnType.STRING if strict and was_quoted else _widen(current, value)
        if current is ColumnType.STRING:
            break
    return current or TYPE_PRECEDENCE[0]


class SeparatorDetector(Protocol):
    def detect(self, sample: str, complete: bool, dialect: Dialect) -> Tuple[str, float]:
        """Return the separator for ``sample`` and a confidence in [0, 1]."""
        ...


class HeaderDetector(Protocol):
    def detect(
        self,
        records: Sequence[Record],
        data_types: Sequence[Optional[ColumnType]],
    ) -> bool:
        """Decide whether ``records[0]`` is a header.

        ``data_types`` holds the type inferred for each column from
        ``records[1:]``, or None where those rows have no non-empty value.
        """
        ...


class ConsistencySeparatorDetector:
    """Pick the candidate separator that gives the steadiest field count.

    Each candidate is scored by the share of sample rows whose field count
    equals the most common count. A candidate that splits rows into a single
    field, or makes the sample unparseable, scores zero. Ties go to the
    earlier candidate. Candidates equal to the quote or escape character are
    never considered; with no positive score the first remaining candidate
    is returned.
    """

    def __init__(self, candidates: Sequence[str] = DEFAULT_SEPARATORS) -> None:
        if not candidates:
            raise ValueError("candidates must not be empty")
        self.candidates = tuple(candidates)

    def detect(self, sample: str, complete: bool, dialect: Dialect) -> Tuple[str, float]:
        usable = [
            candidate
            for candidate in self.candidates
            if candidate not in (dialect.quote_char, dialect.escape_char)
        ]
        if not usable:
            return self.candidates[0], 0.0
        best, best_score = usable[0], 0.0
        for candidate in usable:
            score = self.score(sample, complete, dialect.with_detection(delimiter=candidate))
            logger.debug("separator %r scored %.3f", candidate, score)
            if score > best_score:
                best, best_score = candidate, score
        return best, best_score

    def score(self, sample: str, complete: bool, dialect: Dialect) -> float:
        tokenizer = Tokenizer(dialect)
        try:
            tokens = tokenizer.feed(sample)
            if complete:
                tokens += tokenizer.finish()
        except ParseError:
            return 0.0

        widths = []
        fields = 0
        for token in tokens:
            fields += 1
            if token.row_end:
                widths.append(fields)
                fields = 0
        if not widths:
            return 0.0
        modal, frequency = Counter(widths).most_common(1)[0]
        if modal < 2:
            return 0.0
        return frequency / len(widths)


class TypeMismatchHeaderDetector:
    """Treat the first row as a header when its cells contradict column types.

    Every column whose data rows infer to a type narrower than ``STRING``
    casts a vote: a first-row cell that does not parse as that type, or is
    empty or missing, votes for a header; one that does votes against.
    String columns and columns without data values abstain. With no votes
    either way, ``default`` decides.
    """

    def __init__(self, default: bool = True) -> None:
        self.default = default

    def detect(
        self,
        records: Sequence[Record],
        data_types: Sequence[Optional[ColumnType]],
    ) -> bool:
        if not records:
            return self.default
        first = records[0].cells
        votes = 0
        for index, column_type in enumerate(data_types):
            if column_type is None or column_type is ColumnType.STRING:
                continue
            cell = first[index] if index < len(first) else ""
            votes += -1 if cell and column_type.parses(cell) else 1
        logger.debug("header votes: %d", votes)
        if votes == 0:
            return self.default
        return votes > 0


class MetadataInferencer:
    """Derive :class:`Metadata` from assembled records.

    Parameters
    ----------
    separator_detector : SeparatorDetector, optional
        Defaults to :class:`ConsistencySeparatorDetector`.
    header_detector : HeaderDetector, optional
        Defaults to :class:`TypeMismatchHeaderDetector`.
    strictness : InferenceStrictness or str, default "lenient"
        Treatment of quoted values during type inference.
    """

    def __init__(
        self,
        separator_detector: Optional[SeparatorDetector] = None,
        header_detector: Optional[HeaderDetector] = None,
        strictness: Union[InferenceStrictness, str] = InferenceStrictness.LENIENT,
    ) -> None:
        self.separator_detector = separator_detector or ConsistencySeparatorDetector()
        self.header_detector = header_detector or TypeMismatchHeaderDetector()
        self.strictness = InferenceStrictness(strictness)

    def detect_separator(
        self,
        sample: str,
        complete: bool = True,
        dialect: Optional[Dialect] = None,
    ) -> Tuple[str, float]:
        """Detect the separator of a text sample.

        ``complete`` tells whether the sample is the whole input; when it is
        not, a trailing partial row is ignored.
        """
        separator, confidence = self.separator_detector.detect(
            sample, complete, dialect or Dialect()
        )
        logger.debug("detected separator %r (confidence %.3f)", separator, confidence)
        return separator, confidence

    def column_types(
        self, records: Sequence[Record], width: int
    ) -> List[Optional[ColumnType]]:
        """Infer a type per column, or None for columns with no non-empty value."""
        types: List[Optional[ColumnType]] = []
        for index in range(width):
            values = []
            flags = []
            for cells, quoted in records:
                if index < len(cells) and cells[index]:
                    values.append(cells[index])
                    flags.append(index in quoted)
            types.append(
                infer_column_type(values, flags, self.strictness) if values else None
            )
        return types

    def infer(
        self,
        records: Sequence[Record],
        separator: str,
        has_header: Optional[bool] = None,
        width: Optional[int] = None,
    ) -> Metadata:
        """Build metadata from records; ``has_header`` overrides detection.

        ``width`` is the column count, when the caller already tracked the
        widest record; it defaults to the widest of ``records``.
        """
        if not records:
            return Metadata(separator, bool(has_header), ())

        if width is None:
            width = max(len(record.cells) for record in records)
        data_types = self.column_types(records[1:], width)
        if has_header is None:
            has_header = self.header_detector.detect(records, data_types)

        if has_header:
            header = records[0].cells
            names = [
                header[index] if index < len(header) and header[index] else f"column_{index}"
                for index in range(width)
            ]
            types = data_types
        else:
            names = [f"column_{index}" for index in range(width)]
            types = self.column_types(records, width)

        columns = tuple(
            Column(name, column_type or TYPE_PRECEDENCE[0])
            for name, column_type in zip(names, types)
        )
        logger.debug(
            "inferred %d columns from %d rows (header=%s)",
            len(columns), len(records), has_header,
        )
        return Metadata(separator, bool(has_header), columns)
