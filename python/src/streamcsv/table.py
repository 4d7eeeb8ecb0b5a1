"""Read results: in-memory tables and row iterators."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

from streamcsv.inference import ColumnType, Metadata


def resolve_columns(metadata: Metadata, usecols: Sequence[Union[str, int]]) -> List[int]:
    """Map column names or indices to indices.

    Raises
    ------
    IndexError
        If an index is out of range.
    KeyError
        If a name is not a column.
    """
    names = metadata.column_names
    indices = []
    for column in usecols:
        if isinstance(column, int):
            if not 0 <= column < len(names):
                raise IndexError(f"column index {column} out of range (0-{len(names) - 1})")
            indices.append(column)
        else:
            if column not in names:
                raise KeyError(f"column {column!r} not found")
            indices.append(names.index(column))
    return indices


def select_metadata(metadata: Metadata, indices: Sequence[int]) -> Metadata:
    """Return metadata restricted to the given column indices."""
    return replace(metadata, columns=tuple(metadata.columns[i] for i in indices))


class Table:
    """A parsed CSV table.

    Rows are stored as lists of strings, every one holding exactly
    ``num_columns`` cells. Column types come from the inferred metadata and
    are applied by :meth:`to_arrow`.
    """

    def __init__(self, metadata: Metadata, rows: List[List[str]]) -> None:
        self._metadata = metadata
        self._rows = rows

    @property
    def metadata(self) -> Metadata:
        return self._metadata

    @property
    def num_rows(self) -> int:
        """Number of data rows."""
        return len(self._rows)

    @property
    def num_columns(self) -> int:
        """Number of columns."""
        return len(self._metadata.columns)

    @property
    def column_names(self) -> List[str]:
        """List of column names."""
        return self._metadata.column_names

    def column(self, index_or_name: Union[int, str]) -> List[str]:
        """Get column by index or name as list of strings."""
        (index,) = resolve_columns(self._metadata, [index_or_name])
        return [row[index] for row in self._rows]

    def row(self, index: int) -> List[str]:
        """Get row by index as list of strings."""
        return list(self._rows[index])

    def to_arrow(self):
        """Convert to a ``pyarrow.Table``.

        ``int`` columns become ``int64`` with empty cells as nulls; ``string``
        columns keep their values, empty strings included.

        Raises
        ------
        ImportError
            If pyarrow is not installed.
        """
        try:
            import pyarrow as pa
        except ImportError as exc:
            raise ImportError(
                "Table.to_arrow() requires pyarrow; install streamcsv[arrow]"
            ) from exc

        arrays = []
        for index, column in enumerate(self._metadata.columns):
            values = [row[index] for row in self._rows]
            if column.type is ColumnType.INT:
                arrays.append(
                    pa.array([int(v) if v else None for v in values], type=pa.int64())
                )
            else:
                arrays.append(pa.array(values, type=pa.string()))
        return pa.Table.from_arrays(arrays, names=self.column_names)

    def __arrow_c_stream__(self, requested_schema: Any = None) -> Any:
        """Export table data via Arrow C Stream Interface."""
        return self.to_arrow().__arrow_c_stream__(requested_schema)

    def __len__(self) -> int:
        return len(self._rows)

    def __repr__(self) -> str:
        return f"Table(num_rows={self.num_rows}, num_columns={self.num_columns})"


class RowIterator:
    """Iterator yielding one ``dict`` per data row, keyed by column name."""

    def __init__(
        self,
        metadata: Metadata,
        rows: Iterator[List[str]],
        skip_rows: int = 0,
        n_rows: Optional[int] = None,
        indices: Optional[Sequence[int]] = None,
    ) -> None:
        self._metadata = metadata
        self._rows = rows
        self._skip = skip_rows
        self._remaining = n_rows
        self._indices = list(indices) if indices is not None else None

    @property
    def column_names(self) -> List[str]:
        """List of column names."""
        return self._metadata.column_names

    def __iter__(self) -> "RowIterator":
        return self

    def __next__(self) -> Dict[str, Any]:
        while self._skip:
            next(self._rows)
            self._skip -= 1
        if self._remaining is not None:
            if self._remaining <= 0:
                raise StopIteration
            self._remaining -= 1
        row = next(self._rows)
        if self._indices is not None:
            row = [row[i] for i in self._indices]
        return dict(zip(self.column_names, row))

    def __repr__(self) -> str:
        return f"RowIterator(column_names={self.column_names!r})"
