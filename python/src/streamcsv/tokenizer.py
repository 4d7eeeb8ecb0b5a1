"""Suspendable CSV tokenizer.

The tokenizer consumes decoded text one chunk at a time and turns it into
field tokens. Everything needed to resume after a chunk boundary lives in
two attributes: the current :class:`ParseState` and the partial field being
accumulated. Feeding the same text split at any points therefore yields the
same tokens.

Escaping follows the dialect. By default a backslash inside a quoted field
escapes a quote (``\\"``) or another backslash (``\\\\``); a backslash before
any other character is kept literally. With ``Dialect(escape_char=None,
double_quote=True)`` a doubled quote (``""``) is the escape instead.
"""

from __future__ import annotations

import enum
from collections import Counter
from typing import List, NamedTuple

from streamcsv._errors import CsvError, MalformedQuoteError
from streamcsv.dialect import Dialect


class ParseState(enum.Enum):
    """Tokenizer state carried across chunk boundaries."""

    ROW_BOUNDARY = "row_boundary"
    FIELD_START = "field_start"
    IN_UNQUOTED_FIELD = "in_unquoted_field"
    IN_QUOTED_FIELD = "in_quoted_field"
    ESCAPE_IN_QUOTED_FIELD = "escape_in_quoted_field"
    QUOTE_SEEN_IN_QUOTED_FIELD = "quote_seen_in_quoted_field"
    CARRIAGE_RETURN = "carriage_return"
    END_OF_INPUT = "end_of_input"


_ROW_BOUNDARY = ParseState.ROW_BOUNDARY
_FIELD_START = ParseState.FIELD_START
_UNQUOTED = ParseState.IN_UNQUOTED_FIELD
_QUOTED = ParseState.IN_QUOTED_FIELD
_ESCAPE = ParseState.ESCAPE_IN_QUOTED_FIELD
_QUOTE_SEEN = ParseState.QUOTE_SEEN_IN_QUOTED_FIELD
_CARRIAGE_RETURN = ParseState.CARRIAGE_RETURN
_END = ParseState.END_OF_INPUT


class Token(NamedTuple):
    """One field of a row.

    ``text`` is the cell value with quoting and escapes removed, ``row_end``
    marks the last field of a row and ``quoted`` records whether the field
    was enclosed in quotes.
    """

    text: str
    row_end: bool
    quoted: bool


class Tokenizer:
    """State machine splitting text chunks into field tokens.

    Parameters
    ----------
    dialect : Dialect, optional
        Delimiter, quote and escape configuration. Defaults to ``Dialect()``.

    Examples
    --------
    >>> tokenizer = Tokenizer()
    >>> tokenizer.feed('a,"b')
    [Token(text='a', row_end=False, quoted=False)]
    >>> tokenizer.feed('c"\\n')
    [Token(text='bc', row_end=True, quoted=True)]
    """

    def __init__(self, dialect: Dialect | None = None) -> None:
        self.dialect = dialect or Dialect()
        self.reset()

    def reset(self) -> None:
        """Discard all state and start again at the beginning of input."""
        self._state = _ROW_BOUNDARY
        self._field: List[str] = []
        self._quoted = False
        self._position = 0
        self._line = 1
        self._line_endings: Counter = Counter()

    @property
    def state(self) -> ParseState:
        return self._state

    @property
    def position(self) -> int:
        """Number of characters consumed so far."""
        return self._position

    @property
    def line(self) -> int:
        """Current 1-based line number, counting newlines inside quotes."""
        return self._line

    @property
    def line_endings(self) -> Counter:
        """Counts of row terminators ('\\n', '\\r\\n', '\\r') seen outside quotes."""
        return self._line_endings

    def feed(self, chunk: str) -> List[Token]:
        """Consume one chunk and return the tokens completed inside it.

        A field still open at the end of the chunk is kept and continued by
        the next call.

        Raises
        ------
        MalformedQuoteError
            If a closing quote is followed by anything other than a
            delimiter, a newline, or (with double_quote) another quote.
        CsvError
            If called after ``finish()``.
        """
        state = self._state
        if state is _END:
            raise CsvError("tokenizer already finished; call reset() first")

        delimiter = self.dialect.delimiter
        quote = self.dialect.quote_char
        escape = self.dialect.escape_char
        double_quote = self.dialect.double_quote
        line_endings = self._line_endings
        field = self._field
        quoted = self._quoted
        tokens: List[Token] = []
        emit = tokens.append

        for index, ch in enumerate(chunk):
            if state is _CARRIAGE_RETURN:
                state = _ROW_BOUNDARY
                if ch == "\n":
                    line_endings["\r\n"] += 1
                    continue
                line_endings["\r"] += 1

            if state is _UNQUOTED:
                if ch == delimiter:
                    emit(Token("".join(field), False, False))
                    field.clear()
                    state = _FIELD_START
                elif ch == "\n" or ch == "\r":
                    emit(Token("".join(field), True, False))
                    field.clear()
                    state = _terminate(ch, line_endings)
                else:
                    field.append(ch)

            elif state is _QUOTED:
                if ch == quote:
                    state = _QUOTE_SEEN
                elif ch == escape:
                    state = _ESCAPE
                else:
                    field.append(ch)

            elif state is _ROW_BOUNDARY or state is _FIELD_START:
                if ch == quote:
                    quoted = True
                    state = _QUOTED
                elif ch == delimiter:
                    emit(Token("", False, False))
                    state = _FIELD_START
                elif ch == "\n" or ch == "\r":
                    if state is _FIELD_START:
                        emit(Token("", True, False))
                    state = _terminate(ch, line_endings)
                else:
                    field.append(ch)
                    state = _UNQUOTED

            elif state is _QUOTE_SEEN:
                if ch == delimiter:
                    emit(Token("".join(field), False, True))
                    field.clear()
                    quoted = False
                    state = _FIELD_START
                elif ch == "\n" or ch == "\r":
                    emit(Token("".join(field), True, True))
                    field.clear()
                    quoted = False
                    state = _terminate(ch, line_endings)
                elif ch == quote and double_quote:
                    field.append(quote)
                    state = _QUOTED
                else:
                    self._save(state, quoted)
                    raise MalformedQuoteError(
                        f"unexpected {ch!r} after closing quote",
                        self._line + chunk.count("\n", 0, index),
                        self._position + index,
                    )

            else:  # _ESCAPE
                if ch != quote and ch != escape:
                    field.append(escape)
                field.append(ch)
                state = _QUOTED

        self._save(state, quoted)
        self._position += len(chunk)
        self._line += chunk.count("\n")
        return tokens

    def finish(self) -> List[Token]:
        """Flush the final field at end of input.

        An open unquoted field, a pending empty field after a delimiter, or
        a closed quoted field ends the last row as if a newline followed.

        Raises
        ------
        MalformedQuoteError
            If input ends inside a quoted field.
        """
        state = self._state
        if state is _END:
            return []
        if state is _QUOTED or state is _ESCAPE:
            raise MalformedQuoteError(
                "unterminated quoted field", self._line, self._position
            )

        tokens: List[Token] = []
        if state is _CARRIAGE_RETURN:
            self._line_endings["\r"] += 1
        elif state is _UNQUOTED or state is _FIELD_START or state is _QUOTE_SEEN:
            tokens.append(Token("".join(self._field), True, self._quoted))
            self._field.clear()
        self._save(_END, False)
        return tokens

    def _save(self, state: ParseState, quoted: bool) -> None:
        self._state = state
        self._quoted = quoted


def _terminate(ch: str, line_endings: Counter) -> ParseState:
    if ch == "\r":
        return _CARRIAGE_RETURN
    line_endings["\n"] += 1
    return _ROW_BOUNDARY


def tokenize(text: str, dialect: Dialect | None = None) -> List[Token]:
    """Tokenize a complete text in one call."""
    tokenizer = Tokenizer(dialect)
    return tokenizer.feed(text) + tokenizer.finish()
