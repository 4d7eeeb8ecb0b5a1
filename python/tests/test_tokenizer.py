"""Tests for the suspendable tokenizer and row assembly."""

import pytest

from streamcsv import (
    CsvError,
    Dialect,
    MalformedQuoteError,
    OverflowPolicy,
    ParseError,
    ParseState,
    RowAssembler,
    Token,
    Tokenizer,
)
from streamcsv.assembler import normalize_row
from streamcsv.tokenizer import tokenize


def rows_of(tokens):
    """Group tokens into lists of cell text."""
    rows, current = [], []
    for token in tokens:
        current.append(token.text)
        if token.row_end:
            rows.append(current)
            current = []
    assert current == []
    return rows


def feed_in_pieces(text, size, dialect=None):
    """Tokenize text fed in pieces of the given size."""
    tokenizer = Tokenizer(dialect)
    tokens = []
    for start in range(0, len(text), size):
        tokens.extend(tokenizer.feed(text[start:start + size]))
    tokens.extend(tokenizer.finish())
    return tokens


SAMPLES = [
    "a,b,c\n1,2,3\n",
    'a,"b, with comma",c\n',
    '"multi\nline",x\r\n"y",\r\n',
    '1,"esc \\"quoted\\" and \\\\ slash",3\n',
    ",,\n,\n",
    "no newline at end",
    'quoted,"at end"',
    "cr\ronly\r",
]


class TestTokenBoundaries:
    """Tests that tokens never depend on where chunks are split."""

    @pytest.mark.parametrize("text", SAMPLES)
    @pytest.mark.parametrize("size", [1, 2, 3, 4, 7])
    def test_split_anywhere(self, text, size):
        """Test feeding pieces matches tokenizing in one call."""
        assert feed_in_pieces(text, size) == tokenize(text)

    def test_every_split_point(self):
        """Test all two-way splits of a tricky input."""
        text = 'a,"b\\"c\r\nd",e\r\n"f"\r\n'
        expected = tokenize(text)
        for split in range(len(text) + 1):
            tokenizer = Tokenizer()
            tokens = tokenizer.feed(text[:split]) + tokenizer.feed(text[split:])
            tokens += tokenizer.finish()
            assert tokens == expected, split

    def test_state_carried_between_chunks(self):
        """Test the parse state after a partial quoted field."""
        tokenizer = Tokenizer()

        assert tokenizer.feed('1,"par') == [Token("1", False, False)]
        assert tokenizer.state is ParseState.IN_QUOTED_FIELD
        assert tokenizer.feed("tial") == []
        assert tokenizer.feed('"') == []
        assert tokenizer.state is ParseState.QUOTE_SEEN_IN_QUOTED_FIELD
        assert tokenizer.feed("\n") == [Token("partial", True, True)]
        assert tokenizer.state is ParseState.ROW_BOUNDARY

    def test_escape_at_chunk_end(self):
        """Test a backslash ending a chunk escapes the next chunk's quote."""
        tokenizer = Tokenizer()

        tokenizer.feed('"a\\')
        assert tokenizer.state is ParseState.ESCAPE_IN_QUOTED_FIELD
        tokens = tokenizer.feed('"b"') + tokenizer.finish()

        assert tokens == [Token('a"b', True, True)]

    def test_carriage_return_at_chunk_end(self):
        """Test CRLF split across chunks is one terminator."""
        tokenizer = Tokenizer()

        tokens = tokenizer.feed("a,b\r")
        assert tokenizer.state is ParseState.CARRIAGE_RETURN
        tokens += tokenizer.feed("\nc,d\r\n") + tokenizer.finish()

        assert rows_of(tokens) == [["a", "b"], ["c", "d"]]
        assert tokenizer.line_endings == {"\r\n": 2}


class TestFieldRules:
    """Tests for the tokenizing rules of individual fields."""

    def test_unquoted_fields(self):
        """Test plain fields split on separator and newline."""
        assert rows_of(tokenize("a,b\nc,d\n")) == [["a", "b"], ["c", "d"]]

    def test_quote_inside_unquoted_field_is_literal(self):
        """Test a quote that does not start a field is kept."""
        assert rows_of(tokenize('ab"c,d\n')) == [['ab"c', "d"]]

    def test_quoted_separator_and_newline(self):
        """Test separators and newlines inside quotes are literal."""
        assert rows_of(tokenize('"a,b\nc",d')) == [["a,b\nc", "d"]]

    def test_backslash_escapes(self):
        """Test backslash escapes of quote and backslash only."""
        tokens = tokenize('"q\\"q","s\\\\s","n\\n"\n')

        assert rows_of(tokens) == [['q"q', "s\\s", "n\\n"]]

    def test_quoted_flag(self):
        """Test tokens record whether they were quoted."""
        assert tokenize('1,"2",""\n') == [
            Token("1", False, False),
            Token("2", False, True),
            Token("", True, True),
        ]

    def test_empty_fields(self):
        """Test consecutive separators produce empty fields."""
        assert rows_of(tokenize(",a,,\n")) == [["", "a", "", ""]]

    def test_blank_lines_are_skipped(self):
        """Test blank lines outside quotes produce no rows."""
        assert rows_of(tokenize("a\n\n\r\nb\n")) == [["a"], ["b"]]

    def test_doubled_quote_dialect(self):
        """Test doubled-quote escaping when selected by the dialect."""
        dialect = Dialect(escape_char=None, double_quote=True)

        tokens = tokenize('"Has a ""nickname""","back\\slash"\n', dialect)

        assert rows_of(tokens) == [['Has a "nickname"', "back\\slash"]]

    def test_custom_delimiter_and_quote(self):
        """Test a tab delimiter with single quotes."""
        dialect = Dialect(delimiter="\t", quote_char="'")

        assert rows_of(tokenize("'a\tb'\tc\n", dialect)) == [["a\tb", "c"]]

    def test_line_ending_counts(self):
        """Test terminators are counted by style."""
        tokenizer = Tokenizer()
        tokenizer.feed("a\nb\r\nc\rd")
        tokenizer.finish()

        assert tokenizer.line_endings == {"\n": 1, "\r\n": 1, "\r": 1}


class TestEndOfInput:
    """Tests for finish() in each state."""

    def test_pending_unquoted_field(self):
        """Test an open unquoted field ends the last row."""
        assert rows_of(tokenize("a,b")) == [["a", "b"]]

    def test_pending_separator(self):
        """Test a trailing separator ends the row with an empty field."""
        assert rows_of(tokenize("a,")) == [["a", ""]]

    def test_closed_quote(self):
        """Test a closed quoted field at end of input."""
        assert tokenize('"a"') == [Token("a", True, True)]

    def test_row_boundary(self):
        """Test nothing is emitted after a complete row."""
        tokenizer = Tokenizer()
        tokenizer.feed("a\n")

        assert tokenizer.finish() == []
        assert tokenizer.state is ParseState.END_OF_INPUT

    @pytest.mark.parametrize("text", ['"open', '"open\\', 'a,"b\nc'])
    def test_unterminated_quote(self, text):
        """Test end of input inside quotes."""
        with pytest.raises(MalformedQuoteError, match="unterminated"):
            tokenize(text)

    def test_feed_after_finish(self):
        """Test the tokenizer must be reset after finishing."""
        tokenizer = Tokenizer()
        tokenizer.finish()

        with pytest.raises(CsvError):
            tokenizer.feed("a")

        tokenizer.reset()
        assert tokenizer.feed("a\n") == [Token("a", True, False)]


class TestMalformedQuote:
    """Tests for characters after a closing quote."""

    def test_garbage_after_quote(self):
        """Test the error position of a stray character."""
        tokenizer = Tokenizer()
        tokenizer.feed("a\nb\n")

        with pytest.raises(MalformedQuoteError) as excinfo:
            tokenizer.feed('"x" ,y')

        assert excinfo.value.line == 3
        assert excinfo.value.offset == 7
        assert isinstance(excinfo.value, ParseError)

    def test_doubled_quote_without_dialect(self):
        """Test "" inside quotes is an error with backslash escaping."""
        with pytest.raises(MalformedQuoteError):
            tokenize('"a""b"\n')


class TestRowAssembler:
    """Tests for grouping tokens into records."""

    def test_records_across_pushes(self):
        """Test a row split over two pushes."""
        assembler = RowAssembler()

        assert assembler.push([Token("a", False, False)]) == []
        assert assembler.pending
        records = assembler.push([Token("b", True, True), Token("c", True, False)])

        assert [r.cells for r in records] == [["a", "b"], ["c"]]
        assert records[0].quoted == frozenset({1})
        assert assembler.max_fields == 2
        assert assembler.row_count == 2
        assert not assembler.pending

    def test_normalize_pads(self):
        """Test short rows are padded with empty strings."""
        assert normalize_row(["1"], 3) == ["1", "", ""]

    def test_normalize_copies(self):
        """Test the result is a new list."""
        cells = ["1", "2"]

        result = normalize_row(cells, 2)

        assert result == cells
        assert result is not cells

    def test_normalize_overflow_policies(self):
        """Test each overflow policy."""
        cells = ["1", "2", "3"]

        assert normalize_row(cells, 2, OverflowPolicy.TRUNCATE) == ["1", "2"]
        assert normalize_row(cells, 2, OverflowPolicy.KEEP) == ["1", "2", "3"]
        with pytest.raises(ParseError):
            normalize_row(cells, 2, OverflowPolicy.ERROR)


class TestDialect:
    """Tests for dialect validation."""

    @pytest.mark.parametrize("delimiter", [",,", "", "\n"])
    def test_invalid_delimiter(self, delimiter):
        """Test delimiters must be one non-newline character."""
        with pytest.raises(ValueError):
            Dialect(delimiter=delimiter)

    def test_conflicting_characters(self):
        """Test delimiter and quote must differ."""
        with pytest.raises(ValueError, match="distinct"):
            Dialect(delimiter='"')

    def test_one_escape_convention(self):
        """Test backslash and doubled-quote escaping are exclusive."""
        with pytest.raises(ValueError, match="either"):
            Dialect(double_quote=True)
