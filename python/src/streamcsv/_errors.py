"""Exception and warning types for streamcsv."""


class CsvError(RuntimeError):
    """Base exception for streamcsv errors."""


class ParseError(CsvError):
    """Exception raised when CSV input cannot be parsed."""


class EncodingError(ParseError):
    """Exception raised when the byte source is not valid in its encoding.

    Attributes
    ----------
    offset : int
        Absolute byte offset of the first invalid byte.
    encoding : str
        Name of the codec used for decoding.
    reason : str
        Codec error description.
    """

    def __init__(self, offset: int, encoding: str, reason: str) -> None:
        super().__init__(f"invalid {encoding} data at byte {offset}: {reason}")
        self.offset = offset
        self.encoding = encoding
        self.reason = reason


class MalformedQuoteError(ParseError):
    """Exception raised for an unterminated quoted field or stray data after a closing quote.

    Attributes
    ----------
    line : int
        1-based line where the problem was found.
    offset : int
        0-based scalar offset into the decoded text.
    """

    def __init__(self, message: str, line: int, offset: int) -> None:
        super().__init__(f"{message} (line {line}, offset {offset})")
        self.line = line
        self.offset = offset


class EmptyInputError(CsvError):
    """Exception raised when the input holds no rows but a header is expected."""


class RaggedRowWarning(UserWarning):
    """Warning issued when rows wider than the column count are truncated."""
