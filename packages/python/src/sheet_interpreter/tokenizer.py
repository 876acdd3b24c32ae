from decimal import Decimal, InvalidOperation
from enum import Enum, auto
from typing import Iterator, List, NamedTuple, Optional

from sheet_interpreter.errors import TokenizerError
from sheet_interpreter.functions import SHEET_FUNCTIONS
from sheet_interpreter.types import CellCoordinate, CellRangeBounds
from sheet_interpreter.utils import column_as_int

DIGITS = "0123456789"
LETTERS = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"


class TokenType(Enum):
    NUMBER = auto()
    CELL_REF = auto()
    CELL_RANGE = auto()
    COMMA = auto()
    BUILTIN = auto()
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    LPAREN = auto()
    RPAREN = auto()


class Token(NamedTuple):
    type: TokenType
    value: Decimal | CellCoordinate | CellRangeBounds | str | None = None


PUNCTUATION = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ",": TokenType.COMMA,
}
SYMBOLS = {token_type: symbol for symbol, token_type in PUNCTUATION.items()}


class SheetTokenizer:
    """Lazily turns the text of a formula (without its leading `=`) into tokens.

    Iterating the tokenizer consumes it: once exhausted it yields nothing more.
    Lexical errors are raised from the iteration as `TokenizerError`.
    """

    def __init__(self, formula: str):
        self.formula = formula
        self.pos = 0
        self.length = len(formula)

    def __iter__(self) -> Iterator[Token]:
        return self

    def __next__(self) -> Token:
        token = self.next_token()
        if token is None:
            raise StopIteration
        return token

    def tokenize(self) -> List[Token]:
        """Tokenize the rest of the formula and return the list of tokens."""
        return list(self)

    def next_token(self) -> Optional[Token]:
        while self.pos < self.length and self.formula[self.pos].isspace():
            self.pos += 1
        if self.pos >= self.length:
            return None

        char = self.formula[self.pos]
        if char in LETTERS:
            return self._tokenize_identifier()
        elif char in DIGITS:
            return self._tokenize_number()
        elif char in PUNCTUATION:
            self.pos += 1
            return Token(PUNCTUATION[char])

        raise TokenizerError(f"Unexpected character: {char!r} at position {self.pos}")

    def _peek(self) -> Optional[str]:
        if self.pos >= self.length:
            return None
        return self.formula[self.pos]

    def _read_while(self, allowed: str) -> str:
        start = self.pos
        while self.pos < self.length and self.formula[self.pos] in allowed:
            self.pos += 1
        return self.formula[start : self.pos]

    def _tokenize_number(self) -> Token:
        """Tokenize a number: digits, optionally followed by '.' and digits."""
        start = self.pos
        text = self._read_while(DIGITS)

        if self._peek() == ".":
            self.pos += 1
            fraction = self._read_while(DIGITS)
            if not fraction:
                raise TokenizerError(
                    f"Invalid number format at position {start}: trailing decimal point"
                )
            text = f"{text}.{fraction}"
            if self._peek() == ".":
                raise TokenizerError(
                    f"Invalid number format at position {start}: multiple decimal points"
                )

        try:
            value = Decimal(text)
        except InvalidOperation:
            raise TokenizerError(f"Could not format {text} as a valid number")
        return Token(TokenType.NUMBER, value)

    def _tokenize_identifier(self) -> Token:
        """Tokenize a builtin function name, a cell reference or a cell range."""
        start = self.pos
        letters = self._read_while(LETTERS)
        if letters.upper() in SHEET_FUNCTIONS:
            return Token(TokenType.BUILTIN, letters.upper())

        first = self._read_cell_reference(letters, start)
        if self._peek() != ":":
            return Token(TokenType.CELL_REF, first)

        self.pos += 1  # consume ':'
        try:
            second = self._read_cell_reference(self._read_while(LETTERS), start)
        except TokenizerError:
            raise TokenizerError(f"Invalid cell range at position {start}")

        bounds = CellRangeBounds(
            columns=range(
                min(first.column, second.column), max(first.column, second.column) + 1
            ),
            rows=range(min(first.row, second.row), max(first.row, second.row) + 1),
        )
        return Token(TokenType.CELL_RANGE, bounds)

    def _read_cell_reference(self, letters: str, start: int) -> CellCoordinate:
        """Decode the column letters already read, then read the row digits."""
        digits = self._read_while(DIGITS)
        if not letters or not digits:
            raise TokenizerError(f"Could not parse cell reference at position {start}")

        column = column_as_int(letters)
        try:
            row = int(digits)
        except ValueError:
            # More digits than int() converts
            raise TokenizerError(
                f"Could not parse cell reference at position {start}: row is too large"
            )
        if row == 0:
            raise TokenizerError(
                f"Could not parse cell reference at position {start}: rows start at 1"
            )
        return CellCoordinate(column - 1, row - 1)
