from decimal import Decimal
from typing import NamedTuple, Optional

from sheet_interpreter.ast import ASTNode
from sheet_interpreter.errors import UnsupportedCellKind
from sheet_interpreter.parser import SheetParser
from sheet_interpreter.tokenizer import DIGITS, SheetTokenizer
from sheet_interpreter.types import CellValue, parse_number


class EmptyKind(NamedTuple):
    pass


class NumberKind(NamedTuple):
    value: Decimal


class ExprKind(NamedTuple):
    expr: ASTNode
    # None until evaluated, then the value or the error it produced
    result: Optional[CellValue] = None

    @property
    def evaluated(self) -> bool:
        return self.result is not None


CellKind = EmptyKind | NumberKind | ExprKind


class Cell(NamedTuple):
    source: str
    kind: CellKind

    @classmethod
    def from_source(cls, source: str) -> "Cell":
        """Build a cell from its raw text.

        Raises an `InvalidCell` subclass when the text is neither empty, a
        number nor a formula, or when the formula does not parse.
        """
        if not source:
            return cls(source, EmptyKind())

        first = source[0]
        if first == "=":
            expr = SheetParser(SheetTokenizer(source[1:])).parse()
            return cls(source, ExprKind(expr))
        if first in DIGITS:
            return cls(source, NumberKind(parse_number(source)))

        raise UnsupportedCellKind(f"Unsupported cell content: {source!r}")

    def __str__(self) -> str:
        kind = self.kind
        if isinstance(kind, EmptyKind):
            return ""
        if isinstance(kind, NumberKind):
            return str(kind.value)
        if kind.result is None:
            return self.source
        return str(kind.result)
