import re
from decimal import Decimal, InvalidOperation
from typing import Iterator, NamedTuple

from sheet_interpreter.errors import InvalidCell, TableError

NUMBER_REGEX = re.compile(r"\d+(\.\d+)?([eE][+-]?\d+)?")


class CellCoordinate(NamedTuple):
    """0-indexed (column, row) pair. Column comes first, as in `B3`."""

    column: int
    row: int

    def label(self) -> str:
        # Avoid circular imports
        from sheet_interpreter.utils import coordinate_label

        return coordinate_label(self.column, self.row)


class CellRangeBounds(NamedTuple):
    """Half-open column and row bounds of a rectangular range."""

    columns: range
    rows: range

    def coordinates(self) -> Iterator[CellCoordinate]:
        """Iterate the covered cells column by column."""
        for column in self.columns:
            for row in self.rows:
                yield CellCoordinate(column, row)


# A value produced by evaluation: either a number or the error that prevented
# computing it. Errors travel as values so that a failing cell can be memoized.
CellValue = Decimal | TableError


def parse_number(val: str) -> Decimal:
    """Parse the text of a literal number cell."""
    text = val.strip()
    if not NUMBER_REGEX.fullmatch(text):
        raise InvalidCell(f"Could not format {val!r} as a valid number")
    try:
        return Decimal(text)
    except InvalidOperation:
        raise InvalidCell(f"Could not format {val!r} as a valid number")


def is_error(value: CellValue | None) -> bool:
    return isinstance(value, TableError)
