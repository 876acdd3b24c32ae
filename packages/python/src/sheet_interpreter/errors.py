from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sheet_interpreter.types import CellCoordinate


class TableError(Exception):
    """Base class for every error raised or returned by the interpreter."""


# Table construction


class MismatchedColumns(TableError):
    def __init__(self, row: int, expected: int, found: int):
        super().__init__(
            f"Mismatched columns: row {row + 1} has {found} cells, expected {expected}"
        )
        self.row = row
        self.expected = expected
        self.found = found


class EmptyTable(TableError):
    def __init__(self):
        super().__init__("Empty table: no rows to build a table from")


# Cell construction. These are stored in the table slot of the failing cell.


class InvalidCell(TableError):
    pass


class TokenizerError(InvalidCell):
    pass


class ParseError(InvalidCell):
    pass


class UnsupportedCellKind(InvalidCell):
    pass


# Evaluation. These are returned as values and memoized like results.


class EvaluationError(TableError):
    pass


class EmptyCellEvaluation(EvaluationError):
    def __init__(self, coordinate: "CellCoordinate"):
        super().__init__(f"Cannot evaluate empty cell {coordinate.label()}")
        self.coordinate = coordinate


class CycleError(EvaluationError):
    def __init__(self, path: "tuple[CellCoordinate, ...]"):
        # The last coordinate is the one that closed the cycle
        super().__init__(
            "Detected cycle: " + " -> ".join(coord.label() for coord in path)
        )
        self.path = path
        self.coordinate = path[-1]


class MultipleValuesError(EvaluationError):
    pass


class InvalidCallee(EvaluationError):
    pass


class DecimalArithmeticError(EvaluationError):
    pass


class ReferenceOutOfBounds(EvaluationError):
    def __init__(self, coordinate: "CellCoordinate", columns: int, rows: int):
        super().__init__(
            f"Reference {coordinate.label()} is outside the table "
            f"({columns} columns x {rows} rows)"
        )
        self.coordinate = coordinate


class DependencyDepthError(EvaluationError):
    pass
