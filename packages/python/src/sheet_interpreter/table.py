import logging
from typing import Iterable, Iterator, Optional, Sequence

import pandas as pd
from openpyxl.worksheet.worksheet import Worksheet
from typing_extensions import Self

from sheet_interpreter.cell import Cell, EmptyKind, ExprKind, NumberKind
from sheet_interpreter.errors import (
    CycleError,
    DependencyDepthError,
    EmptyCellEvaluation,
    EmptyTable,
    InvalidCell,
    MismatchedColumns,
    MultipleValuesError,
    ReferenceOutOfBounds,
    TableError,
)
from sheet_interpreter.interpreter import cell_references, evaluate
from sheet_interpreter.reader import read_worksheet, split_table_text
from sheet_interpreter.types import CellCoordinate, CellValue
from sheet_interpreter.utils import column_as_str

# A slot holds the cell, or the error that prevented building it
CellSlot = Cell | InvalidCell


def _build_cell(source: str) -> CellSlot:
    try:
        return Cell.from_source(source)
    except InvalidCell as e:
        logging.debug(f"Could not build cell from {source!r}: {e}")
        return e


class Table:
    """A fixed grid of cells and the driver that evaluates their formulas.

    Cells are stored column-major in a flat list: the cell at (column, row)
    lives at index `column * rows + row`. Construction, lookups and `run_all`
    all go through that one layout, and `run_all` visits cells in the same
    order (every row of column A, then column B, ...).
    """

    def __init__(self, columns: int, rows: int, cells: list[CellSlot]):
        if len(cells) != columns * rows:
            raise ValueError(
                f"Expected {columns * rows} cells for a {columns}x{rows} table, "
                f"got {len(cells)}"
            )
        self.columns = columns
        self.rows = rows
        self._cells = cells

    @classmethod
    def from_rows(cls, rows: Iterable[Sequence[str]]) -> Self:
        """Build a table from rows of cell sources.

        Every row must have the same number of cells. A cell whose source
        cannot be built keeps its error in its slot, the rest of the table is
        still built.
        """
        rows = [list(row) for row in rows]
        if not rows or not rows[0]:
            raise EmptyTable()

        n_rows = len(rows)
        n_columns = len(rows[0])
        for i, row in enumerate(rows):
            if len(row) != n_columns:
                raise MismatchedColumns(i, n_columns, len(row))

        cells: list[Optional[CellSlot]] = [None] * (n_rows * n_columns)
        for row_idx, row in enumerate(rows):
            for col_idx, source in enumerate(row):
                cells[col_idx * n_rows + row_idx] = _build_cell(source)
        return cls(n_columns, n_rows, cells)  # type: ignore[arg-type]

    @classmethod
    def from_text(cls, source: str, delimiter: str = "|") -> Self:
        """Build a table from delimited text, one row per line."""
        return cls.from_rows(split_table_text(source, delimiter))

    @classmethod
    def from_worksheet(cls, ws: Worksheet) -> Self:
        """Build a table from the used range of an openpyxl worksheet."""
        return cls.from_rows(read_worksheet(ws))

    def _index(self, column: int, row: int) -> int:
        return column * self.rows + row

    def _in_bounds(self, column: int, row: int) -> bool:
        return 0 <= column < self.columns and 0 <= row < self.rows

    def cell(self, column: int, row: int) -> CellSlot:
        """The cell at a 0-indexed position, or the error that replaced it."""
        if not self._in_bounds(column, row):
            raise IndexError(
                f"Cell ({column}, {row}) is outside the table "
                f"({self.columns} columns x {self.rows} rows)"
            )
        return self._cells[self._index(column, row)]

    def evaluate_cell(
        self,
        column: int,
        row: int,
        call_chain: tuple[CellCoordinate, ...] = (),
    ) -> CellValue:
        """Evaluate one cell, memoizing the outcome of formula cells.

        `call_chain` holds the cells being evaluated above this one. Reaching
        one of them again is a cycle. Each cell sees its own chain, so sibling
        references to the same cell (a diamond) are not mistaken for a cycle.
        """
        coord = CellCoordinate(column, row)
        if not self._in_bounds(column, row):
            return ReferenceOutOfBounds(coord, self.columns, self.rows)

        if coord in call_chain:
            error = CycleError(call_chain + (coord,))
            logging.debug(str(error))
            return error

        slot = self._cells[self._index(column, row)]
        if isinstance(slot, TableError):
            return slot

        kind = slot.kind
        if isinstance(kind, EmptyKind):
            return EmptyCellEvaluation(coord)
        if isinstance(kind, NumberKind):
            return kind.value
        if kind.result is not None:
            return kind.result

        return self._resolve(coord, kind, call_chain)

    def _pending_formula(self, coord: CellCoordinate) -> Optional[ExprKind]:
        """The formula at `coord` if it still has to be evaluated."""
        if not self._in_bounds(*coord):
            return None
        slot = self._cells[self._index(*coord)]
        if isinstance(slot, Cell) and isinstance(slot.kind, ExprKind):
            if slot.kind.result is None:
                return slot.kind
        return None

    def _resolve(
        self,
        coord: CellCoordinate,
        kind: ExprKind,
        call_chain: tuple[CellCoordinate, ...],
    ) -> CellValue:
        """Evaluate the formula at `coord` after the formulas it depends on.

        Dependencies are walked with an explicit stack instead of recursion,
        deepest first, so a long chain of references never reaches the
        interpreter's recursion limit. The stack is the call chain: a
        dependency already on it is left for the lookup to report as a cycle.
        """
        chain = list(call_chain)
        on_chain = set(chain)
        stack: list[tuple[CellCoordinate, Iterator[CellCoordinate]]] = []

        def push(cell: CellCoordinate, formula: ExprKind) -> None:
            chain.append(cell)
            on_chain.add(cell)
            stack.append((cell, cell_references(formula.expr)))

        push(coord, kind)
        while True:
            cell, references = stack[-1]
            for dependency in references:
                if dependency in on_chain:
                    continue
                pending = self._pending_formula(dependency)
                if pending is not None:
                    push(dependency, pending)
                    break
            else:
                stack.pop()
                chain.pop()
                on_chain.discard(cell)
                result = self._evaluate_formula(cell, tuple(chain))
                if not stack:
                    return result

    def _evaluate_formula(
        self, coord: CellCoordinate, call_chain: tuple[CellCoordinate, ...]
    ) -> CellValue:
        """Evaluate and memoize one formula whose dependencies are resolved."""
        index = self._index(*coord)
        slot = self._cells[index]
        assert isinstance(slot, Cell) and isinstance(slot.kind, ExprKind)
        call_chain = call_chain + (coord,)

        def lookup(other_column: int, other_row: int) -> CellValue:
            return self.evaluate_cell(other_column, other_row, call_chain)

        try:
            values = evaluate(slot.kind.expr, lookup)
        except RecursionError:
            # Only an expression nested this deeply gets here, dependencies
            # are already resolved
            logging.warning(f"Expression too deeply nested in {coord.label()}")
            values = [
                DependencyDepthError(
                    f"Expression too deeply nested to evaluate in {coord.label()}"
                )
            ]

        if len(values) == 1:
            result = values[0]
        else:
            result = MultipleValuesError(
                f"Cell {coord.label()} evaluates to {len(values)} values, expected one"
            )

        self._cells[index] = slot._replace(kind=slot.kind._replace(result=result))
        logging.debug(f"{coord.label()} = {result} ({slot.source})")
        return result

    def run_all(self) -> None:
        """Evaluate every formula cell that has no result yet."""
        for column in range(self.columns):
            for row in range(self.rows):
                slot = self._cells[self._index(column, row)]
                if (
                    isinstance(slot, Cell)
                    and isinstance(slot.kind, ExprKind)
                    and slot.kind.result is None
                ):
                    self.evaluate_cell(column, row)

    def values(self) -> list[list[Optional[CellValue]]]:
        """Row-major grid of results.

        Empty and unevaluated cells are None; failed cells hold their error.
        """
        grid: list[list[Optional[CellValue]]] = []
        for row in range(self.rows):
            grid_row: list[Optional[CellValue]] = []
            for column in range(self.columns):
                slot = self._cells[self._index(column, row)]
                if isinstance(slot, TableError):
                    grid_row.append(slot)
                elif isinstance(slot.kind, NumberKind):
                    grid_row.append(slot.kind.value)
                elif isinstance(slot.kind, ExprKind):
                    grid_row.append(slot.kind.result)
                else:
                    grid_row.append(None)
            grid.append(grid_row)
        return grid

    def render(self, delimiter: str = "|") -> str:
        """Text rendering: one line per row, each cell followed by `delimiter`."""
        lines = []
        for row in range(self.rows):
            line = ""
            for column in range(self.columns):
                line += f"{self._cells[self._index(column, row)]}{delimiter}"
            lines.append(line + "\n")
        return "".join(lines)

    def to_dataframe(self) -> pd.DataFrame:
        """Results as a DataFrame labelled like a spreadsheet (A, B, ... and 1, 2, ...)."""
        return pd.DataFrame(
            self.values(),
            columns=[column_as_str(column + 1) for column in range(self.columns)],
            index=range(1, self.rows + 1),
        )

    def __str__(self) -> str:
        return self.render()
