from decimal import Decimal

from openpyxl.worksheet.formula import ArrayFormula
from openpyxl.worksheet.worksheet import Worksheet


def split_table_text(source: str, delimiter: str = "|") -> list[list[str]]:
    """Split a delimited text table into rows of cell sources.

    One row per line. Blank lines are skipped, whitespace around each cell is
    removed and a delimiter closing the line does not start a new cell, so the
    output of `Table.render` reads back as the same grid.
    """
    rows = []
    for line in source.splitlines():
        if not line.strip():
            continue
        cells = [cell.strip() for cell in line.split(delimiter)]
        if len(cells) > 1 and line.rstrip().endswith(delimiter):
            cells.pop()
        rows.append(cells)
    return rows


def cell_source(value: object) -> str:
    """Source text for a value read from an openpyxl cell."""
    if value is None:
        return ""
    if isinstance(value, ArrayFormula):
        value = value.text
    if isinstance(value, bool):
        # Booleans are not numbers here, keep them as unsupported text
        return str(value).upper()
    if isinstance(value, (int, Decimal)):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    return str(value)


def read_worksheet(ws: Worksheet) -> list[list[str]]:
    """Read the used range of a worksheet, starting at A1, as rows of sources."""
    return [
        [cell_source(value) for value in row]
        for row in ws.iter_rows(
            min_row=1,
            max_row=ws.max_row,
            min_col=1,
            max_col=ws.max_column,
            values_only=True,
        )
    ]
