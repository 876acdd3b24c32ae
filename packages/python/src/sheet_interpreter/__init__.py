from sheet_interpreter.cell import Cell
from sheet_interpreter.errors import TableError
from sheet_interpreter.interpreter import evaluate
from sheet_interpreter.operators import set_decimal_precision
from sheet_interpreter.parser import parse_formula
from sheet_interpreter.table import Table
from sheet_interpreter.utils import format_formula, pretty_print_ast

__all__ = [
    "Cell",
    "Table",
    "TableError",
    "evaluate",
    "format_formula",
    "parse_formula",
    "pretty_print_ast",
    "set_decimal_precision",
]
