from typing import TYPE_CHECKING

from openpyxl.utils import column_index_from_string, get_column_letter

if TYPE_CHECKING:
    from sheet_interpreter.ast import ASTNode


# Last column openpyxl can convert (ZZZ). Wider columns are still valid
# references, they only fall outside any table.
MAX_OPENPYXL_COLUMN = 18278


def column_as_int(col: int | str) -> int:
    """1-indexed column number for a column given as letters or as a number."""
    if isinstance(col, str):
        col = col.upper()
        if len(col) <= 3:
            return column_index_from_string(col)
        index = 0
        for letter in col:
            index = index * 26 + ord(letter) - ord("A") + 1
        return index
    return col


def column_as_str(col: int | str) -> str:
    """Column letters for a 1-indexed column number."""
    if isinstance(col, int):
        if col <= MAX_OPENPYXL_COLUMN:
            return get_column_letter(col)
        letters = ""
        while col > 0:
            col, remainder = divmod(col - 1, 26)
            letters = chr(ord("A") + remainder) + letters
        return letters
    return col


def coordinate_label(column: int, row: int) -> str:
    """Spreadsheet notation for a 0-indexed (column, row) pair, e.g. (1, 2) -> B3."""
    return f"{column_as_str(column + 1)}{row + 1}"


def format_formula(node: "ASTNode") -> str:
    """Turn an AST back into formula text (without the leading '=')."""
    # Avoid circular imports
    from sheet_interpreter.ast import (
        BinaryOperation,
        Call,
        Grouping,
        Literal,
        UnaryOperation,
    )
    from sheet_interpreter.tokenizer import SYMBOLS, TokenType

    if isinstance(node, BinaryOperation):
        return (
            f"{format_formula(node.left)} {SYMBOLS[node.operator.type]} "
            f"{format_formula(node.right)}"
        )
    elif isinstance(node, UnaryOperation):
        return f"{SYMBOLS[node.operator.type]}{format_formula(node.operand)}"
    elif isinstance(node, Grouping):
        return f"({format_formula(node.inner)})"
    elif isinstance(node, Call):
        args = ", ".join(format_formula(arg) for arg in node.arguments)
        return f"{format_formula(node.callee)}({args})"
    elif isinstance(node, Literal):
        token = node.token
        if token.type == TokenType.CELL_REF:
            return token.value.label()
        if token.type == TokenType.CELL_RANGE:
            columns, rows = token.value
            start = coordinate_label(columns.start, rows.start)
            end = coordinate_label(columns.stop - 1, rows.stop - 1)
            return f"{start}:{end}"
        return str(token.value)

    raise ValueError(f"Unknown node type: {type(node)}")


def pretty_print_ast(node: "ASTNode", indent: int = 0) -> None:
    """Print AST in a human-readable format."""
    # Avoid circular imports
    from sheet_interpreter.ast import (
        BinaryOperation,
        Call,
        Grouping,
        Literal,
        UnaryOperation,
    )
    from sheet_interpreter.tokenizer import SYMBOLS

    indent_str = "  " * indent
    if isinstance(node, Call):
        print(f"{indent_str}Call: {format_formula(node.callee)}")
        for i, arg in enumerate(node.arguments):
            print(f"{indent_str}  Argument {i + 1}:")
            pretty_print_ast(arg, indent + 2)
    elif isinstance(node, BinaryOperation):
        print(f"{indent_str}Binary Operation: {SYMBOLS[node.operator.type]}")
        print(f"{indent_str}  Left:")
        pretty_print_ast(node.left, indent + 2)
        print(f"{indent_str}  Right:")
        pretty_print_ast(node.right, indent + 2)
    elif isinstance(node, UnaryOperation):
        print(f"{indent_str}Unary Operation: {SYMBOLS[node.operator.type]}")
        pretty_print_ast(node.operand, indent + 1)
    elif isinstance(node, Grouping):
        print(f"{indent_str}Grouping:")
        pretty_print_ast(node.inner, indent + 1)
    elif isinstance(node, Literal):
        label = node.token.type.name.replace("_", " ").title()
        print(f"{indent_str}{label}: {format_formula(node)}")
    else:
        print(f"{indent_str}Unknown node type: {type(node)}")

