from typing import NamedTuple

from sheet_interpreter.tokenizer import Token


class BinaryOperation(NamedTuple):
    left: "ASTNode"
    operator: Token
    right: "ASTNode"


class UnaryOperation(NamedTuple):
    operator: Token
    operand: "ASTNode"


class Grouping(NamedTuple):
    inner: "ASTNode"


class Literal(NamedTuple):
    # NUMBER, CELL_REF, CELL_RANGE or BUILTIN token
    token: Token


class Call(NamedTuple):
    callee: "ASTNode"
    arguments: "tuple[ASTNode, ...]"


# Type alias for all possible AST nodes
ASTNode = BinaryOperation | UnaryOperation | Grouping | Literal | Call
