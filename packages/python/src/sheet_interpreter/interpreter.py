from typing import Callable, Iterator

from sheet_interpreter.ast import (
    ASTNode,
    BinaryOperation,
    Call,
    Grouping,
    Literal,
    UnaryOperation,
)
from sheet_interpreter.errors import InvalidCallee, MultipleValuesError
from sheet_interpreter.functions import SHEET_FUNCTIONS
from sheet_interpreter.operators import add, divide, multiply, negate, subtract
from sheet_interpreter.tokenizer import TokenType
from sheet_interpreter.types import CellCoordinate, CellValue, is_error
from sheet_interpreter.utils import format_formula

# (column, row) -> value of that cell, both 0-indexed
CellLookup = Callable[[int, int], CellValue]


def evaluate(node: ASTNode, lookup: CellLookup) -> list[CellValue]:
    """Evaluate an AST, resolving cell references through `lookup`."""
    return ExpressionEvaluator(lookup).evaluate(node)


def cell_references(node: ASTNode) -> Iterator[CellCoordinate]:
    """Cells that evaluating `node` looks up, in lookup order.

    Arguments of a call that cannot be made are skipped, as evaluation skips
    them. Walks the tree with a stack so deep expressions do not recurse.
    """
    stack = [node]
    while stack:
        node = stack.pop()
        if isinstance(node, Literal):
            if node.token.type == TokenType.CELL_REF:
                yield node.token.value
            elif node.token.type == TokenType.CELL_RANGE:
                yield from node.token.value.coordinates()
        elif isinstance(node, BinaryOperation):
            stack.extend((node.right, node.left))
        elif isinstance(node, UnaryOperation):
            stack.append(node.operand)
        elif isinstance(node, Grouping):
            stack.append(node.inner)
        elif isinstance(node, Call):
            callee = node.callee
            if (
                isinstance(callee, Literal)
                and callee.token.type == TokenType.BUILTIN
                and callee.token.value in SHEET_FUNCTIONS
            ):
                stack.extend(reversed(node.arguments))


class ExpressionEvaluator:
    """Evaluates expressions to a non-empty list of values.

    Scalar expressions produce exactly one value. A cell range produces one
    value per cell, column by column. Failures are values too: an operation
    on a failed operand returns that failure instead of raising.
    """

    def __init__(self, lookup: CellLookup):
        self.lookup = lookup

    def evaluate(self, node: ASTNode) -> list[CellValue]:
        if isinstance(node, Literal):
            return self._evaluate_literal(node)

        elif isinstance(node, BinaryOperation):
            return [self._evaluate_binary_op(node)]

        elif isinstance(node, UnaryOperation):
            return [self._evaluate_unary_op(node)]

        elif isinstance(node, Grouping):
            return self.evaluate(node.inner)

        elif isinstance(node, Call):
            return [self._evaluate_call(node)]

        raise ValueError(f"Unknown node type: {type(node)}")

    def _evaluate_literal(self, node: Literal) -> list[CellValue]:
        token = node.token
        match token.type:
            case TokenType.NUMBER:
                return [token.value]
            case TokenType.CELL_REF:
                return [self.lookup(token.value.column, token.value.row)]
            case TokenType.CELL_RANGE:
                return [
                    self.lookup(coord.column, coord.row)
                    for coord in token.value.coordinates()
                ]
            case TokenType.BUILTIN:
                return [InvalidCallee(f"Function {token.value} used without arguments")]
            case _:
                raise ValueError(f"Invalid token literal: {token}")

    def _evaluate_scalar(self, node: ASTNode) -> CellValue:
        values = self.evaluate(node)
        if len(values) != 1:
            return MultipleValuesError(
                f"Cannot combine cell ranges: {format_formula(node)} has "
                f"{len(values)} values"
            )
        return values[0]

    def _evaluate_binary_op(self, node: BinaryOperation) -> CellValue:
        left = self._evaluate_scalar(node.left)
        right = self._evaluate_scalar(node.right)
        if is_error(left):
            return left
        if is_error(right):
            return right

        match node.operator.type:
            case TokenType.PLUS:
                return add(left, right)
            case TokenType.MINUS:
                return subtract(left, right)
            case TokenType.STAR:
                return multiply(left, right)
            case TokenType.SLASH:
                return divide(left, right)
            case _:
                raise ValueError(f"Unknown operator: {node.operator}")

    def _evaluate_unary_op(self, node: UnaryOperation) -> CellValue:
        value = self._evaluate_scalar(node.operand)
        if is_error(value):
            return value

        match node.operator.type:
            case TokenType.MINUS:
                return negate(value)
            case _:
                raise ValueError(f"Unknown unary operator: {node.operator}")

    def _evaluate_call(self, node: Call) -> CellValue:
        callee = node.callee
        if not (isinstance(callee, Literal) and callee.token.type == TokenType.BUILTIN):
            return InvalidCallee(f"Invalid callee: {format_formula(callee)}")

        name = callee.token.value
        if name not in SHEET_FUNCTIONS:
            return InvalidCallee(f"Unknown function: {name}")

        return SHEET_FUNCTIONS[name](*(self.evaluate(arg) for arg in node.arguments))
