from typing import Callable, Iterable, Iterator, Optional

from sheet_interpreter.ast import (
    ASTNode,
    BinaryOperation,
    Call,
    Grouping,
    Literal,
    UnaryOperation,
)
from sheet_interpreter.errors import ParseError
from sheet_interpreter.tokenizer import SheetTokenizer, Token, TokenType
from sheet_interpreter.utils import format_formula

LITERAL_TOKENS = {
    TokenType.NUMBER,
    TokenType.CELL_REF,
    TokenType.CELL_RANGE,
    TokenType.BUILTIN,
}


def parse_formula(formula: str) -> ASTNode:
    """Helper function to parse a formula string into an AST."""
    if formula.startswith("="):
        formula = formula[1:]
    return SheetParser(SheetTokenizer(formula)).parse()


def _describe(token: Optional[Token]) -> str:
    if token is None:
        return "end of formula"
    if token.value is None:
        return token.type.name
    return f"{token.type.name} {format_formula(Literal(token))}"


class SheetParser:
    """Recursive-descent parser with one token of lookahead.

    Tokens are pulled from the iterable one at a time, so lexical errors
    surface at the point the parser reaches them.
    """

    def __init__(self, tokens: Iterable[Token]):
        self.tokens: Iterator[Token] = iter(tokens)
        self.current: Optional[Token] = None
        self.previous: Optional[Token] = None

    def parse(self) -> ASTNode:
        """Parse the whole token stream into a single expression."""
        self.advance()
        expr = self.parse_expression()
        if self.current is not None:
            raise ParseError(f"Unexpected token: {_describe(self.current)}")
        return expr

    def advance(self) -> None:
        self.previous = self.current
        self.current = next(self.tokens, None)

    def advance_match(self, *types: TokenType) -> bool:
        """Consume the current token if it matches any of the given types."""
        if self.current is not None and self.current.type in types:
            self.advance()
            return True
        return False

    def expect(self, token_type: TokenType, message: str) -> None:
        if not self.advance_match(token_type):
            raise ParseError(f"{message}, got {_describe(self.current)}")

    def _parse_binary_operation(
        self, parse_operand: Callable[[], ASTNode], operators: set[TokenType]
    ) -> ASTNode:
        """Parse a left-associative chain of binary operations."""
        left = parse_operand()
        while self.advance_match(*operators):
            operator = self.previous
            assert operator is not None
            right = parse_operand()
            left = BinaryOperation(left=left, operator=operator, right=right)
        return left

    def parse_expression(self) -> ASTNode:
        return self.parse_term()

    def parse_term(self) -> ASTNode:
        """Parse addition/subtraction (+, -)."""
        return self._parse_binary_operation(
            self.parse_factor, {TokenType.PLUS, TokenType.MINUS}
        )

    def parse_factor(self) -> ASTNode:
        """Parse multiplication/division (*, /)."""
        return self._parse_binary_operation(
            self.parse_unary, {TokenType.STAR, TokenType.SLASH}
        )

    def parse_unary(self) -> ASTNode:
        if self.advance_match(TokenType.MINUS):
            operator = self.previous
            assert operator is not None
            return UnaryOperation(operator=operator, operand=self.parse_unary())
        return self.parse_call()

    def parse_call(self) -> ASTNode:
        expr = self.parse_primary()
        while self.advance_match(TokenType.LPAREN):
            expr = self.parse_arguments(expr)
        return expr

    def parse_arguments(self, callee: ASTNode) -> Call:
        """Parse the arguments of a call, the opening '(' already consumed."""
        if self.current is not None and self.current.type == TokenType.RPAREN:
            raise ParseError(
                f"{format_formula(callee)}() requires at least one argument"
            )

        args = [self.parse_expression()]
        while self.advance_match(TokenType.COMMA):
            args.append(self.parse_expression())
        self.expect(TokenType.RPAREN, "Expected ')' after arguments")

        return Call(callee=callee, arguments=tuple(args))

    def parse_primary(self) -> ASTNode:
        if self.advance_match(*LITERAL_TOKENS):
            token = self.previous
            assert token is not None
            return Literal(token)

        if self.advance_match(TokenType.LPAREN):
            expr = self.parse_expression()
            self.expect(TokenType.RPAREN, "Expected ')' after expression")
            return Grouping(expr)

        raise ParseError(f"Invalid primary expression token: {_describe(self.current)}")
