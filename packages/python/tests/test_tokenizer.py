from decimal import Decimal

import pytest

from sheet_interpreter.errors import InvalidCell, TokenizerError
from sheet_interpreter.tokenizer import SheetTokenizer, Token, TokenType
from sheet_interpreter.types import CellCoordinate, CellRangeBounds


def tokenize(formula: str) -> list[Token]:
    """Helper function to tokenize a formula."""
    tokenizer = SheetTokenizer(formula)
    return tokenizer.tokenize()


def assert_tokens(formula: str, expected: list[tuple[TokenType, object]]):
    """Helper function to assert tokens match expected types and values."""
    tokens = tokenize(formula)
    assert len(tokens) == len(expected), (
        f"Expected {len(expected)} tokens, got {len(tokens)}\n"
        f"Expected: {expected}\n"
        f"Got: {[(t.type, t.value) for t in tokens]}"
    )
    for token, (exp_type, exp_value) in zip(tokens, expected):
        assert token.type == exp_type, f"Expected {exp_type}, got {token.type}"
        assert token.value == exp_value, f"Expected {exp_value}, got {token.value}"


class TestSheetTokenizer:
    def test_numbers(self):
        assert_tokens(" 1.2", [(TokenType.NUMBER, Decimal("1.2"))])
        assert_tokens("42", [(TokenType.NUMBER, Decimal(42))])
        assert_tokens(
            "1.5 + 2.75",
            [
                (TokenType.NUMBER, Decimal("1.5")),
                (TokenType.PLUS, None),
                (TokenType.NUMBER, Decimal("2.75")),
            ],
        )

    def test_numbers_keep_full_precision(self):
        [token] = tokenize("0.1000000000000000000000000000000001")
        assert token.value == Decimal("0.1000000000000000000000000000000001")

    def test_invalid_numbers(self):
        invalid_decimals = [
            ("1.2.3", "multiple decimal points"),
            ("1.", "trailing decimal point"),
            ("1. + 2", "trailing decimal point"),
        ]

        for invalid_num, error_msg in invalid_decimals:
            with pytest.raises(
                TokenizerError, match=f"Invalid number format.*{error_msg}"
            ):
                tokenize(invalid_num)

    def test_cell_references(self):
        assert_tokens(" aa12", [(TokenType.CELL_REF, CellCoordinate(26, 11))])
        assert_tokens("a1", [(TokenType.CELL_REF, CellCoordinate(0, 0))])
        assert_tokens("z1", [(TokenType.CELL_REF, CellCoordinate(25, 0))])
        assert_tokens("aa1", [(TokenType.CELL_REF, CellCoordinate(26, 0))])

    def test_cell_references_are_case_insensitive(self):
        assert tokenize("AA12") == tokenize("aa12") == tokenize("aA12")

    def test_operators(self):
        for op, expected_type in [
            ("+", TokenType.PLUS),
            ("-", TokenType.MINUS),
            ("/", TokenType.SLASH),
            ("*", TokenType.STAR),
        ]:
            assert_tokens(
                f"  a1 {op} b3",
                [
                    (TokenType.CELL_REF, CellCoordinate(0, 0)),
                    (expected_type, None),
                    (TokenType.CELL_REF, CellCoordinate(1, 2)),
                ],
            )

    def test_punctuation_without_spaces(self):
        assert [t.type for t in tokenize("(1,2)")] == [
            TokenType.LPAREN,
            TokenType.NUMBER,
            TokenType.COMMA,
            TokenType.NUMBER,
            TokenType.RPAREN,
        ]

    def test_cell_range(self):
        assert_tokens(
            "  a1:a5",
            [(TokenType.CELL_RANGE, CellRangeBounds(range(0, 1), range(0, 5)))],
        )
        assert_tokens(
            "a1:b22",
            [(TokenType.CELL_RANGE, CellRangeBounds(range(0, 2), range(0, 22)))],
        )

    def test_cell_range_corners_in_any_order(self):
        expected = [(TokenType.CELL_RANGE, CellRangeBounds(range(0, 2), range(0, 5)))]
        assert_tokens("b5:a1", expected)
        assert_tokens("a5:b1", expected)

    def test_sum_cell_range(self):
        assert_tokens(
            "  sum(a1:b22)+c3",
            [
                (TokenType.BUILTIN, "SUM"),
                (TokenType.LPAREN, None),
                (TokenType.CELL_RANGE, CellRangeBounds(range(0, 2), range(0, 22))),
                (TokenType.RPAREN, None),
                (TokenType.PLUS, None),
                (TokenType.CELL_REF, CellCoordinate(2, 2)),
            ],
        )

    def test_sum_cell_values(self):
        assert_tokens(
            "  sum(a1, b22)+c3",
            [
                (TokenType.BUILTIN, "SUM"),
                (TokenType.LPAREN, None),
                (TokenType.CELL_REF, CellCoordinate(0, 0)),
                (TokenType.COMMA, None),
                (TokenType.CELL_REF, CellCoordinate(1, 21)),
                (TokenType.RPAREN, None),
                (TokenType.PLUS, None),
                (TokenType.CELL_REF, CellCoordinate(2, 2)),
            ],
        )

    def test_builtin_is_case_insensitive(self):
        for name in ["sum", "SUM", "Sum"]:
            assert tokenize(name) == [Token(TokenType.BUILTIN, "SUM")]

    def test_whitespace_only(self):
        assert tokenize("") == []
        assert tokenize("   \t ") == []

    def test_invalid_cell_references(self):
        with pytest.raises(TokenizerError, match="rows start at 1"):
            tokenize("a0")
        with pytest.raises(TokenizerError, match="Could not parse cell reference"):
            tokenize("a")

    def test_columns_of_any_width(self):
        assert_tokens("zzz1", [(TokenType.CELL_REF, CellCoordinate(18277, 0))])
        assert_tokens("aaaa1", [(TokenType.CELL_REF, CellCoordinate(18278, 0))])
        assert_tokens("BAAA2", [(TokenType.CELL_REF, CellCoordinate(35854, 1))])

    def test_invalid_cell_ranges(self):
        for formula in ["a1:", "a1:3", "a1:b0", "a1: b2"]:
            with pytest.raises(TokenizerError, match="Invalid cell range"):
                tokenize(formula)

    def test_unexpected_characters(self):
        with pytest.raises(TokenizerError, match=r"Unexpected character: '\$' at position 2"):
            tokenize("1 $ 2")
        with pytest.raises(TokenizerError, match="Unexpected character"):
            tokenize("a1 ^ 2")
        with pytest.raises(TokenizerError, match="Unexpected character"):
            tokenize("é1")

    def test_errors_are_invalid_cells(self):
        with pytest.raises(InvalidCell):
            tokenize("#")


class TestLazyTokenizer:
    def test_tokens_are_produced_on_demand(self):
        tokenizer = SheetTokenizer("1 + $")
        assert next(tokenizer) == Token(TokenType.NUMBER, Decimal(1))
        assert next(tokenizer) == Token(TokenType.PLUS)
        with pytest.raises(TokenizerError):
            next(tokenizer)

    def test_tokenizer_is_not_restartable(self):
        tokenizer = SheetTokenizer("1 + 2")
        assert len(list(tokenizer)) == 3
        assert list(tokenizer) == []

    def test_tokens_compare_structurally(self):
        assert Token(TokenType.CELL_REF, CellCoordinate(1, 2)) == Token(
            TokenType.CELL_REF, CellCoordinate(1, 2)
        )
        assert Token(TokenType.NUMBER, Decimal("1.0")) != Token(TokenType.PLUS)
