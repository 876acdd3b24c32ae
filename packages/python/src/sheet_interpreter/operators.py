import logging
from decimal import (
    Context,
    Decimal,
    DecimalException,
    DivisionByZero,
    Inexact,
    InvalidOperation,
    Overflow,
)
from typing import Callable

from sheet_interpreter.errors import DecimalArithmeticError
from sheet_interpreter.types import CellValue

DEFAULT_PRECISION = 28
# Upper bound on the digits an exact result may need
MAX_EXACT_DIGITS = 100_000

# Division is rounded to `prec` significant digits. Every other operation
# gets a copy of this context wide enough to hold its exact result.
decimal_context = Context(
    prec=DEFAULT_PRECISION, traps=[DivisionByZero, InvalidOperation, Overflow]
)


def set_decimal_precision(prec: int) -> None:
    """Set the number of significant digits kept by division."""
    global decimal_context
    if prec < 1:
        raise ValueError(f"Decimal precision must be positive, got {prec}")
    decimal_context = decimal_context.copy()
    decimal_context.prec = prec


def _exact_context(digits: int) -> Context:
    context = decimal_context.copy()
    context.prec = max(context.prec, min(digits, MAX_EXACT_DIGITS))
    context.traps[Inexact] = True
    return context


def _sum_digits(left: Decimal, right: Decimal) -> int:
    # From the lowest exponent up to one carry above the highest digit
    top = max(left.adjusted(), right.adjusted()) + 2
    bottom = min(left.as_tuple().exponent, right.as_tuple().exponent)
    return top - bottom


def _product_digits(left: Decimal, right: Decimal) -> int:
    return len(left.as_tuple().digits) + len(right.as_tuple().digits)


def _apply(
    op: Callable[[Context, Decimal, Decimal], Decimal],
    context: Context,
    symbol: str,
    left: Decimal,
    right: Decimal,
) -> CellValue:
    try:
        return op(context, left, right)
    except DecimalException as e:
        if isinstance(e, ZeroDivisionError):
            reason = "division by zero"
        elif isinstance(e, Overflow):
            reason = "overflow"
        elif isinstance(e, Inexact):
            reason = f"result needs more than {context.prec} significant digits"
        else:
            reason = "undefined result"
        logging.debug(f"Arithmetic failure evaluating {left} {symbol} {right}: {e!r}")
        return DecimalArithmeticError(f"Cannot compute {left} {symbol} {right}: {reason}")


def add(left: Decimal, right: Decimal) -> CellValue:
    context = _exact_context(_sum_digits(left, right))
    return _apply(Context.add, context, "+", left, right)


def subtract(left: Decimal, right: Decimal) -> CellValue:
    context = _exact_context(_sum_digits(left, right))
    return _apply(Context.subtract, context, "-", left, right)


def multiply(left: Decimal, right: Decimal) -> CellValue:
    context = _exact_context(_product_digits(left, right))
    return _apply(Context.multiply, context, "*", left, right)


def divide(left: Decimal, right: Decimal) -> CellValue:
    return _apply(Context.divide, decimal_context, "/", left, right)


def negate(value: Decimal) -> CellValue:
    return _exact_context(len(value.as_tuple().digits)).minus(value)
