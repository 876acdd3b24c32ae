from decimal import Decimal
from typing import Any, Callable, Optional, overload

from sheet_interpreter.operators import add
from sheet_interpreter.types import CellValue, is_error

SheetFunction = Callable[..., CellValue]

# Upper-case name -> implementation. The tokenizer treats every key as a
# builtin function keyword.
SHEET_FUNCTIONS: dict[str, SheetFunction] = {}


@overload
def sheet_fn(fn: SheetFunction, *, name: Optional[str] = None) -> SheetFunction: ...
@overload
def sheet_fn(
    fn: None = None, *, name: Optional[str] = None
) -> Callable[[SheetFunction], SheetFunction]: ...


def sheet_fn(fn: SheetFunction | None = None, *, name: Optional[str] = None) -> Any:
    """Decorator to register a function as a builtin sheet function."""

    def decorator(fn: Any) -> Any:
        # Return staticmethod descriptors untouched to preserve method semantics
        underlying = fn.__func__ if isinstance(fn, staticmethod) else fn
        reg_name = (name or underlying.__name__).upper()
        SHEET_FUNCTIONS[reg_name] = underlying
        setattr(underlying, "_sheet_fn_registered", True)
        return fn

    if fn:
        return decorator(fn)
    else:
        return decorator


def flatten_args(*args: CellValue | list) -> list[CellValue]:
    """Flatten function arguments (scalars or lists of values) into one list."""
    result: list[CellValue] = []
    for arg in args:
        if isinstance(arg, list):
            result.extend(flatten_args(*arg))
        else:
            result.append(arg)
    return result


class SheetFunctions:
    """Builtin functions callable from formulas.

    Each argument is the list of values its expression evaluated to, so a
    range argument arrives as one list holding every cell of the range.
    """

    @staticmethod
    def SUM(*args: list[CellValue]) -> CellValue:
        """Sum of arguments. The first failing value fails the whole sum."""
        total: CellValue = Decimal(0)
        for value in flatten_args(*args):
            if is_error(value):
                return value
            total = add(total, value)
            if is_error(total):
                return total
        return total


for _name, _member in SheetFunctions.__dict__.items():
    if _name.startswith("_"):
        continue
    if isinstance(_member, staticmethod):
        _func = _member.__func__
        if (
            not getattr(_func, "_sheet_fn_registered", False)
            and _name not in SHEET_FUNCTIONS
        ):
            SHEET_FUNCTIONS[_name] = _func
