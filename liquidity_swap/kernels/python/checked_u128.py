"""
Checked unsigned 128-bit arithmetic.

Python integers never wrap, so the width boundary has to be enforced explicitly:
every helper here rejects results outside `[0, U128_MAX]` with
`ArithmeticOverflowError`. Pricing formulas are only correct under exact,
non-wrapping arithmetic, so kernels route every add/sub/mul through here.
"""

from __future__ import annotations

from ...errors import ArithmeticOverflowError, ValidationError


U128_BITS = 128
U128_MAX = (1 << U128_BITS) - 1


def require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def require_u128(name: str, value: int) -> int:
    """Validate that `value` is an int in `[0, U128_MAX]` and return it."""
    require_int(name, value)
    if value < 0:
        raise ValidationError(f"{name} must be non-negative: {value}")
    if value > U128_MAX:
        raise ArithmeticOverflowError(f"{name} exceeds u128: {value}")
    return value


def _check_range(op: str, result: int) -> int:
    if result < 0:
        raise ArithmeticOverflowError(f"u128 underflow in {op}")
    if result > U128_MAX:
        raise ArithmeticOverflowError(f"u128 overflow in {op}")
    return result


def checked_add(a: int, b: int) -> int:
    return _check_range("add", a + b)


def checked_sub(a: int, b: int) -> int:
    return _check_range("sub", a - b)


def checked_mul(a: int, b: int) -> int:
    return _check_range("mul", a * b)


def checked_div(a: int, b: int) -> int:
    """Floor division; a zero divisor is an arithmetic error, not a ZeroDivisionError."""
    if b == 0:
        raise ArithmeticOverflowError("u128 division by zero")
    return _check_range("div", a // b)
