"""
CPMM swap kernel (v1 semantics).

- Fee is expressed per mille and deducted from the input before pricing.
- Pricing:
    amount_out = floor((1000 - fee) * amount_in * reserve_out
                       / (1000 * reserve_in + (1000 - fee) * amount_in))
- The whole input (fee included) stays in the pool, so the pool product never
  decreases across a swap.
- Every intermediate is u128-checked; overflow raises instead of wrapping.
"""

from __future__ import annotations

from dataclasses import dataclass

from ...errors import InvariantViolationError, ValidationError
from .checked_u128 import checked_add, checked_div, checked_mul, checked_sub, require_int, require_u128


PER_MILLE_DENOM = 1000


@dataclass(frozen=True)
class SwapOutputResult:
    amount_out: int
    amount_in: int
    new_reserve_in: int
    new_reserve_out: int
    k_before: int
    k_after: int


def require_fee_per_mille(fee_per_mille: int) -> int:
    require_int("fee_per_mille", fee_per_mille)
    if not (0 <= fee_per_mille <= PER_MILLE_DENOM):
        raise ValidationError(f"fee_per_mille must be in [0, {PER_MILLE_DENOM}]: {fee_per_mille}")
    return fee_per_mille


def swap_output(
    *,
    reserve_in: int,
    reserve_out: int,
    amount_in: int,
    fee_per_mille: int,
) -> SwapOutputResult:
    """
    Exact-in swap quote + post-reserves.

    `amount_in == 0` always quotes zero output (the pool is left unchanged).
    Raises ValidationError on invalid inputs, ArithmeticOverflowError if any
    intermediate leaves the u128 range.
    """
    require_u128("reserve_in", reserve_in)
    require_u128("reserve_out", reserve_out)
    require_u128("amount_in", amount_in)
    require_fee_per_mille(fee_per_mille)

    k_before = reserve_in * reserve_out

    if amount_in == 0:
        return SwapOutputResult(
            amount_out=0,
            amount_in=0,
            new_reserve_in=reserve_in,
            new_reserve_out=reserve_out,
            k_before=k_before,
            k_after=k_before,
        )

    if reserve_in == 0 or reserve_out == 0:
        raise ValidationError("cannot swap against an empty reserve")

    remainder_ratio = PER_MILLE_DENOM - fee_per_mille
    net_in_scaled = checked_mul(remainder_ratio, amount_in)
    numerator = checked_mul(net_in_scaled, reserve_out)
    denominator = checked_add(checked_mul(PER_MILLE_DENOM, reserve_in), net_in_scaled)
    amount_out = checked_div(numerator, denominator)

    if amount_out >= reserve_out:
        # Unreachable while reserve_in > 0.
        raise InvariantViolationError(["amount_out_below_reserve"])

    new_reserve_in = checked_add(reserve_in, amount_in)
    new_reserve_out = checked_sub(reserve_out, amount_out)

    # k is exact (unbounded int) and only used for the monotonicity check.
    k_after = new_reserve_in * new_reserve_out
    if k_after < k_before:
        raise InvariantViolationError(["constant_product_non_decreasing"])

    return SwapOutputResult(
        amount_out=amount_out,
        amount_in=amount_in,
        new_reserve_in=new_reserve_in,
        new_reserve_out=new_reserve_out,
        k_before=k_before,
        k_after=k_after,
    )
