"""
Liquidity math kernel (v1 semantics).

Pure functions with explicit rounding rules:
- initial shares:      floor(sqrt(amount_a * amount_b))
- provisioning:        opposite = floor(provided * opposite_reserve / provided_reserve) + 1
                       minted   = floor(provided * total_shares / provided_reserve)
- reclaim:             out_x    = floor(reserve_x * shares / total_shares)

Rounding always favours the pool: the provider pays at least the exact
opposite amount, and a reclaim never pays out more than the exact share.
"""

from __future__ import annotations

from dataclasses import dataclass

from ...errors import ValidationError
from .checked_u128 import checked_add, checked_div, checked_mul, require_u128


@dataclass(frozen=True)
class LiquidityMintResult:
    opposite_amount: int
    minted_shares: int


@dataclass(frozen=True)
class ReclaimResult:
    amount_a: int
    amount_b: int


def integer_sqrt(y: int) -> int:
    """
    Largest x with x*x <= y, by binary search over [0, y + 1).

    The comparison uses `m <= y // m` so no square is ever formed.
    """
    require_u128("y", y)
    lo = 0
    hi = y + 1
    while lo != hi - 1:
        mid = (lo + hi) // 2  # mid >= 1 inside the loop
        if mid <= y // mid:
            lo = mid
        else:
            hi = mid
    return lo


def initial_liquidity_shares(*, amount_a: int, amount_b: int) -> int:
    """
    Initial share supply, independent of the ratio the pool is seeded at
    (Uniswap v2 whitepaper, section 3.4).
    """
    require_u128("amount_a", amount_a)
    require_u128("amount_b", amount_b)
    return integer_sqrt(checked_mul(amount_a, amount_b))


def equivalent_and_minted(
    *,
    provided_amount: int,
    provided_reserve: int,
    opposite_reserve: int,
    total_shares: int,
) -> LiquidityMintResult:
    """
    Opposite-asset amount required for a provision, and the shares it mints.

    The `+ 1` on the opposite amount rounds the requirement up, so a
    provider may deposit one unit more than the exact ratio and never less.
    A zero `minted_shares` is returned as-is; callers reject it.
    """
    require_u128("provided_amount", provided_amount)
    require_u128("provided_reserve", provided_reserve)
    require_u128("opposite_reserve", opposite_reserve)
    require_u128("total_shares", total_shares)
    if provided_reserve == 0:
        raise ValidationError("provided reserve must be positive")

    if provided_amount > 0:
        opposite_amount = checked_add(
            checked_div(checked_mul(provided_amount, opposite_reserve), provided_reserve),
            1,
        )
    else:
        opposite_amount = 0
    minted_shares = checked_div(checked_mul(provided_amount, total_shares), provided_reserve)

    return LiquidityMintResult(opposite_amount=opposite_amount, minted_shares=minted_shares)


def reclaim_output(
    *,
    liquidity_amount: int,
    reserve_a: int,
    reserve_b: int,
    total_shares: int,
) -> ReclaimResult:
    """Pool assets owed for burning `liquidity_amount` shares (rounded down)."""
    require_u128("liquidity_amount", liquidity_amount)
    require_u128("reserve_a", reserve_a)
    require_u128("reserve_b", reserve_b)
    require_u128("total_shares", total_shares)
    if total_shares == 0:
        raise ValidationError("total share supply must be positive")
    if liquidity_amount > total_shares:
        raise ValidationError(f"Cannot reclaim more than supply: {liquidity_amount} > {total_shares}")

    amount_a = checked_div(checked_mul(reserve_a, liquidity_amount), total_shares)
    amount_b = checked_div(checked_mul(reserve_b, liquidity_amount), total_shares)

    return ReclaimResult(amount_a=amount_a, amount_b=amount_b)
