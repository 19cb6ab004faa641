"""
Constant Product Market Maker (CPMM) math.

Public, tuple-returning wrappers over the integer kernels in
`liquidity_swap/kernels/python/`. All arithmetic is u128-checked and uses
floor division; the rounding direction always favours the pool.

Algorithm Design:
- Type: Fixed-Point Integer Arithmetic / Deterministic Rounding
- Time Complexity: O(1) per quote, O(log y) for integer_sqrt
- Invariant: After each swap, x' * y' >= x * y
"""

from typing import Tuple

from ..kernels.python.cpmm_swap_v1 import swap_output as _kernel_swap_output_v1
from ..kernels.python.lp_math_v1 import equivalent_and_minted as _kernel_equivalent_and_minted_v1
from ..kernels.python.lp_math_v1 import initial_liquidity_shares as _kernel_initial_liquidity_shares_v1
from ..kernels.python.lp_math_v1 import integer_sqrt as _kernel_integer_sqrt_v1
from ..kernels.python.lp_math_v1 import reclaim_output as _kernel_reclaim_output_v1
from ..state.balances import Amount


def integer_sqrt(y: Amount) -> Amount:
    """Largest x such that x * x <= y."""
    return _kernel_integer_sqrt_v1(y)


def initial_liquidity_shares(a_amount: Amount, b_amount: Amount) -> Amount:
    """Shares minted when seeding an empty pool: floor(sqrt(a_amount * b_amount))."""
    return _kernel_initial_liquidity_shares_v1(amount_a=a_amount, amount_b=b_amount)


def swap_output(
    reserve_in: Amount,
    reserve_out: Amount,
    amount_in: Amount,
    fee_per_mille: int,
) -> Amount:
    """
    Output amount for an exact-in swap.

    Formula:
        amount_out = ((1000 - fee) * amount_in * reserve_out)
                     / (1000 * reserve_in + (1000 - fee) * amount_in)

    Args:
        reserve_in: Pool reserve of the asset being sold
        reserve_out: Pool reserve of the asset being bought
        amount_in: Amount sold (0 quotes 0)
        fee_per_mille: Fee in per mille (0-1000)

    Returns:
        The amount bought, rounded down

    Raises:
        ValidationError: If the fee is out of range or a reserve is empty
        ArithmeticOverflowError: If an intermediate exceeds u128
    """
    res = _kernel_swap_output_v1(
        reserve_in=reserve_in,
        reserve_out=reserve_out,
        amount_in=amount_in,
        fee_per_mille=fee_per_mille,
    )
    return res.amount_out


def equivalent_and_minted(
    provided_amount: Amount,
    provided_reserve: Amount,
    opposite_reserve: Amount,
    total_shares: Amount,
) -> Tuple[Amount, Amount]:
    """
    Opposite-asset amount and minted shares for a provision.

    Formula:
        opposite = floor(provided * opposite_reserve / provided_reserve) + 1   (0 if provided == 0)
        minted   = floor(provided * total_shares / provided_reserve)

    Due to integer rounding a provider may deposit one extra opposite token and
    mint one share less than the exact ratio would give.

    Returns:
        Tuple of (opposite_amount, minted_shares)
    """
    res = _kernel_equivalent_and_minted_v1(
        provided_amount=provided_amount,
        provided_reserve=provided_reserve,
        opposite_reserve=opposite_reserve,
        total_shares=total_shares,
    )
    return res.opposite_amount, res.minted_shares


def reclaim_output(
    liquidity_amount: Amount,
    reserve_a: Amount,
    reserve_b: Amount,
    total_shares: Amount,
) -> Tuple[Amount, Amount]:
    """
    Assets returned for burning `liquidity_amount` shares.

    Formula:
        a_amount = floor(reserve_a * liquidity_amount / total_shares)
        b_amount = floor(reserve_b * liquidity_amount / total_shares)

    Returns:
        Tuple of (a_amount, b_amount)
    """
    res = _kernel_reclaim_output_v1(
        liquidity_amount=liquidity_amount,
        reserve_a=reserve_a,
        reserve_b=reserve_b,
        total_shares=total_shares,
    )
    return res.amount_a, res.amount_b
