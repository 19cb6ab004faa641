"""Invariant checkers for the liquidity swap state.

Each function returns True when the invariant holds, and `check_all()` returns
the list of violated invariant IDs (empty = all pass). The engine runs
`check_all()` on every post-state before committing it.

Note: value conservation against external custody is not checkable from the
state alone; see `ledger_totals()` and the runtime's `custody()`.
"""

from __future__ import annotations

from typing import Callable, Dict, Tuple

from ..kernels.python.cpmm_swap_v1 import PER_MILLE_DENOM
from ..state.balances import Token
from ..state.contract import LiquiditySwapState


def inv_no_empty_entries(s: LiquiditySwapState) -> bool:
    return not any(balance.is_empty for _, balance in s.ledger.items())


def inv_amounts_in_range(s: LiquiditySwapState) -> bool:
    return s.ledger.verify_in_range()


def inv_share_supply_matches_holders(s: LiquiditySwapState) -> bool:
    held = sum(
        balance.liquidity_tokens
        for owner, balance in s.ledger.items()
        if owner != s.contract
    )
    return s.pool_balance().liquidity_tokens == held


def inv_pool_all_or_nothing(s: LiquiditySwapState) -> bool:
    pool = s.pool_balance()
    flags = {pool.a_tokens > 0, pool.b_tokens > 0, pool.liquidity_tokens > 0}
    return len(flags) == 1


def inv_fee_in_range(s: LiquiditySwapState) -> bool:
    return 0 <= s.swap_fee_per_mille <= PER_MILLE_DENOM


# ---------------------------------------------------------------------------
# Registry + check_all
# ---------------------------------------------------------------------------

INVARIANT_REGISTRY: Dict[str, Callable[[LiquiditySwapState], bool]] = {
    "inv_no_empty_entries": inv_no_empty_entries,
    "inv_amounts_in_range": inv_amounts_in_range,
    "inv_share_supply_matches_holders": inv_share_supply_matches_holders,
    "inv_pool_all_or_nothing": inv_pool_all_or_nothing,
    "inv_fee_in_range": inv_fee_in_range,
}


def check_all(state: LiquiditySwapState) -> list[str]:
    """Return list of violated invariant IDs (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(state)
    ]


def ledger_totals(state: LiquiditySwapState) -> Tuple[int, int]:
    """(total A, total B) recorded across every account, pool reserves included."""
    return state.ledger.total(Token.A), state.ledger.total(Token.B)
