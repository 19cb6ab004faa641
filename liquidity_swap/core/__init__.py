"""
Functional core: CPMM math, escrow requests and the action engine.
"""

from .cpmm import equivalent_and_minted, initial_liquidity_shares, integer_sqrt, reclaim_output, swap_output
from .engine import (
    balance_of,
    confirm,
    confirm_or_raise,
    initialize,
    pool_balance,
    pools_have_liquidity,
    step,
    step_or_raise,
)
from .escrow import Callback, CallbackKind, EventGroup, TokenMethod, TransferCall
from .invariants import check_all, ledger_totals
from .types import Action, Call, StepResult

__all__ = [
    "integer_sqrt",
    "initial_liquidity_shares",
    "swap_output",
    "equivalent_and_minted",
    "reclaim_output",
    "initialize",
    "step",
    "step_or_raise",
    "confirm",
    "confirm_or_raise",
    "balance_of",
    "pool_balance",
    "pools_have_liquidity",
    "Action",
    "Call",
    "StepResult",
    "Callback",
    "CallbackKind",
    "EventGroup",
    "TokenMethod",
    "TransferCall",
    "check_all",
    "ledger_totals",
]
