"""Data types for the swap/liquidity engine.

All types are frozen dataclasses. A `Call` carries every parameter any action
may need; fields an action does not read keep their defaults.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Optional, Tuple

from ..state.address import Address
from ..state.contract import LiquiditySwapState
from .escrow import EventGroup


@unique
class Action(Enum):
    """One member per public contract action."""
    DEPOSIT = "deposit"
    SWAP = "swap"
    WITHDRAW = "withdraw"
    PROVIDE_LIQUIDITY = "provide_liquidity"
    RECLAIM_LIQUIDITY = "reclaim_liquidity"
    PROVIDE_INITIAL_LIQUIDITY = "provide_initial_liquidity"


@dataclass(frozen=True)
class Call:
    action: Action
    sender: Address

    # deposit / swap / withdraw / provide_liquidity
    token_address: Optional[Address] = None
    amount: int = 0

    # provide_initial_liquidity
    token_a_amount: int = 0
    token_b_amount: int = 0

    # reclaim_liquidity
    liquidity_token_amount: int = 0

    def to_dict(self) -> dict:
        """Plain-dict form (used for signing payloads and logs)."""
        return {
            "action": self.action.value,
            "sender": self.sender.to_hex(),
            "token_address": None if self.token_address is None else self.token_address.to_hex(),
            "amount": self.amount,
            "token_a_amount": self.token_a_amount,
            "token_b_amount": self.token_b_amount,
            "liquidity_token_amount": self.liquidity_token_amount,
        }


@dataclass(frozen=True)
class StepResult:
    """Outcome of one call or confirmation.

    On acceptance `state` is the new state and `event_groups` the outbound
    escrow requests to dispatch. On rejection `rejection` is the error code
    and `error` the message; the caller's state is unchanged.
    """

    accepted: bool
    state: Optional[LiquiditySwapState] = None
    event_groups: Tuple[EventGroup, ...] = ()
    rejection: Optional[str] = None
    error: Optional[str] = None
