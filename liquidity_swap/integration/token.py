"""
External token contracts seen from the runtime.

`TokenContract` is the minimal interface the escrow shell needs. Calls return
False on failure instead of raising, so a failed transfer surfaces to the
contract as a callback outcome.
"""

from __future__ import annotations

import logging
from typing import Dict, Protocol, Tuple

from ..kernels.python.checked_u128 import U128_MAX
from ..state.address import Address

logger = logging.getLogger(__name__)


class TokenContract(Protocol):
    def transfer(self, sender: Address, recipient: Address, amount: int) -> bool:
        ...

    def transfer_from(self, spender: Address, owner: Address, recipient: Address, amount: int) -> bool:
        ...

    def balance_of(self, owner: Address) -> int:
        ...


class InMemoryTokenContract:
    """Fungible token with balances and allowances, held in memory."""

    def __init__(self, address: Address, symbol: str = "") -> None:
        self.address = address
        self.symbol = symbol
        self._balances: Dict[Address, int] = {}
        self._allowances: Dict[Tuple[Address, Address], int] = {}

    def mint(self, owner: Address, amount: int) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise ValueError("mint amount must be a non-negative int")
        new_balance = self._balances.get(owner, 0) + amount
        if new_balance > U128_MAX:
            raise OverflowError("mint would exceed u128")
        self._balances[owner] = new_balance

    def approve(self, owner: Address, spender: Address, amount: int) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise ValueError("allowance must be a non-negative int")
        self._allowances[(owner, spender)] = amount

    def allowance(self, owner: Address, spender: Address) -> int:
        return self._allowances.get((owner, spender), 0)

    def balance_of(self, owner: Address) -> int:
        return self._balances.get(owner, 0)

    def _move(self, sender: Address, recipient: Address, amount: int) -> bool:
        if amount < 0 or self.balance_of(sender) < amount:
            return False
        if self.balance_of(recipient) + amount > U128_MAX and sender != recipient:
            return False
        self._balances[sender] = self.balance_of(sender) - amount
        self._balances[recipient] = self.balance_of(recipient) + amount
        return True

    def transfer(self, sender: Address, recipient: Address, amount: int) -> bool:
        ok = self._move(sender, recipient, amount)
        if not ok:
            logger.debug("%s transfer %s -> %s of %d refused", self.symbol or self.address, sender, recipient, amount)
        return ok

    def transfer_from(self, spender: Address, owner: Address, recipient: Address, amount: int) -> bool:
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            logger.debug("%s allowance %s -> %s too small (%d < %d)", self.symbol or self.address, owner, spender, allowed, amount)
            return False
        if not self._move(owner, recipient, amount):
            return False
        self._allowances[(owner, spender)] = allowed - amount
        return True
