"""
Per-account balance ledger.

Implements Ledger[Address] -> TokenBalance(a_tokens, b_tokens, liquidity_tokens).

The ledger is a total function: an absent account reads as the empty record,
and a record that becomes all-zero is dropped so the table stays sparse.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, unique
from typing import Dict, Iterator, List, Tuple

from ..errors import InsufficientFundsError
from ..kernels.python.checked_u128 import U128_MAX, checked_add, require_u128
from .address import Address


Amount = int  # Non-negative integer in [0, U128_MAX]


@unique
class Token(Enum):
    A = "a"
    B = "b"
    LIQUIDITY = "liquidity"


_FIELD_BY_TOKEN = {
    Token.A: "a_tokens",
    Token.B: "b_tokens",
    Token.LIQUIDITY: "liquidity_tokens",
}


@dataclass(frozen=True)
class TokenBalance:
    """How much of each token an account holds inside the contract."""

    a_tokens: Amount = 0
    b_tokens: Amount = 0
    liquidity_tokens: Amount = 0

    def __post_init__(self) -> None:
        for name in _FIELD_BY_TOKEN.values():
            require_u128(name, getattr(self, name))

    def amount_of(self, token: Token) -> Amount:
        return getattr(self, _FIELD_BY_TOKEN[token])

    def with_amount(self, token: Token, amount: Amount) -> "TokenBalance":
        return replace(self, **{_FIELD_BY_TOKEN[token]: amount})

    @property
    def is_empty(self) -> bool:
        return self.a_tokens == 0 and self.b_tokens == 0 and self.liquidity_tokens == 0


EMPTY_BALANCE = TokenBalance()


class BalanceLedger:
    """
    Sparse mapping account -> TokenBalance.

    Records are immutable; every mutation replaces the stored record. Iteration
    helpers always return entries in address order.
    """

    def __init__(self) -> None:
        self._balances: Dict[Address, TokenBalance] = {}

    def get(self, account: Address) -> TokenBalance:
        """Balance record for `account`; the empty record if absent (never inserts)."""
        return self._balances.get(account, EMPTY_BALANCE)

    def _store(self, account: Address, balance: TokenBalance) -> None:
        if balance.is_empty:
            self._balances.pop(account, None)
        else:
            self._balances[account] = balance

    def _credited(self, account: Address, token: Token, amount: Amount) -> TokenBalance:
        current = self.get(account)
        return current.with_amount(token, checked_add(current.amount_of(token), amount))

    def _debited(self, account: Address, token: Token, amount: Amount) -> TokenBalance:
        current = self.get(account)
        held = current.amount_of(token)
        if amount > held:
            raise InsufficientFundsError(
                f"Insufficient funds: {account} holds {held} {token.value}, needs {amount}"
            )
        return current.with_amount(token, held - amount)

    def credit(self, account: Address, token: Token, amount: Amount) -> None:
        """Add `amount` of `token` to `account`, creating the entry lazily."""
        require_u128("amount", amount)
        self._store(account, self._credited(account, token, amount))

    def debit(self, account: Address, token: Token, amount: Amount) -> None:
        """
        Subtract `amount` of `token` from `account`.

        Raises:
            InsufficientFundsError: If `amount` exceeds the current holding.
        """
        require_u128("amount", amount)
        self._store(account, self._debited(account, token, amount))

    def move(self, source: Address, target: Address, token: Token, amount: Amount) -> None:
        """
        Debit `source` and credit `target` as one step.

        Both new records are computed before either is stored, so a failing
        credit (overflow) cannot leave the debit applied on its own.
        """
        require_u128("amount", amount)
        debited = self._debited(source, token, amount)
        if source == target:
            # Funds must still be present; the net effect is nothing.
            self._store(source, debited.with_amount(token, debited.amount_of(token) + amount))
            return
        credited = self._credited(target, token, amount)
        self._store(source, debited)
        self._store(target, credited)

    def copy(self) -> "BalanceLedger":
        clone = BalanceLedger()
        clone._balances = dict(self._balances)
        return clone

    def items(self) -> List[Tuple[Address, TokenBalance]]:
        """All stored (account, balance) entries in address order."""
        return sorted(self._balances.items(), key=lambda kv: kv[0])

    def total(self, token: Token) -> int:
        """Exact (unbounded) sum of `token` over every stored record, pool included."""
        return sum(balance.amount_of(token) for balance in self._balances.values())

    def verify_in_range(self) -> bool:
        return all(
            0 <= balance.amount_of(token) <= U128_MAX
            for balance in self._balances.values()
            for token in Token
        )

    def __contains__(self, account: object) -> bool:
        return account in self._balances

    def __iter__(self) -> Iterator[Address]:
        return iter(sorted(self._balances))

    def __len__(self) -> int:
        return len(self._balances)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BalanceLedger):
            return NotImplemented
        return self._balances == other._balances

    def __repr__(self) -> str:
        return f"BalanceLedger({len(self._balances)} entries)"
