"""
Persisted state of one liquidity swap contract.

Layout: the contract's own address, the two pool token addresses, the swap fee
(per mille) and the balance ledger. The ledger entry keyed by the contract's
own address is the pool: its A/B fields are the reserves and its liquidity
field is the total share supply.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from ..errors import ValidationError
from ..kernels.python.cpmm_swap_v1 import require_fee_per_mille
from .address import Address
from .balances import BalanceLedger, Token, TokenBalance


def validate_config(
    contract_address: Address,
    token_a_address: Address,
    token_b_address: Address,
    swap_fee_per_mille: int,
) -> None:
    """
    Check the immutable contract configuration.

    Raises:
        ValidationError: If a token address is a plain account, the two token
            addresses are equal, the contract address is an account or equals a
            token address, or the fee is outside [0, 1000] per mille.
    """
    for name, address in (
        ("contract_address", contract_address),
        ("token_a_address", token_a_address),
        ("token_b_address", token_b_address),
    ):
        if not isinstance(address, Address):
            raise TypeError(f"{name} must be an Address")
    if token_a_address.is_account:
        raise ValidationError("Tried to provide an account as token for token A")
    if token_b_address.is_account:
        raise ValidationError("Tried to provide an account as token for token B")
    if token_a_address == token_b_address:
        raise ValidationError("Cannot initialize swap with duplicate tokens")
    if contract_address.is_account:
        raise ValidationError("Contract address must not be an account address")
    if contract_address in (token_a_address, token_b_address):
        raise ValidationError("Contract address must differ from the token addresses")
    try:
        require_fee_per_mille(swap_fee_per_mille)
    except ValidationError as exc:
        raise ValidationError("Swap fee should not exceed 1000") from exc


@dataclass(frozen=True)
class LiquiditySwapState:
    """
    Contract state. Not hashable: the ledger is mutable and is only ever
    changed on a private copy inside the engine; treat `ledger` as read-only.
    """

    __hash__ = None  # type: ignore[assignment]

    contract: Address
    token_a_address: Address
    token_b_address: Address
    swap_fee_per_mille: int
    ledger: BalanceLedger

    def balance_of(self, account: Address) -> TokenBalance:
        return self.ledger.get(account)

    def pool_balance(self) -> TokenBalance:
        return self.ledger.get(self.contract)

    def pools_have_liquidity(self) -> bool:
        pool = self.pool_balance()
        return pool.a_tokens != 0 and pool.b_tokens != 0

    def token_for(self, token_address: Address) -> Token:
        """Map a pool token address to its ledger tag; any other address is rejected."""
        if token_address == self.token_a_address:
            return Token.A
        if token_address == self.token_b_address:
            return Token.B
        raise ValidationError(f"Provided invalid token address: {token_address}")

    def address_for(self, token: Token) -> Address:
        if token == Token.A:
            return self.token_a_address
        if token == Token.B:
            return self.token_b_address
        raise ValidationError(f"{token.value} tokens have no external token contract")

    def provided_and_opposite(self, token_address: Address) -> Tuple[Token, Token]:
        """(provided, opposite) token tags for a caller-supplied token address."""
        provided = self.token_for(token_address)
        opposite = Token.B if provided == Token.A else Token.A
        return provided, opposite
