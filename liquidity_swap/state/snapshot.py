"""
Plain-dict snapshots and the deterministic state root.

Round-trip property (tested): `state_from_dict(state_to_dict(s)) == s`.

The state root commits to the persisted layout only (contract, token
addresses, fee, ledger). Ledger entries are listed in address order, so the
root does not depend on insertion order.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping

from .address import Address
from .balances import BalanceLedger, Token, TokenBalance
from .canonical import canonical_json_bytes, domain_sep_bytes, sha256_hex
from .contract import LiquiditySwapState, validate_config


STATE_ROOT_VERSION = 1


def state_to_dict(state: LiquiditySwapState) -> Dict[str, Any]:
    return {
        "contract": state.contract.to_hex(),
        "token_a_address": state.token_a_address.to_hex(),
        "token_b_address": state.token_b_address.to_hex(),
        "swap_fee_per_mille": state.swap_fee_per_mille,
        "token_balances": [
            {
                "owner": owner.to_hex(),
                "a_tokens": balance.a_tokens,
                "b_tokens": balance.b_tokens,
                "liquidity_tokens": balance.liquidity_tokens,
            }
            for owner, balance in state.ledger.items()
        ],
    }


def state_from_dict(d: Mapping[str, Any]) -> LiquiditySwapState:
    """
    Rebuild a state from `state_to_dict` output.

    The configuration is checked like `initialize()` does; malformed input
    raises KeyError, TypeError or ValueError (`ValidationError` included).
    """
    ledger = BalanceLedger()
    seen = set()
    for entry in d["token_balances"]:
        owner = Address.from_hex(entry["owner"])
        if owner in seen:
            raise ValueError(f"duplicate ledger entry for {owner}")
        seen.add(owner)
        balance = TokenBalance(
            a_tokens=entry["a_tokens"],
            b_tokens=entry["b_tokens"],
            liquidity_tokens=entry["liquidity_tokens"],
        )
        if balance.is_empty:
            raise ValueError(f"empty ledger entry stored for {owner}")
        for token in Token:
            ledger.credit(owner, token, balance.amount_of(token))

    contract = Address.from_hex(d["contract"])
    token_a_address = Address.from_hex(d["token_a_address"])
    token_b_address = Address.from_hex(d["token_b_address"])
    fee = d["swap_fee_per_mille"]
    validate_config(contract, token_a_address, token_b_address, fee)

    return LiquiditySwapState(
        contract=contract,
        token_a_address=token_a_address,
        token_b_address=token_b_address,
        swap_fee_per_mille=fee,
        ledger=ledger,
    )


def compute_state_root(state: LiquiditySwapState) -> str:
    """`0x`-prefixed sha256 over the domain-separated canonical snapshot."""
    payload = domain_sep_bytes("state_root", version=STATE_ROOT_VERSION) + canonical_json_bytes(
        state_to_dict(state)
    )
    return sha256_hex(payload)
