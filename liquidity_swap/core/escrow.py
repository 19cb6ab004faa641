"""
Two-phase escrow with external token contracts (ledger side).

deposit:  request   -> emit `transfer_from(caller -> contract)` + a DEPOSIT callback
          confirm   -> credit the caller only if the transfer succeeded
withdraw: request   -> debit the caller first, then emit `transfer(contract -> caller)`
          (no confirm; a failed transfer leaves the debit in place)

A failed withdraw transfer leaves the contract holding more than the ledger
records; it is never rolled back here.

The callback carries the token tag and amount so the confirm phase needs no
re-derivation. Delivery of each confirm exactly once is the runtime's job;
nothing here deduplicates.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Optional, Tuple

from ..errors import TransferFailedError, ValidationError
from ..kernels.python.checked_u128 import require_u128
from ..state.address import Address
from ..state.balances import Amount, BalanceLedger, Token
from ..state.contract import LiquiditySwapState


@unique
class TokenMethod(Enum):
    TRANSFER = "transfer"
    TRANSFER_FROM = "transfer_from"


@unique
class CallbackKind(Enum):
    DEPOSIT = "deposit_callback"


@dataclass(frozen=True)
class TransferCall:
    """One outbound call to an external token contract."""

    token_address: Address
    method: TokenMethod
    sender: Address
    recipient: Address
    amount: Amount


@dataclass(frozen=True)
class Callback:
    """Continuation armed by a request; delivered back with the transfer outcome."""

    kind: CallbackKind
    caller: Address
    token: Token
    amount: Amount


@dataclass(frozen=True)
class EventGroup:
    calls: Tuple[TransferCall, ...]
    callback: Optional[Callback] = None


def request_deposit(state: LiquiditySwapState, caller: Address, token_address: Address, amount: Amount) -> EventGroup:
    """Phase 1 of a deposit. Touches no ledger state."""
    token = state.token_for(token_address)
    require_u128("amount", amount)
    return EventGroup(
        calls=(
            TransferCall(
                token_address=token_address,
                method=TokenMethod.TRANSFER_FROM,
                sender=caller,
                recipient=state.contract,
                amount=amount,
            ),
        ),
        callback=Callback(kind=CallbackKind.DEPOSIT, caller=caller, token=token, amount=amount),
    )


def request_withdrawal(
    state: LiquiditySwapState,
    ledger: BalanceLedger,
    caller: Address,
    token_address: Address,
    amount: Amount,
) -> EventGroup:
    """Debit `caller` on `ledger` and emit the outbound transfer."""
    token = state.token_for(token_address)
    ledger.debit(caller, token, amount)
    return EventGroup(
        calls=(
            TransferCall(
                token_address=token_address,
                method=TokenMethod.TRANSFER,
                sender=state.contract,
                recipient=caller,
                amount=amount,
            ),
        ),
    )


def apply_confirmation(ledger: BalanceLedger, callback: Callback, success: bool) -> None:
    """
    Phase 2: finalize a request on `ledger`.

    Raises:
        TransferFailedError: If the external transfer failed (nothing is credited).
    """
    if not success:
        raise TransferFailedError(
            f"Transfer did not succeed: {callback.kind.value} of {callback.amount} {callback.token.value}"
        )
    if callback.kind == CallbackKind.DEPOSIT:
        ledger.credit(callback.caller, callback.token, callback.amount)
        return
    raise ValidationError(f"unknown callback kind: {callback.kind}")
