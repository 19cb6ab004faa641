"""Dispatch-table engine for the liquidity swap contract.

``step(state, call)`` is the single entry point for public actions. It:

1. Validates call parameters (u128 domains, sender, token address presence).
2. Clones the ledger and dispatches to the action's update function.
3. Checks all invariants on the post-state.
4. Returns a ``StepResult`` (accepted with the new state and escrow requests,
   or rejected with a reason). The input state is never mutated.

``confirm(state, callback, success)`` is the matching entry point for the
escrow confirm phase. ``step_or_raise`` / ``confirm_or_raise`` raise the typed
error instead of returning a rejected result.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Dict, Tuple

from ..errors import InvariantViolationError, LiquiditySwapError, ValidationError
from ..kernels.python.checked_u128 import require_u128
from ..state.address import Address
from ..state.balances import Amount, BalanceLedger, Token, TokenBalance
from ..state.contract import LiquiditySwapState, validate_config
from .cpmm import equivalent_and_minted, initial_liquidity_shares, reclaim_output, swap_output
from .escrow import Callback, EventGroup, apply_confirmation, request_deposit, request_withdrawal
from .invariants import check_all
from .types import Action, Call, StepResult

logger = logging.getLogger(__name__)

UpdateFn = Callable[[LiquiditySwapState, BalanceLedger, Call], Tuple[EventGroup, ...]]


def initialize(
    contract_address: Address,
    token_a_address: Address,
    token_b_address: Address,
    swap_fee_per_mille: int,
) -> LiquiditySwapState:
    """
    Create the contract state with an empty ledger.

    Raises:
        ValidationError: If a token address is a plain account, the two token
            addresses are equal, or the fee exceeds 1000 per mille.
    """
    validate_config(contract_address, token_a_address, token_b_address, swap_fee_per_mille)

    logger.debug(
        "initialized contract %s for tokens %s/%s (fee %d per mille)",
        contract_address,
        token_a_address,
        token_b_address,
        swap_fee_per_mille,
    )
    return LiquiditySwapState(
        contract=contract_address,
        token_a_address=token_a_address,
        token_b_address=token_b_address,
        swap_fee_per_mille=swap_fee_per_mille,
        ledger=BalanceLedger(),
    )


# -- Update functions ---------------------------------------------------------
#
# Each receives the pre-state (read-only) and a private clone of its ledger to
# mutate. Any raise discards the clone.


def _require_token_address(call: Call) -> Address:
    if call.token_address is None:
        raise ValidationError(f"{call.action.value} requires a token_address")
    return call.token_address


def _apply_deposit(state: LiquiditySwapState, ledger: BalanceLedger, call: Call) -> Tuple[EventGroup, ...]:
    return (request_deposit(state, call.sender, _require_token_address(call), call.amount),)


def _apply_withdraw(state: LiquiditySwapState, ledger: BalanceLedger, call: Call) -> Tuple[EventGroup, ...]:
    return (request_withdrawal(state, ledger, call.sender, _require_token_address(call), call.amount),)


def _apply_swap(state: LiquiditySwapState, ledger: BalanceLedger, call: Call) -> Tuple[EventGroup, ...]:
    if not state.pools_have_liquidity():
        raise ValidationError("Pools must have existing liquidity to perform a swap")

    provided, opposite = state.provided_and_opposite(_require_token_address(call))
    pool = state.pool_balance()
    amount_out = swap_output(
        pool.amount_of(provided),
        pool.amount_of(opposite),
        call.amount,
        state.swap_fee_per_mille,
    )

    ledger.move(call.sender, state.contract, provided, call.amount)
    ledger.move(state.contract, call.sender, opposite, amount_out)
    return ()


def _provide(
    state: LiquiditySwapState,
    ledger: BalanceLedger,
    provider: Address,
    provided: Token,
    opposite: Token,
    provided_amount: Amount,
    opposite_amount: Amount,
    minted_shares: Amount,
) -> None:
    ledger.move(provider, state.contract, provided, provided_amount)
    ledger.move(provider, state.contract, opposite, opposite_amount)
    ledger.credit(provider, Token.LIQUIDITY, minted_shares)
    ledger.credit(state.contract, Token.LIQUIDITY, minted_shares)


def _apply_provide_liquidity(
    state: LiquiditySwapState, ledger: BalanceLedger, call: Call
) -> Tuple[EventGroup, ...]:
    provided, opposite = state.provided_and_opposite(_require_token_address(call))
    if not state.pools_have_liquidity():
        raise ValidationError("Pools must have existing liquidity to provide liquidity")

    pool = state.pool_balance()
    opposite_amount, minted = equivalent_and_minted(
        call.amount,
        pool.amount_of(provided),
        pool.amount_of(opposite),
        pool.liquidity_tokens,
    )
    if minted == 0:
        raise ValidationError("Provided amount yielded 0 minted liquidity")

    _provide(state, ledger, call.sender, provided, opposite, call.amount, opposite_amount, minted)
    return ()


def _apply_provide_initial_liquidity(
    state: LiquiditySwapState, ledger: BalanceLedger, call: Call
) -> Tuple[EventGroup, ...]:
    if state.pools_have_liquidity():
        raise ValidationError("Can only initialize when both pools are empty")

    minted = initial_liquidity_shares(call.token_a_amount, call.token_b_amount)
    if minted == 0:
        raise ValidationError("Provided amount yielded 0 minted liquidity")

    _provide(state, ledger, call.sender, Token.A, Token.B, call.token_a_amount, call.token_b_amount, minted)
    return ()


def _apply_reclaim_liquidity(
    state: LiquiditySwapState, ledger: BalanceLedger, call: Call
) -> Tuple[EventGroup, ...]:
    shares = call.liquidity_token_amount
    ledger.debit(call.sender, Token.LIQUIDITY, shares)

    # Priced against the pre-reclaim share supply.
    pool = ledger.get(state.contract)
    a_output, b_output = reclaim_output(shares, pool.a_tokens, pool.b_tokens, pool.liquidity_tokens)

    ledger.move(state.contract, call.sender, Token.A, a_output)
    ledger.move(state.contract, call.sender, Token.B, b_output)
    ledger.debit(state.contract, Token.LIQUIDITY, shares)
    return ()


_DISPATCH: Dict[Action, UpdateFn] = {
    Action.DEPOSIT: _apply_deposit,
    Action.SWAP: _apply_swap,
    Action.WITHDRAW: _apply_withdraw,
    Action.PROVIDE_LIQUIDITY: _apply_provide_liquidity,
    Action.RECLAIM_LIQUIDITY: _apply_reclaim_liquidity,
    Action.PROVIDE_INITIAL_LIQUIDITY: _apply_provide_initial_liquidity,
}

_AMOUNT_FIELDS = ("amount", "token_a_amount", "token_b_amount", "liquidity_token_amount")


def _validate_call(state: LiquiditySwapState, call: Call) -> UpdateFn:
    if not isinstance(call.sender, Address):
        raise TypeError("call.sender must be an Address")
    if call.token_address is not None and not isinstance(call.token_address, Address):
        raise TypeError("call.token_address must be an Address")
    update_fn = _DISPATCH.get(call.action)
    if update_fn is None:
        raise ValidationError(f"unknown action: {call.action}")
    if call.sender == state.contract:
        raise ValidationError("the contract cannot call itself")
    for field_name in _AMOUNT_FIELDS:
        require_u128(field_name, getattr(call, field_name))
    return update_fn


def _commit(state: LiquiditySwapState, ledger: BalanceLedger, check_invariants: bool) -> LiquiditySwapState:
    new_state = replace(state, ledger=ledger)
    if check_invariants:
        violations = check_all(new_state)
        if violations:
            raise InvariantViolationError(violations)
    return new_state


def step_or_raise(state: LiquiditySwapState, call: Call, *, check_invariants: bool = True) -> StepResult:
    """Execute one call; raise the typed ``LiquiditySwapError`` on rejection."""
    update_fn = _validate_call(state, call)
    ledger = state.ledger.copy()
    event_groups = update_fn(state, ledger, call)
    new_state = _commit(state, ledger, check_invariants)
    logger.debug("accepted %s from %s", call.action.value, call.sender)
    return StepResult(accepted=True, state=new_state, event_groups=tuple(event_groups))


def step(state: LiquiditySwapState, call: Call, *, check_invariants: bool = True) -> StepResult:
    """Execute one call against the given state.

    Returns ``StepResult`` with ``accepted=True`` on success, or
    ``accepted=False`` with a ``rejection`` code. Only ``LiquiditySwapError``
    is converted; anything else (e.g. a ``TypeError`` for a malformed call)
    propagates.
    """
    try:
        return step_or_raise(state, call, check_invariants=check_invariants)
    except LiquiditySwapError as exc:
        logger.info("rejected %s from %s: %s", call.action.value, call.sender, exc)
        return StepResult(accepted=False, rejection=exc.code, error=str(exc))


def confirm_or_raise(
    state: LiquiditySwapState,
    callback: Callback,
    success: bool,
    *,
    check_invariants: bool = True,
) -> StepResult:
    """Deliver an escrow confirmation; raise ``TransferFailedError`` if ``success`` is False."""
    ledger = state.ledger.copy()
    apply_confirmation(ledger, callback, success)
    new_state = _commit(state, ledger, check_invariants)
    logger.debug(
        "confirmed %s for %s: %d %s",
        callback.kind.value,
        callback.caller,
        callback.amount,
        callback.token.value,
    )
    return StepResult(accepted=True, state=new_state)


def confirm(
    state: LiquiditySwapState,
    callback: Callback,
    success: bool,
    *,
    check_invariants: bool = True,
) -> StepResult:
    """Like ``confirm_or_raise()`` but returns a rejected result instead of raising."""
    try:
        return confirm_or_raise(state, callback, success, check_invariants=check_invariants)
    except LiquiditySwapError as exc:
        logger.info("confirmation %s for %s rejected: %s", callback.kind.value, callback.caller, exc)
        return StepResult(accepted=False, rejection=exc.code, error=str(exc))


# -- Read-only queries ----------------------------------------------------------


def balance_of(state: LiquiditySwapState, account: Address) -> TokenBalance:
    return state.balance_of(account)


def pool_balance(state: LiquiditySwapState) -> TokenBalance:
    """Reserves (A/B fields) and total share supply (liquidity field)."""
    return state.pool_balance()


def pools_have_liquidity(state: LiquiditySwapState) -> bool:
    return state.pools_have_liquidity()
