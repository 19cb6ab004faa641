"""Tests for liquidity_swap/core/engine.py: dispatch table, step and confirm.

Known action sequences are run end-to-end through the engine.
"""

from dataclasses import replace

import pytest

from liquidity_swap.core import (
    Action,
    Call,
    confirm,
    initialize,
    pool_balance,
    pools_have_liquidity,
    step,
    step_or_raise,
)
from liquidity_swap.core.escrow import TokenMethod
from liquidity_swap.errors import (
    InsufficientFundsError,
    InvariantViolationError,
    ValidationError,
)
from liquidity_swap.kernels.python.checked_u128 import U128_MAX
from liquidity_swap.state.address import account, public_contract
from liquidity_swap.state.balances import Token, TokenBalance

CONTRACT = public_contract(b"\xc0" * 20)
TOKEN_A = public_contract(b"\xaa" * 20)
TOKEN_B = public_contract(b"\xbb" * 20)
ALICE = account(b"\x01" * 20)
BOB = account(b"\x02" * 20)
CAROL = account(b"\x03" * 20)


def _fund(state, who, a=0, b=0):
    """Helper: run a deposit request + successful confirmation for each token."""
    for token_address, amount in ((TOKEN_A, a), (TOKEN_B, b)):
        if amount == 0:
            continue
        r = step_or_raise(state, Call(action=Action.DEPOSIT, sender=who, token_address=token_address, amount=amount))
        (group,) = r.event_groups
        state = confirm(r.state, group.callback, True).state
    return state


def _seeded_pool():
    """Helper: pool seeded by ALICE with 1000 A / 4000 B (2000 shares)."""
    state = _fund(initialize(CONTRACT, TOKEN_A, TOKEN_B, 3), ALICE, a=1000, b=4000)
    r = step_or_raise(
        state,
        Call(action=Action.PROVIDE_INITIAL_LIQUIDITY, sender=ALICE, token_a_amount=1000, token_b_amount=4000),
    )
    return r.state


# ---------------------------------------------------------------------------
# initialize
# ---------------------------------------------------------------------------

class TestInitialize:
    def test_empty_ledger(self):
        s = initialize(CONTRACT, TOKEN_A, TOKEN_B, 3)
        assert s.swap_fee_per_mille == 3
        assert len(s.ledger) == 0
        assert not pools_have_liquidity(s)

    def test_rejects_account_token(self):
        with pytest.raises(ValidationError, match="token A"):
            initialize(CONTRACT, ALICE, TOKEN_B, 3)
        with pytest.raises(ValidationError, match="token B"):
            initialize(CONTRACT, TOKEN_A, ALICE, 3)

    def test_rejects_duplicate_tokens(self):
        with pytest.raises(ValidationError, match="duplicate"):
            initialize(CONTRACT, TOKEN_A, TOKEN_A, 3)

    def test_fee_bounds(self):
        assert initialize(CONTRACT, TOKEN_A, TOKEN_B, 0).swap_fee_per_mille == 0
        assert initialize(CONTRACT, TOKEN_A, TOKEN_B, 1000).swap_fee_per_mille == 1000
        with pytest.raises(ValidationError, match="1000"):
            initialize(CONTRACT, TOKEN_A, TOKEN_B, 1001)


# ---------------------------------------------------------------------------
# deposit / withdraw
# ---------------------------------------------------------------------------

class TestDepositWithdraw:
    def test_deposit_request_does_not_credit(self):
        s = initialize(CONTRACT, TOKEN_A, TOKEN_B, 3)
        r = step(s, Call(action=Action.DEPOSIT, sender=ALICE, token_address=TOKEN_A, amount=10))
        assert r.accepted
        assert r.state.balance_of(ALICE) == TokenBalance()
        assert r.event_groups[0].calls[0].method == TokenMethod.TRANSFER_FROM

    def test_deposit_confirmed(self):
        s = _fund(initialize(CONTRACT, TOKEN_A, TOKEN_B, 3), ALICE, a=10, b=7)
        assert s.balance_of(ALICE) == TokenBalance(a_tokens=10, b_tokens=7)

    def test_deposit_failed_transfer_is_rejected(self):
        s = initialize(CONTRACT, TOKEN_A, TOKEN_B, 3)
        r = step(s, Call(action=Action.DEPOSIT, sender=ALICE, token_address=TOKEN_A, amount=10))
        c = confirm(r.state, r.event_groups[0].callback, False)
        assert not c.accepted
        assert c.rejection == "transfer_failed"
        assert c.state is None

    def test_zero_deposit_is_accepted(self):
        s = initialize(CONTRACT, TOKEN_A, TOKEN_B, 3)
        r = step(s, Call(action=Action.DEPOSIT, sender=ALICE, token_address=TOKEN_A, amount=0))
        assert r.accepted

    def test_deposit_rejects_foreign_token(self):
        s = initialize(CONTRACT, TOKEN_A, TOKEN_B, 3)
        r = step(s, Call(action=Action.DEPOSIT, sender=ALICE, token_address=BOB, amount=1))
        assert not r.accepted
        assert r.rejection == "validation"

    def test_withdraw_debits_and_emits_transfer(self):
        s = _fund(initialize(CONTRACT, TOKEN_A, TOKEN_B, 3), ALICE, a=50)
        r = step(s, Call(action=Action.WITHDRAW, sender=ALICE, token_address=TOKEN_A, amount=20))
        assert r.accepted
        assert r.state.balance_of(ALICE).a_tokens == 30
        (group,) = r.event_groups
        assert group.callback is None
        assert group.calls[0].method == TokenMethod.TRANSFER
        assert group.calls[0].amount == 20

    def test_withdraw_overdraft_rejected(self):
        s = _fund(initialize(CONTRACT, TOKEN_A, TOKEN_B, 3), ALICE, a=50)
        r = step(s, Call(action=Action.WITHDRAW, sender=ALICE, token_address=TOKEN_A, amount=51))
        assert not r.accepted
        assert r.rejection == "insufficient_funds"
        assert s.balance_of(ALICE).a_tokens == 50

    def test_missing_token_address(self):
        s = initialize(CONTRACT, TOKEN_A, TOKEN_B, 3)
        with pytest.raises(ValidationError, match="token_address"):
            step_or_raise(s, Call(action=Action.WITHDRAW, sender=ALICE, amount=1))


# ---------------------------------------------------------------------------
# liquidity
# ---------------------------------------------------------------------------

class TestLiquidity:
    def test_initial_provision(self):
        s = _seeded_pool()
        assert pool_balance(s) == TokenBalance(a_tokens=1000, b_tokens=4000, liquidity_tokens=2000)
        assert s.balance_of(ALICE) == TokenBalance(liquidity_tokens=2000)
        assert pools_have_liquidity(s)

    def test_initial_provision_twice_rejected(self):
        s = _fund(_seeded_pool(), BOB, a=10, b=10)
        r = step(s, Call(action=Action.PROVIDE_INITIAL_LIQUIDITY, sender=BOB, token_a_amount=10, token_b_amount=10))
        assert not r.accepted
        assert r.rejection == "validation"

    def test_initial_provision_zero_shares_rejected(self):
        s = _fund(initialize(CONTRACT, TOKEN_A, TOKEN_B, 3), ALICE, a=10)
        with pytest.raises(ValidationError, match="0 minted"):
            step_or_raise(
                s,
                Call(action=Action.PROVIDE_INITIAL_LIQUIDITY, sender=ALICE, token_a_amount=10, token_b_amount=0),
            )

    def test_initial_provision_without_funds(self):
        s = initialize(CONTRACT, TOKEN_A, TOKEN_B, 3)
        with pytest.raises(InsufficientFundsError):
            step_or_raise(
                s,
                Call(action=Action.PROVIDE_INITIAL_LIQUIDITY, sender=ALICE, token_a_amount=10, token_b_amount=10),
            )

    def test_provide_liquidity(self):
        s = _fund(_seeded_pool(), CAROL, a=100, b=500)
        r = step_or_raise(s, Call(action=Action.PROVIDE_LIQUIDITY, sender=CAROL, token_address=TOKEN_A, amount=100))
        # opposite = 100 * 4000 // 1000 + 1, minted = 100 * 2000 // 1000
        assert r.state.balance_of(CAROL) == TokenBalance(a_tokens=0, b_tokens=99, liquidity_tokens=200)
        assert pool_balance(r.state) == TokenBalance(a_tokens=1100, b_tokens=4401, liquidity_tokens=2200)

    def test_provide_liquidity_in_b(self):
        s = _fund(_seeded_pool(), CAROL, a=101, b=400)
        r = step_or_raise(s, Call(action=Action.PROVIDE_LIQUIDITY, sender=CAROL, token_address=TOKEN_B, amount=400))
        # opposite = 400 * 1000 // 4000 + 1, minted = 400 * 2000 // 4000
        assert r.state.balance_of(CAROL) == TokenBalance(liquidity_tokens=200)

    def test_provide_liquidity_zero_minted_rejected(self):
        s = _fund(_seeded_pool(), CAROL, a=10, b=10)
        r = step(s, Call(action=Action.PROVIDE_LIQUIDITY, sender=CAROL, token_address=TOKEN_B, amount=1))
        assert not r.accepted
        assert r.rejection == "validation"
        assert "0 minted" in r.error

    def test_provide_liquidity_into_empty_pool_rejected(self):
        s = _fund(initialize(CONTRACT, TOKEN_A, TOKEN_B, 3), CAROL, a=10, b=10)
        with pytest.raises(ValidationError, match="existing liquidity"):
            step_or_raise(s, Call(action=Action.PROVIDE_LIQUIDITY, sender=CAROL, token_address=TOKEN_A, amount=5))

    def test_provide_liquidity_missing_opposite_funds(self):
        s = _fund(_seeded_pool(), CAROL, a=100, b=400)
        r = step(s, Call(action=Action.PROVIDE_LIQUIDITY, sender=CAROL, token_address=TOKEN_A, amount=100))
        assert not r.accepted
        assert r.rejection == "insufficient_funds"

    def test_partial_reclaim(self):
        s = _seeded_pool()
        r = step_or_raise(s, Call(action=Action.RECLAIM_LIQUIDITY, sender=ALICE, liquidity_token_amount=1000))
        assert r.state.balance_of(ALICE) == TokenBalance(a_tokens=500, b_tokens=2000, liquidity_tokens=1000)
        assert pool_balance(r.state) == TokenBalance(a_tokens=500, b_tokens=2000, liquidity_tokens=1000)

    def test_full_reclaim_empties_pool_and_allows_reinitialization(self):
        s = _seeded_pool()
        s = step_or_raise(s, Call(action=Action.RECLAIM_LIQUIDITY, sender=ALICE, liquidity_token_amount=2000)).state
        assert CONTRACT not in s.ledger
        assert s.balance_of(ALICE) == TokenBalance(a_tokens=1000, b_tokens=4000)
        assert not pools_have_liquidity(s)

        r = step(s, Call(action=Action.PROVIDE_INITIAL_LIQUIDITY, sender=ALICE, token_a_amount=100, token_b_amount=100))
        assert r.accepted
        assert pool_balance(r.state).liquidity_tokens == 100

    def test_reclaim_more_than_held_rejected(self):
        s = _seeded_pool()
        r = step(s, Call(action=Action.RECLAIM_LIQUIDITY, sender=BOB, liquidity_token_amount=1))
        assert not r.accepted
        assert r.rejection == "insufficient_funds"


# ---------------------------------------------------------------------------
# swap
# ---------------------------------------------------------------------------

class TestSwap:
    def test_swap_a_for_b(self):
        s = _fund(_seeded_pool(), BOB, a=100)
        r = step_or_raise(s, Call(action=Action.SWAP, sender=BOB, token_address=TOKEN_A, amount=100))
        # 997 * 100 * 4000 // (1000 * 1000 + 997 * 100) = 362
        assert r.state.balance_of(BOB) == TokenBalance(b_tokens=362)
        assert pool_balance(r.state) == TokenBalance(a_tokens=1100, b_tokens=3638, liquidity_tokens=2000)
        assert r.event_groups == ()

    def test_swap_product_non_decreasing(self):
        s = _fund(_seeded_pool(), BOB, a=500, b=500)
        for token_address in (TOKEN_A, TOKEN_B, TOKEN_A):
            before = pool_balance(s)
            s = step_or_raise(s, Call(action=Action.SWAP, sender=BOB, token_address=token_address, amount=150)).state
            after = pool_balance(s)
            assert after.a_tokens * after.b_tokens >= before.a_tokens * before.b_tokens

    def test_swap_without_liquidity_rejected(self):
        s = _fund(initialize(CONTRACT, TOKEN_A, TOKEN_B, 3), BOB, a=100)
        r = step(s, Call(action=Action.SWAP, sender=BOB, token_address=TOKEN_A, amount=100))
        assert not r.accepted
        assert r.rejection == "validation"

    def test_swap_insufficient_funds_leaves_state_untouched(self):
        s = _fund(_seeded_pool(), BOB, a=10)
        snapshot = s.ledger.copy()
        r = step(s, Call(action=Action.SWAP, sender=BOB, token_address=TOKEN_A, amount=11))
        assert not r.accepted
        assert r.rejection == "insufficient_funds"
        assert s.ledger == snapshot

    def test_zero_swap_is_a_no_op(self):
        s = _seeded_pool()
        r = step_or_raise(s, Call(action=Action.SWAP, sender=BOB, token_address=TOKEN_B, amount=0))
        assert r.state.ledger == s.ledger


# ---------------------------------------------------------------------------
# validation, atomicity and invariants
# ---------------------------------------------------------------------------

class TestStepContract:
    def test_accepted_step_does_not_mutate_input(self):
        s = _fund(_seeded_pool(), BOB, a=100)
        snapshot = s.ledger.copy()
        r = step(s, Call(action=Action.SWAP, sender=BOB, token_address=TOKEN_A, amount=100))
        assert r.accepted
        assert s.ledger == snapshot
        assert r.state.ledger != snapshot

    def test_amount_above_u128_is_overflow(self):
        s = _seeded_pool()
        r = step(s, Call(action=Action.DEPOSIT, sender=BOB, token_address=TOKEN_A, amount=U128_MAX + 1))
        assert not r.accepted
        assert r.rejection == "overflow"

    def test_negative_amount_is_validation(self):
        s = _seeded_pool()
        r = step(s, Call(action=Action.SWAP, sender=BOB, token_address=TOKEN_A, amount=-1))
        assert r.rejection == "validation"

    def test_contract_cannot_be_sender(self):
        s = _seeded_pool()
        r = step(s, Call(action=Action.RECLAIM_LIQUIDITY, sender=CONTRACT, liquidity_token_amount=1))
        assert r.rejection == "validation"

    def test_non_address_sender_propagates(self):
        s = _seeded_pool()
        with pytest.raises(TypeError):
            step(s, Call(action=Action.SWAP, sender="alice", token_address=TOKEN_A, amount=1))

    def test_invariant_violation_is_rejected(self):
        s = _seeded_pool()
        corrupt = s.ledger.copy()
        corrupt.credit(BOB, Token.LIQUIDITY, 5)
        bad = replace(s, ledger=corrupt)

        with pytest.raises(InvariantViolationError) as exc_info:
            step_or_raise(bad, Call(action=Action.DEPOSIT, sender=BOB, token_address=TOKEN_A, amount=1))
        assert "inv_share_supply_matches_holders" in exc_info.value.violations

        r = step(bad, Call(action=Action.DEPOSIT, sender=BOB, token_address=TOKEN_A, amount=1))
        assert r.rejection == "invariant"

        r = step(bad, Call(action=Action.DEPOSIT, sender=BOB, token_address=TOKEN_A, amount=1), check_invariants=False)
        assert r.accepted
