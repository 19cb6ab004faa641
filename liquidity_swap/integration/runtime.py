"""
Local chain runtime: the imperative shell around the functional core.

Calls run to completion one at a time. Escrow requests emitted by an accepted
call are queued (FIFO) and only executed by `process_next()`, so other calls
may interleave between a request and its confirmation. Each queued group is
executed once and its callback, if any, is delivered exactly once.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Mapping, Optional, Tuple

from ..core.engine import confirm, initialize, step
from ..core.escrow import EventGroup, TokenMethod, TransferCall
from ..core.invariants import ledger_totals
from ..core.types import Call, StepResult
from ..errors import SignatureError, ValidationError
from ..state.address import Address
from ..state.contract import LiquiditySwapState
from ..state.nonces import NonceTable
from .config import DeploymentConfig, RuntimeConfig
from .signing import SignedCall, verify_signed_call
from .token import TokenContract

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallReceipt:
    accepted: bool
    rejection: Optional[str] = None
    error: Optional[str] = None
    queued_groups: int = 0


@dataclass(frozen=True)
class DeliveryReport:
    """Outcome of executing one queued event group."""

    group: EventGroup
    transfers_ok: bool
    callback_result: Optional[StepResult] = None


class LocalChainRuntime:
    def __init__(
        self,
        state: LiquiditySwapState,
        tokens: Mapping[Address, TokenContract],
        config: RuntimeConfig = RuntimeConfig(),
    ) -> None:
        for address in (state.token_a_address, state.token_b_address):
            if address not in tokens:
                raise ValidationError(f"no token contract registered at {address}")
        self._state = state
        self._tokens = dict(tokens)
        self._config = config
        self._queue: Deque[EventGroup] = deque()
        self._nonces = NonceTable()

    @classmethod
    def from_deployment(
        cls, deployment: DeploymentConfig, tokens: Mapping[Address, TokenContract]
    ) -> "LocalChainRuntime":
        state = initialize(
            deployment.contract_address,
            deployment.token_a_address,
            deployment.token_b_address,
            deployment.swap_fee_per_mille,
        )
        return cls(state, tokens, deployment.runtime)

    @property
    def state(self) -> LiquiditySwapState:
        return self._state

    @property
    def config(self) -> RuntimeConfig:
        return self._config

    @property
    def nonces(self) -> NonceTable:
        return self._nonces

    @property
    def pending(self) -> int:
        return len(self._queue)

    # -- Call submission ----------------------------------------------------

    def _execute(self, call: Call) -> CallReceipt:
        result = step(self._state, call, check_invariants=self._config.check_invariants)
        if not result.accepted:
            return CallReceipt(accepted=False, rejection=result.rejection, error=result.error)
        assert result.state is not None
        self._state = result.state
        self._queue.extend(result.event_groups)
        for group in result.event_groups:
            logger.debug("queued %d transfer(s) for %s", len(group.calls), call.action.value)
        return CallReceipt(accepted=True, queued_groups=len(result.event_groups))

    def submit(self, call: Call) -> CallReceipt:
        """Run one unsigned call. Refused when the runtime requires signatures."""
        if self._config.require_signatures:
            return CallReceipt(
                accepted=False,
                rejection=SignatureError.code,
                error="unsigned calls are disabled",
            )
        return self._execute(call)

    def submit_signed(self, signed: SignedCall) -> CallReceipt:
        """
        Verify a signed call and run it.

        The nonce must be exactly one above the signer's last nonce. A verified
        nonce is consumed even if the call itself is then rejected.
        """
        try:
            expected = self._nonces.expected_next(signed.pubkey)
            if signed.nonce != expected:
                raise SignatureError(f"bad nonce: expected {expected}, got {signed.nonce}")
            verify_signed_call(signed, chain_id=self._config.chain_id)
        except (SignatureError, TypeError, ValueError) as exc:
            logger.info("rejected signed %s: %s", signed.call.action.value, exc)
            return CallReceipt(accepted=False, rejection=SignatureError.code, error=str(exc))
        self._nonces.set_last(signed.pubkey, signed.nonce)
        return self._execute(signed.call)

    # -- Escrow delivery ----------------------------------------------------

    def _run_transfer(self, transfer: TransferCall) -> bool:
        token = self._tokens[transfer.token_address]
        if transfer.method == TokenMethod.TRANSFER_FROM:
            return token.transfer_from(self._state.contract, transfer.sender, transfer.recipient, transfer.amount)
        return token.transfer(transfer.sender, transfer.recipient, transfer.amount)

    def process_next(self) -> Optional[DeliveryReport]:
        """Execute the oldest queued group; None if the queue is empty."""
        if not self._queue:
            return None
        group = self._queue.popleft()
        transfers_ok = True
        for transfer in group.calls:
            if not self._run_transfer(transfer):
                transfers_ok = False
                logger.warning(
                    "%s of %d from %s to %s failed at token %s",
                    transfer.method.value,
                    transfer.amount,
                    transfer.sender,
                    transfer.recipient,
                    transfer.token_address,
                )
                break

        if group.callback is None:
            if not transfers_ok:
                logger.warning("withdrawal left stranded in contract custody (ledger already debited)")
            return DeliveryReport(group=group, transfers_ok=transfers_ok)

        result = confirm(
            self._state, group.callback, transfers_ok, check_invariants=self._config.check_invariants
        )
        if result.accepted:
            assert result.state is not None
            self._state = result.state
        else:
            logger.warning("%s for %s lapsed: %s", group.callback.kind.value, group.callback.caller, result.error)
        logger.debug("delivered %s (accepted=%s)", group.callback.kind.value, result.accepted)
        return DeliveryReport(group=group, transfers_ok=transfers_ok, callback_result=result)

    def process_all(self) -> List[DeliveryReport]:
        reports = []
        while self._queue:
            report = self.process_next()
            assert report is not None
            reports.append(report)
        return reports

    # -- Conservation data --------------------------------------------------

    def ledger_totals(self) -> Tuple[int, int]:
        return ledger_totals(self._state)

    def custody(self, token_address: Address) -> int:
        """Amount of `token_address` the token contract records for this contract."""
        return self._tokens[token_address].balance_of(self._state.contract)
