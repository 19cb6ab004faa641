"""Exception types shared by the kernels, the engine and the runtime shell.

Every error carries a short ``code`` used as the rejection reason by
``step()`` / ``confirm()`` in ``core/engine.py``.
"""

from __future__ import annotations


class LiquiditySwapError(Exception):
    """Base class for all rejections raised by this package."""

    code = "error"


class ValidationError(LiquiditySwapError, ValueError):
    """Raised when a call or configuration is invalid (no state is touched)."""

    code = "validation"


class InsufficientFundsError(LiquiditySwapError, ValueError):
    """Raised when a debit exceeds the account's current holding."""

    code = "insufficient_funds"


class ArithmeticOverflowError(LiquiditySwapError, OverflowError):
    """Raised when a checked u128 operation leaves the representable range."""

    code = "overflow"


class TransferFailedError(LiquiditySwapError):
    """Raised by the confirm phase when the external transfer did not succeed."""

    code = "transfer_failed"


class InvariantViolationError(LiquiditySwapError):
    """Raised when a post-state violates one or more invariants."""

    code = "invariant"

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")


class SignatureError(LiquiditySwapError):
    """Raised when a signed call fails authentication or replay checks."""

    code = "signature"
