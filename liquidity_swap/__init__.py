"""
Constant-product liquidity swap ledger.

Layers:
- `liquidity_swap.state`: addresses, the balance ledger, persisted contract state.
- `liquidity_swap.kernels.python`: integer-only, width-checked pricing kernels.
- `liquidity_swap.core`: the swap/liquidity engine and the escrow protocol.
- `liquidity_swap.integration`: local runtime shell, token contracts, signing, config.
"""

__version__ = "0.1.0"
