"""
Kernel layer.

`liquidity_swap/kernels/python/` contains the integer-only pricing kernels used by
the engine. They are pure functions with explicit rounding rules and never
touch the ledger.
"""
