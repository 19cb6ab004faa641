"""
Integer pricing kernels (v1).

- `checked_u128`: width-checked add/sub/mul/div; overflow raises.
- `cpmm_swap_v1`: exact-in swap quote with a per-mille input fee.
- `lp_math_v1`: integer square root, share minting and reclaim payouts.
"""
