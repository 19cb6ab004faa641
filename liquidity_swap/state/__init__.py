"""
State management for the liquidity swap contract
"""

from .address import Address, AddressType
from .balances import EMPTY_BALANCE, BalanceLedger, Token, TokenBalance
from .contract import LiquiditySwapState
from .nonces import NonceTable

__all__ = [
    "Address",
    "AddressType",
    "EMPTY_BALANCE",
    "BalanceLedger",
    "Token",
    "TokenBalance",
    "LiquiditySwapState",
    "NonceTable",
]
