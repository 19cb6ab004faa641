"""
Imperative shell: token contracts, configuration, signed calls and the local runtime.
"""

from .config import DeploymentConfig, RuntimeConfig, load_deployment_config
from .runtime import CallReceipt, DeliveryReport, LocalChainRuntime
from .signing import SignedCall, account_address_from_pubkey, call_signing_payload, sign_call, verify_signed_call
from .token import InMemoryTokenContract, TokenContract

__all__ = [
    "DeploymentConfig",
    "RuntimeConfig",
    "load_deployment_config",
    "CallReceipt",
    "DeliveryReport",
    "LocalChainRuntime",
    "SignedCall",
    "account_address_from_pubkey",
    "call_signing_payload",
    "sign_call",
    "verify_signed_call",
    "InMemoryTokenContract",
    "TokenContract",
]
