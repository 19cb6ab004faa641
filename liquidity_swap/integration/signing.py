"""
BLS12-381 signed calls (py_ecc `G2Basic`).

Message layout (signed as its sha256 digest):

    domain_sep("liquidity_swap_call:<chain_id>") || canonical_json({"call": ..., "nonce": n})

The caller's account address is derived from the public key, so a signature
also authenticates `call.sender`.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Optional

from py_ecc.bls import G2Basic

from ..core.types import Call
from ..errors import SignatureError
from ..state.address import IDENTIFIER_NBYTES, Address, AddressType
from ..state.canonical import canonical_json_bytes, domain_sep_bytes
from ..state.nonces import MAX_NONCE, PUBKEY_NBYTES, canonical_pubkey_hex

SIGNATURE_NBYTES = 96


@dataclass(frozen=True)
class SignedCall:
    call: Call
    pubkey: str
    nonce: int
    signature: str


def _hex_to_bytes(hex_str: str, *, name: str, expected_nbytes: Optional[int] = None) -> bytes:
    if not isinstance(hex_str, str):
        raise SignatureError(f"{name} must be a hex string")
    s = hex_str[2:] if hex_str.lower().startswith("0x") else hex_str
    try:
        raw = bytes.fromhex(s)
    except ValueError as exc:
        raise SignatureError(f"{name} must be valid hex") from exc
    if expected_nbytes is not None and len(raw) != expected_nbytes:
        raise SignatureError(f"{name} must be {expected_nbytes} bytes")
    return raw


def account_address_from_pubkey(pubkey: str) -> Address:
    """Account address owned by a BLS public key: the last 20 bytes of sha256(pubkey)."""
    pubkey_bytes = _hex_to_bytes(pubkey, name="pubkey", expected_nbytes=PUBKEY_NBYTES)
    digest = hashlib.sha256(pubkey_bytes).digest()
    return Address(AddressType.ACCOUNT, digest[-IDENTIFIER_NBYTES:])


def call_signing_payload(call: Call, nonce: int, *, chain_id: str) -> bytes:
    """sha256 digest of the domain-separated canonical (call, nonce) encoding."""
    if not isinstance(nonce, int) or isinstance(nonce, bool) or not 1 <= nonce <= MAX_NONCE:
        raise SignatureError("nonce must be an int in [1, 2^64 - 1]")
    body = canonical_json_bytes({"call": call.to_dict(), "nonce": nonce})
    msg = domain_sep_bytes(f"liquidity_swap_call:{chain_id}", version=1) + body
    return hashlib.sha256(msg).digest()


def sign_call(call: Call, nonce: int, private_key: int, *, chain_id: str) -> SignedCall:
    pubkey = "0x" + bytes(G2Basic.SkToPk(private_key)).hex()
    signature = G2Basic.Sign(private_key, call_signing_payload(call, nonce, chain_id=chain_id))
    return SignedCall(call=call, pubkey=pubkey, nonce=nonce, signature="0x" + bytes(signature).hex())


def verify_signed_call(signed: SignedCall, *, chain_id: str) -> None:
    """
    Check the signature and the sender binding of a signed call.

    Nonce sequencing is the runtime's job (it owns the `NonceTable`).

    Raises:
        SignatureError: If the key does not own `call.sender` or the signature is invalid.
    """
    try:
        canonical_pubkey_hex(signed.pubkey)
    except (TypeError, ValueError) as exc:
        raise SignatureError(f"invalid pubkey: {exc}") from exc
    if account_address_from_pubkey(signed.pubkey) != signed.call.sender:
        raise SignatureError("call sender does not match the signing key")

    pubkey_bytes = _hex_to_bytes(signed.pubkey, name="pubkey", expected_nbytes=PUBKEY_NBYTES)
    sig_bytes = _hex_to_bytes(signed.signature, name="signature", expected_nbytes=SIGNATURE_NBYTES)
    msg_hash = call_signing_payload(signed.call, signed.nonce, chain_id=chain_id)
    try:
        ok = bool(G2Basic.Verify(pubkey_bytes, msg_hash, sig_bytes))
    except (ValueError, AssertionError) as exc:
        raise SignatureError(f"signature verification error: {exc}") from exc
    if not ok:
        raise SignatureError("invalid call signature")
