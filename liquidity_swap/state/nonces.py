"""
Nonce table for signed-call replay protection.

Tracks, per signer pubkey, the last accepted call nonce. The runtime enforces
strictly sequential nonces starting at 1.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping


PUBKEY_NBYTES = 48
MAX_NONCE = 0xFFFFFFFFFFFFFFFF


def canonical_pubkey_hex(pubkey: str) -> str:
    """Lower-case, 0x-prefixed 48-byte hex; accepts raw or 0x-prefixed input."""
    if not isinstance(pubkey, str):
        raise TypeError("pubkey must be a str")
    s = pubkey.strip()
    if s.lower().startswith("0x"):
        s = s[2:]
    if len(s) != 2 * PUBKEY_NBYTES:
        raise ValueError(f"pubkey must be {PUBKEY_NBYTES} bytes (hex length {2 * PUBKEY_NBYTES})")
    try:
        bytes.fromhex(s)
    except ValueError as exc:
        raise ValueError("pubkey must be valid hex") from exc
    return "0x" + s.lower()


@dataclass
class NonceTable:
    """Mutable mapping: signer pubkey -> last used nonce (0 = never used)."""

    _last: Dict[str, int] = field(default_factory=dict)

    def get_last(self, pubkey: str) -> int:
        return self._last.get(canonical_pubkey_hex(pubkey), 0)

    def expected_next(self, pubkey: str) -> int:
        return self.get_last(pubkey) + 1

    def set_last(self, pubkey: str, last_nonce: int) -> None:
        if not isinstance(last_nonce, int) or isinstance(last_nonce, bool) or last_nonce < 0:
            raise TypeError("last_nonce must be a non-negative int")
        if last_nonce > MAX_NONCE:
            raise TypeError("last_nonce must fit in u64")
        self._last[canonical_pubkey_hex(pubkey)] = last_nonce

    def get_all(self) -> Mapping[str, int]:
        # Shallow copy so callers cannot mutate the table while iterating.
        return dict(self._last)
