"""
Typed on-chain addresses.

An address is one type byte followed by a 20-byte identifier; its hex form is
`0x` + 42 hex chars. Addresses order by (type, identifier), which is the order
the ledger iterates in.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum, unique


IDENTIFIER_NBYTES = 20
ADDRESS_NBYTES = 1 + IDENTIFIER_NBYTES

_HEX_CHARS_RE = re.compile(r"^[0-9a-fA-F]+$")


@unique
class AddressType(IntEnum):
    ACCOUNT = 0x00
    SYSTEM_CONTRACT = 0x01
    PUBLIC_CONTRACT = 0x02
    ZK_CONTRACT = 0x03
    GOVERNANCE = 0x04


@dataclass(frozen=True, order=True)
class Address:
    address_type: AddressType
    identifier: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.address_type, AddressType):
            raise TypeError("address_type must be an AddressType")
        if not isinstance(self.identifier, bytes):
            raise TypeError("identifier must be bytes")
        if len(self.identifier) != IDENTIFIER_NBYTES:
            raise ValueError(f"identifier must be exactly {IDENTIFIER_NBYTES} bytes")

    @property
    def is_account(self) -> bool:
        return self.address_type == AddressType.ACCOUNT

    def to_bytes(self) -> bytes:
        return bytes([int(self.address_type)]) + self.identifier

    def to_hex(self) -> str:
        return "0x" + self.to_bytes().hex()

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Address":
        if not isinstance(raw, (bytes, bytearray)):
            raise TypeError("raw address must be bytes")
        if len(raw) != ADDRESS_NBYTES:
            raise ValueError(f"address must be exactly {ADDRESS_NBYTES} bytes")
        try:
            address_type = AddressType(raw[0])
        except ValueError as exc:
            raise ValueError(f"unknown address type byte: {raw[0]:#04x}") from exc
        return cls(address_type=address_type, identifier=bytes(raw[1:]))

    @classmethod
    def from_hex(cls, hex_str: str) -> "Address":
        if not isinstance(hex_str, str):
            raise TypeError("address must be a hex string")
        s = hex_str.strip()
        if s.lower().startswith("0x"):
            s = s[2:]
        if len(s) != 2 * ADDRESS_NBYTES or not _HEX_CHARS_RE.fullmatch(s):
            raise ValueError(f"address must be {ADDRESS_NBYTES} bytes of hex: {hex_str!r}")
        return cls.from_bytes(bytes.fromhex(s))

    def __str__(self) -> str:
        return self.to_hex()


def account(identifier: bytes) -> Address:
    return Address(AddressType.ACCOUNT, identifier)


def public_contract(identifier: bytes) -> Address:
    return Address(AddressType.PUBLIC_CONTRACT, identifier)
