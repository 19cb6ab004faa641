"""
Canonical JSON encoding and hashing helpers.

State roots and signed-call payloads are hashed over these bytes, so every
encoder must agree byte-for-byte on the same logical value.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


DOMAIN_PREFIX = b"liquidity_swap:"


def _check_str(s: str) -> None:
    # Lone surrogates are not Unicode scalar values and do not encode to UTF-8.
    if any(0xD800 <= ord(ch) <= 0xDFFF for ch in s):
        raise TypeError("surrogate code points are not allowed in canonical encoding")


def _check_encodable(value: Any) -> None:
    if isinstance(value, float):
        raise TypeError("floats are not allowed in canonical encoding")
    if isinstance(value, str):
        _check_str(value)
    elif isinstance(value, dict):
        for k, v in value.items():
            if not isinstance(k, str):
                raise TypeError("dict keys must be str for canonical encoding")
            _check_str(k)
            _check_encodable(v)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _check_encodable(item)


def canonical_json_bytes(value: Any) -> bytes:
    """
    UTF-8 JSON with sorted keys and no whitespace.

    Floats, NaN and non-str dict keys are rejected.
    """
    _check_encodable(value)
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    return "0x" + hashlib.sha256(data).hexdigest()


def domain_sep_bytes(label: str, version: int = 1) -> bytes:
    """`liquidity_swap:<label>:v<version>` followed by a NUL terminator."""
    if not isinstance(label, str) or not label:
        raise TypeError("label must be a non-empty str")
    if "\x00" in label or not label.isascii():
        raise ValueError("label must be ASCII without NUL")
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")
    return DOMAIN_PREFIX + label.encode("ascii") + b":v%d\x00" % version
