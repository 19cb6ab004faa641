"""
Deployment and runtime configuration.

A deployment document is YAML:

    contract_address: "0x02..."
    token_a_address: "0x02..."
    token_b_address: "0x02..."
    swap_fee_per_mille: 3
    runtime:
      chain_id: "local"
      require_signatures: false
      check_invariants: true
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Union

import yaml

from ..errors import ValidationError
from ..kernels.python.cpmm_swap_v1 import PER_MILLE_DENOM
from ..state.address import Address


@dataclass(frozen=True)
class RuntimeConfig:
    # Signed calls are bound to this id (replay protection across deployments).
    chain_id: str = "local"
    # If True, `submit()` refuses unsigned calls; use `submit_signed()`.
    require_signatures: bool = False
    check_invariants: bool = True

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "RuntimeConfig":
        if not isinstance(raw, Mapping):
            raise ValidationError("runtime must be a mapping")
        unknown = set(raw) - {"chain_id", "require_signatures", "check_invariants"}
        if unknown:
            raise ValidationError(f"unknown runtime keys: {sorted(unknown)}")
        chain_id = raw.get("chain_id", cls.chain_id)
        if not isinstance(chain_id, str) or not chain_id:
            raise ValidationError("runtime.chain_id must be a non-empty string")
        flags = {}
        for key in ("require_signatures", "check_invariants"):
            value = raw.get(key, getattr(cls, key))
            if not isinstance(value, bool):
                raise ValidationError(f"runtime.{key} must be a bool")
            flags[key] = value
        return cls(chain_id=chain_id, **flags)


@dataclass(frozen=True)
class DeploymentConfig:
    contract_address: Address
    token_a_address: Address
    token_b_address: Address
    swap_fee_per_mille: int
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)

    @classmethod
    def from_mapping(cls, raw: Any) -> "DeploymentConfig":
        if not isinstance(raw, Mapping):
            raise ValidationError("deployment config must be a mapping")

        addresses = {}
        for key in ("contract_address", "token_a_address", "token_b_address"):
            value = raw.get(key)
            if not isinstance(value, str):
                raise ValidationError(f"{key} must be a hex string")
            try:
                addresses[key] = Address.from_hex(value)
            except ValueError as exc:
                raise ValidationError(f"{key}: {exc}") from exc

        fee = raw.get("swap_fee_per_mille")
        if not isinstance(fee, int) or isinstance(fee, bool) or not 0 <= fee <= PER_MILLE_DENOM:
            raise ValidationError(f"swap_fee_per_mille must be an int in [0, {PER_MILLE_DENOM}]")

        runtime = RuntimeConfig.from_mapping(raw.get("runtime") or {})
        return cls(swap_fee_per_mille=fee, runtime=runtime, **addresses)


def load_deployment_config(path: Union[str, Path]) -> DeploymentConfig:
    """Read and validate a YAML deployment document."""
    text = Path(path).read_text(encoding="utf-8")
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValidationError(f"invalid YAML in {path}: {exc}") from exc
    return DeploymentConfig.from_mapping(raw)
