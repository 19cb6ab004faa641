# [TESTER] v1

from __future__ import annotations

import pytest

from liquidity_swap.errors import ValidationError
from liquidity_swap.integration.config import DeploymentConfig, RuntimeConfig, load_deployment_config
from liquidity_swap.state.address import public_contract

CONTRACT = public_contract(b"\xc0" * 20)
TOKEN_A = public_contract(b"\xaa" * 20)
TOKEN_B = public_contract(b"\xbb" * 20)


def _doc(**overrides) -> str:
    fields = {
        "contract_address": f'"{CONTRACT.to_hex()}"',
        "token_a_address": f'"{TOKEN_A.to_hex()}"',
        "token_b_address": f'"{TOKEN_B.to_hex()}"',
        "swap_fee_per_mille": "3",
    }
    fields.update(overrides)
    return "\n".join(f"{k}: {v}" for k, v in fields.items()) + "\n"


def test_load_deployment_config(tmp_path) -> None:
    path = tmp_path / "deploy.yaml"
    path.write_text(_doc() + "runtime:\n  chain_id: testnet\n  require_signatures: true\n", encoding="utf-8")

    cfg = load_deployment_config(path)
    assert cfg.contract_address == CONTRACT
    assert cfg.token_a_address == TOKEN_A
    assert cfg.token_b_address == TOKEN_B
    assert cfg.swap_fee_per_mille == 3
    assert cfg.runtime == RuntimeConfig(chain_id="testnet", require_signatures=True, check_invariants=True)


def test_runtime_section_is_optional(tmp_path) -> None:
    path = tmp_path / "deploy.yaml"
    path.write_text(_doc(), encoding="utf-8")
    assert load_deployment_config(path).runtime == RuntimeConfig()


@pytest.mark.parametrize(
    "overrides, match",
    [
        ({"swap_fee_per_mille": "1001"}, "swap_fee_per_mille"),
        ({"swap_fee_per_mille": "true"}, "swap_fee_per_mille"),
        ({"token_a_address": '"0x1234"'}, "token_a_address"),
        ({"contract_address": "42"}, "contract_address"),
    ],
)
def test_bad_documents_rejected(tmp_path, overrides, match) -> None:
    path = tmp_path / "deploy.yaml"
    path.write_text(_doc(**overrides), encoding="utf-8")
    with pytest.raises(ValidationError, match=match):
        load_deployment_config(path)


def test_invalid_yaml_rejected(tmp_path) -> None:
    path = tmp_path / "deploy.yaml"
    path.write_text("contract_address: [unclosed\n", encoding="utf-8")
    with pytest.raises(ValidationError, match="invalid YAML"):
        load_deployment_config(path)


def test_non_mapping_rejected() -> None:
    with pytest.raises(ValidationError, match="mapping"):
        DeploymentConfig.from_mapping(["not", "a", "mapping"])


def test_runtime_unknown_keys_rejected() -> None:
    with pytest.raises(ValidationError, match="unknown runtime keys"):
        RuntimeConfig.from_mapping({"chain": "x"})
    with pytest.raises(ValidationError, match="require_signatures"):
        RuntimeConfig.from_mapping({"require_signatures": "yes"})
