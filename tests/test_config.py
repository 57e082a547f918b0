"""Configuration loading, block gating and small helpers."""

import json
from pathlib import Path

import pytest
from hexbytes import HexBytes

from yearn_ledger.block_range import is_event_block_number_lt
from yearn_ledger.config import CONFIG_ENV_VAR, JSON_RPC_ENV_VAR, read_ledger_config
from yearn_ledger.subscriptions import InMemoryDataSourceRegistry
from yearn_ledger.transaction import build_transaction_id, transaction_from_call

CONFIG = {
    "chain_id": 250,
    "registries": ["0x727FE1759430df13655ddB0731dE0D0FDE929b04"],
    "deployments": [
        {
            "name": "ftmYvUSDCVault",
            "address": "0xEF0210eb96c7EB36AF8ed1c20306462764935607",
            "registry": "0x727FE1759430df13655ddB0731dE0D0FDE929b04",
            "classification": "Experimental",
            "api_version": "0.4.2",
            "end_block": 35_000_000,
        }
    ],
}


@pytest.fixture()
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.json"
    path.write_text(json.dumps(CONFIG))
    return path


def test_read_config_from_env(config_file, monkeypatch):
    monkeypatch.setenv(CONFIG_ENV_VAR, str(config_file))
    monkeypatch.setenv(JSON_RPC_ENV_VAR, "http://localhost:8545")

    config = read_ledger_config()

    assert config.chain_id == 250
    assert config.registries == ["0x727fe1759430df13655ddb0731de0d0fde929b04"]
    assert config.json_rpc_url == "http://localhost:8545"
    deployment = config.deployments[0]
    assert deployment.end_block == 35_000_000
    assert deployment.address == "0xef0210eb96c7eb36af8ed1c20306462764935607"
    assert deployment.create_template is False


def test_read_config_no_env(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    with pytest.raises(ValueError):
        read_ledger_config()


def test_bad_classification(tmp_path: Path):
    data = json.loads(json.dumps(CONFIG))
    data["deployments"][0]["classification"] = "Retired"
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data))
    with pytest.raises(AssertionError):
        read_ledger_config(path)


def test_block_gate():
    assert is_event_block_number_lt("Deposit", 99, 100)
    assert not is_event_block_number_lt("Deposit", 100, 100)
    assert not is_event_block_number_lt("Deposit", 101, 100)
    assert is_event_block_number_lt("Deposit", 10**9, None)


def test_data_source_deduplicated():
    registry = InMemoryDataSourceRegistry()
    registry.create("Strategy", "0xABC0000000000000000000000000000000000001")
    registry.create("Strategy", "0xabc0000000000000000000000000000000000001")
    registry.create("Vault", "0xabc0000000000000000000000000000000000001")
    assert registry.get_addresses("Strategy") == ["0xabc0000000000000000000000000000000000001"]
    assert len(registry.sources) == 2


def test_transaction_id_from_bytes():
    tx_hash = HexBytes("0x" + "ab" * 32)
    assert build_transaction_id(tx_hash, 3) == "0x" + "ab" * 32 + "-3"


def test_transaction_from_call():
    call = {
        "from": "0x7A16fF8270133F063aAb6C9977183D9e72835428",
        "to": "0xEF0210eb96c7EB36AF8ed1c20306462764935607",
        "signature": "withdraw()",
        "inputs": {},
        "outputs": {"value0": 1},
        "blockNumber": 7,
        "timestamp": 1_000,
        "transactionHash": "0x" + "CD" * 32,
        "transactionIndex": 4,
        "callIndex": 2,
    }
    tx = transaction_from_call(call)
    assert tx.id == "0x" + "cd" * 32 + "-call-2"
    assert tx.index == 4
    assert tx.from_address == "0x7a16ff8270133f063aab6c9977183d9e72835428"
    assert tx.event == "withdraw()"
    assert tx.timestamp_ms == 1_000_000
