"""Unit tests for network configuration and the network registry."""

import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(REPO_ROOT))

import algorand_network  # noqa: E402
from algorand_network import (  # noqa: E402
    AlgorandConfig,
    AlgorandConfigError,
    InvalidNetworkError,
    NetworkRegistry,
)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def test_config_defaults(monkeypatch):
    monkeypatch.delenv("ALGORAND_NETWORK", raising=False)
    monkeypatch.delenv("ALGORAND_MNEMONIC", raising=False)
    monkeypatch.delenv("ALGORAND_EXPLORER_URL", raising=False)

    cfg = AlgorandConfig.from_env()

    assert cfg.default_network == "localnet"
    assert cfg.mnemonic is None
    assert cfg.explorer_url == "https://lora.algokit.io"


def test_config_reads_env(monkeypatch):
    monkeypatch.setenv("ALGORAND_NETWORK", " TestNet ")
    monkeypatch.setenv("ALGORAND_MNEMONIC", "  word " * 25)
    monkeypatch.setenv("ALGORAND_EXPLORER_URL", "https://explorer.example/")

    cfg = AlgorandConfig.from_env()

    assert cfg.default_network == "testnet"
    assert cfg.mnemonic.startswith("word")
    assert cfg.explorer_url == "https://explorer.example"


def test_config_rejects_unknown_network(monkeypatch):
    monkeypatch.setenv("ALGORAND_NETWORK", "betanet")
    with pytest.raises(AlgorandConfigError, match="betanet"):
        AlgorandConfig.from_env()


def test_from_config_registers_mnemonic_on_every_client(monkeypatch, fake_clients):
    monkeypatch.setattr(algorand_network, "build_clients", lambda: fake_clients)
    cfg = AlgorandConfig(
        default_network="mainnet",
        mnemonic="secret words",
        explorer_url="https://lora.example",
    )

    registry = NetworkRegistry.from_config(cfg)

    assert registry.explorer_url == "https://lora.example"
    assert registry.current_network() == "mainnet"
    for client in fake_clients.values():
        assert client.account.loaded_mnemonics == ["secret words"]


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


def test_registry_requires_all_three_clients(fake_clients):
    del fake_clients["mainnet"]
    with pytest.raises(AlgorandConfigError, match="mainnet"):
        NetworkRegistry(fake_clients)


def test_registry_rejects_unknown_client(fake_clients):
    fake_clients["betanet"] = object()
    with pytest.raises(AlgorandConfigError, match="betanet"):
        NetworkRegistry(fake_clients)


def test_registry_rejects_invalid_default(fake_clients):
    with pytest.raises(InvalidNetworkError):
        NetworkRegistry(fake_clients, default_network="devnet")


def test_registry_defaults_to_localnet(registry, fake_clients):
    assert registry.current_network() == "localnet"
    assert registry.active_client() is fake_clients["localnet"]
    assert registry.networks() == ("localnet", "testnet", "mainnet")


def test_set_network_switches_active_client(registry, fake_clients):
    registry.set_network("testnet")
    assert registry.current_network() == "testnet"
    assert registry.active_client() is fake_clients["testnet"]


def test_set_network_invalid_leaves_state_unchanged(registry):
    registry.set_network("testnet")
    with pytest.raises(InvalidNetworkError, match="Invalid network"):
        registry.set_network("betanet")
    assert registry.current_network() == "testnet"


def test_invalid_network_error_is_value_error():
    err = InvalidNetworkError("foo")
    assert isinstance(err, ValueError)
    assert err.network == "foo"


def test_client_for_returns_same_handle(registry, fake_clients):
    first = registry.client_for("mainnet")
    registry.set_network("testnet")
    assert registry.client_for("mainnet") is first is fake_clients["mainnet"]


def test_client_for_unknown_network(registry):
    with pytest.raises(InvalidNetworkError):
        registry.client_for("nope")


def test_infer_network_switches_on_match(registry):
    assert registry.infer_network_from_text("Send 1 ALGO on MainNet please") == "mainnet"
    assert registry.current_network() == "mainnet"


def test_infer_network_prefers_testnet(registry):
    text = "compare balances on mainnet and on testnet"
    assert registry.infer_network_from_text(text) == "testnet"


def test_infer_network_without_match_is_read_only(registry):
    registry.set_network("testnet")
    assert registry.infer_network_from_text("what is my balance?") == "testnet"
    assert registry.infer_network_from_text("mainnet") == "testnet"


# ---------------------------------------------------------------------------
# Node queries
# ---------------------------------------------------------------------------


def test_get_network_details(localnet):
    details = algorand_network.get_network_details(localnet, "localnet")
    assert details.network == "localnet"
    assert details.genesis_id == "dockernet-v1"
    assert details.genesis_hash == "GENESISHASH="
    assert details.last_round == 99
    assert details.node_versions == ("v2",)
