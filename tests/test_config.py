import pytest

from flow_evm_mcp.config import (
    FLOW_NETWORKS,
    FlowEvmConfig,
    _load_bool,
    _load_network,
    _load_timeout,
    _parse_rate_limits,
    select_network,
)


def test_network_table():
    assert FLOW_NETWORKS["mainnet"].chain_id == 747
    assert FLOW_NETWORKS["testnet"].chain_id == 545
    assert FLOW_NETWORKS["testnet"].block_explorer == "https://evm-testnet.flowscan.io"
    assert {network.currency for network in FLOW_NETWORKS.values()} == {"FLOW"}


def test_select_network_case_insensitive_and_unknown():
    assert select_network(" MainNet ") is FLOW_NETWORKS["mainnet"]
    with pytest.raises(ValueError, match="Unknown Flow EVM network"):
        select_network("devnet")


def test_load_network_from_env(monkeypatch):
    monkeypatch.setenv("FLOW_EVM_NETWORK", "mainnet")
    monkeypatch.delenv("FLOW_EVM_RPC_URL", raising=False)
    assert _load_network() == FLOW_NETWORKS["mainnet"]


def test_load_network_unknown_falls_back_to_testnet(monkeypatch):
    monkeypatch.setenv("FLOW_EVM_NETWORK", "devnet")
    monkeypatch.delenv("FLOW_EVM_RPC_URL", raising=False)
    assert _load_network() == FLOW_NETWORKS["testnet"]


def test_rpc_url_override(monkeypatch):
    monkeypatch.setenv("FLOW_EVM_NETWORK", "testnet")
    monkeypatch.setenv("FLOW_EVM_RPC_URL", "http://localhost:8545")
    network = _load_network()
    assert network.rpc_url == "http://localhost:8545"
    assert network.chain_id == 545
    assert FLOW_NETWORKS["testnet"].rpc_url == "https://testnet.evm.nodes.onflow.org"


def test_load_timeout(monkeypatch):
    monkeypatch.setenv("FLOW_EVM_HTTP_TIMEOUT", "not-a-number")
    assert _load_timeout() == 10.0
    monkeypatch.setenv("FLOW_EVM_HTTP_TIMEOUT", "2.5")
    assert _load_timeout() == 2.5


def test_load_bool(monkeypatch):
    monkeypatch.setenv("FLOW_EVM_ETH_ALIASES", "no")
    assert _load_bool("FLOW_EVM_ETH_ALIASES", True) is False
    monkeypatch.setenv("FLOW_EVM_ETH_ALIASES", "")
    assert _load_bool("FLOW_EVM_ETH_ALIASES", True) is True


def test_parse_rate_limits():
    raw = "flow_sendRawTransaction=0.5, flow_getLogs = 2 ,bad, =3, flow_call=x"
    assert _parse_rate_limits(raw) == {"flow_sendRawTransaction": 0.5, "flow_getLogs": 2.0}
    assert _parse_rate_limits(None) == {}


def test_config_rpc_url_follows_network():
    cfg = FlowEvmConfig(network=select_network("mainnet"))
    assert cfg.rpc_url == "https://mainnet.evm.nodes.onflow.org"
