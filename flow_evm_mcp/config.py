"""
Configuration helpers for the Flow EVM MCP server.

This module holds the static table of Flow EVM networks and selects the one
the process talks to. Endpoint overrides, timeouts, logging and rate limits
are read from the environment.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Dict

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NetworkConfig:
    """Static description of a Flow EVM network."""

    name: str
    rpc_url: str
    chain_id: int
    block_explorer: str
    currency: str


FLOW_NETWORKS: Dict[str, NetworkConfig] = {
    "mainnet": NetworkConfig(
        name="Flow EVM Mainnet",
        rpc_url="https://mainnet.evm.nodes.onflow.org",
        chain_id=747,
        block_explorer="https://evm.flowscan.io",
        currency="FLOW",
    ),
    "testnet": NetworkConfig(
        name="Flow EVM Testnet",
        rpc_url="https://testnet.evm.nodes.onflow.org",
        chain_id=545,
        block_explorer="https://evm-testnet.flowscan.io",
        currency="FLOW",
    ),
}

DEFAULT_NETWORK_KEY = "testnet"
NETWORK_ENV_VAR = "FLOW_EVM_NETWORK"
RPC_URL_ENV_VAR = "FLOW_EVM_RPC_URL"


def select_network(key: str) -> NetworkConfig:
    """Return the network registered under ``key`` (case-insensitive)."""
    try:
        return FLOW_NETWORKS[key.strip().lower()]
    except KeyError:
        known = ", ".join(sorted(FLOW_NETWORKS))
        raise ValueError(f"Unknown Flow EVM network '{key}'. Known networks: {known}") from None


def _load_network() -> NetworkConfig:
    raw_key = os.getenv(NETWORK_ENV_VAR, DEFAULT_NETWORK_KEY)
    try:
        network = select_network(raw_key)
    except ValueError:
        logger.warning("Unknown network %r in %s; using %s", raw_key, NETWORK_ENV_VAR, DEFAULT_NETWORK_KEY)
        network = FLOW_NETWORKS[DEFAULT_NETWORK_KEY]
    rpc_override = os.getenv(RPC_URL_ENV_VAR)
    if rpc_override and rpc_override.strip():
        network = replace(network, rpc_url=rpc_override.strip())
    return network


def _load_timeout() -> float:
    raw_timeout = os.getenv("FLOW_EVM_HTTP_TIMEOUT")
    if raw_timeout:
        try:
            return float(raw_timeout)
        except ValueError:
            return 10.0
    return 10.0


def _load_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _load_qps() -> float:
    raw = os.getenv("FLOW_EVM_RATE_LIMIT_QPS")
    if raw:
        try:
            return float(raw)
        except ValueError:
            return 5.0
    return 5.0


def _parse_rate_limits(raw: str | None) -> Dict[str, float]:
    """Parse ``tool=qps`` pairs separated by commas, skipping malformed entries."""
    limits: Dict[str, float] = {}
    if not raw:
        return limits
    for chunk in raw.split(","):
        name, sep, value = chunk.partition("=")
        if not sep or not name.strip():
            continue
        try:
            limits[name.strip()] = float(value)
        except ValueError:
            continue
    return limits


DEFAULT_NETWORK = _load_network()
DEFAULT_TIMEOUT = _load_timeout()
DEFAULT_RATE_LIMIT_QPS = _load_qps()
PER_TOOL_RATE_LIMITS = _parse_rate_limits(os.getenv("FLOW_EVM_TOOL_RATE_LIMITS"))
EXPOSE_ETH_ALIASES = _load_bool("FLOW_EVM_ETH_ALIASES", True)
LOG_LEVEL = os.getenv("FLOW_EVM_MCP_LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("FLOW_EVM_MCP_LOG_FORMAT", "json")  # json or plain


@dataclass(slots=True)
class FlowEvmConfig:
    """Runtime configuration for Flow EVM access."""

    network: NetworkConfig = DEFAULT_NETWORK
    timeout: float = DEFAULT_TIMEOUT
    rate_limit_qps: float = DEFAULT_RATE_LIMIT_QPS
    per_tool_rate_limits: Dict[str, float] = field(default_factory=lambda: dict(PER_TOOL_RATE_LIMITS))
    expose_eth_aliases: bool = EXPOSE_ETH_ALIASES
    log_level: str = LOG_LEVEL
    log_format: str = LOG_FORMAT

    @property
    def rpc_url(self) -> str:
        return self.network.rpc_url


default_config = FlowEvmConfig()
