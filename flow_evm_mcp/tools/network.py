"""Network-level tools: configuration, chain id, gas price and block height."""

from __future__ import annotations

import logging

from flow_evm_mcp.config import FlowEvmConfig, NetworkConfig, default_config
from flow_evm_mcp.evm_rpc import FlowEvmRpcClient, FlowEvmRpcError, default_client
from flow_evm_mcp.tools.results import (
    ToolResult,
    malformed_result,
    rpc_failure,
    text_result,
    unexpected_failure,
)
from flow_evm_mcp.tools.units import hex_to_int, wei_to_gwei

logger = logging.getLogger(__name__)


def _format_network_info(network: NetworkConfig) -> str:
    return (
        "Flow EVM Network Information:\n"
        f"Network Name: {network.name}\n"
        f"RPC Endpoint: {network.rpc_url}\n"
        f"Chain ID: {network.chain_id}\n"
        f"Block Explorer: {network.block_explorer}\n"
        f"Currency: {network.currency}"
    )


def _format_hex_and_decimal(title: str, raw: str) -> str:
    return f"{title}:\nHex: {raw}\nDecimal: {hex_to_int(raw)}"


def _format_gas_price(raw: str, currency: str) -> str:
    wei = hex_to_int(raw)
    return f"Current Gas Price:\n{wei} Atto-{currency}\n{wei_to_gwei(wei)} Gwei"


async def get_network_info(*, config: FlowEvmConfig = default_config) -> ToolResult:
    """
    Describe the configured network. No RPC call is made.

    Args:
        config: Runtime configuration (override for testing).
    """
    logger.info("Getting Flow EVM network information")
    try:
        return text_result(_format_network_info(config.network))
    except Exception:
        return unexpected_failure("get network information")


async def get_chain_id(*, client: FlowEvmRpcClient = default_client) -> ToolResult:
    logger.info("Getting chain ID")
    try:
        raw = await client.get_chain_id()
        return text_result(_format_hex_and_decimal("Current Chain ID", raw))
    except FlowEvmRpcError as exc:
        return rpc_failure("get chain ID", exc)
    except ValueError as exc:
        return malformed_result("get chain ID", exc)
    except Exception:
        return unexpected_failure("get chain ID")


async def get_gas_price(
    *,
    client: FlowEvmRpcClient = default_client,
    config: FlowEvmConfig = default_config,
) -> ToolResult:
    """
    Current gas price, in atto-units and Gwei.

    Args:
        client: Flow EVM RPC client (override for testing).
        config: Runtime configuration; supplies the currency symbol.
    """
    logger.info("Getting current gas price")
    try:
        raw = await client.get_gas_price()
        return text_result(_format_gas_price(raw, config.network.currency))
    except FlowEvmRpcError as exc:
        return rpc_failure("get gas price", exc)
    except ValueError as exc:
        return malformed_result("get gas price", exc)
    except Exception:
        return unexpected_failure("get gas price")


async def get_block_number(*, client: FlowEvmRpcClient = default_client) -> ToolResult:
    logger.info("Getting latest block number")
    try:
        raw = await client.get_block_number()
        return text_result(_format_hex_and_decimal("Latest Block Number", raw))
    except FlowEvmRpcError as exc:
        return rpc_failure("get block number", exc)
    except ValueError as exc:
        return malformed_result("get block number", exc)
    except Exception:
        return unexpected_failure("get block number")
