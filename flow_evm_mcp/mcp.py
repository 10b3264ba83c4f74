"""
Tool registry and dispatcher for MCP-style tooling.

Every tool is registered once under its ``flow_*`` name, with an optional
``eth_*`` alias sharing the same shape and handler. ``call_tool`` validates the
argument bundle against the tool's shape before the handler runs, so malformed
input never reaches the node.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from flow_evm_mcp.config import FlowEvmConfig, default_config
from flow_evm_mcp.evm_rpc import FlowEvmRpcClient, default_client
from flow_evm_mcp.tools import (
    call_contract,
    check_coa,
    get_balance,
    get_block_number,
    get_chain_id,
    get_code,
    get_gas_price,
    get_logs,
    get_network_info,
    send_raw_transaction,
)
from flow_evm_mcp.tools.results import ToolResult, error_result, unexpected_failure
from flow_evm_mcp.tools.validators import (
    ADDRESS,
    BLOCK_PARAMETER,
    HASH,
    HEX_DATA,
    HEX_QUANTITY,
    Field,
    ListOf,
    ObjectOf,
    OneOrMany,
    Shape,
    ValidationError,
    block_parameter_field,
    input_schema,
    validate_arguments,
)

logger = logging.getLogger(__name__)

ToolHandler = Callable[..., Awaitable[ToolResult]]


@dataclass(frozen=True, slots=True)
class ToolDefinition:
    name: str
    description: str
    input_shape: Shape
    handler: ToolHandler
    dependencies: Tuple[str, ...] = ("client",)

    @property
    def input_schema(self) -> Dict[str, Any]:
        return input_schema(self.input_shape)

    def bind(self, validated: Dict[str, Any]) -> Dict[str, Any]:
        """Map validated wire-named arguments to handler keyword arguments."""
        return {f.kwarg: validated[f.name] for f in self.input_shape if f.name in validated}


TRANSACTION_SHAPE: Shape = (
    Field("from", ADDRESS, "The address the transaction is sent from", required=False),
    Field("to", ADDRESS, "The address the transaction is directed to"),
    Field("gas", HEX_QUANTITY, "Integer of the gas provided for the transaction execution in hex", required=False),
    Field("gasPrice", HEX_QUANTITY, "Integer of the gas price used for each paid gas in hex", required=False),
    Field("value", HEX_QUANTITY, "Integer of the value sent with this transaction in hex", required=False),
    Field("nonce", HEX_QUANTITY, "Integer of the nonce in hex", required=False),
    Field(
        "data",
        HEX_DATA,
        "The compiled code of a contract OR the hash of the invoked method signature and encoded parameters",
    ),
)

LOG_FILTER_SHAPE: Shape = (
    Field("fromBlock", BLOCK_PARAMETER, 'Block number in hex or "latest", "earliest" or "pending"', required=False),
    Field("toBlock", BLOCK_PARAMETER, 'Block number in hex or "latest", "earliest" or "pending"', required=False),
    Field(
        "address",
        OneOrMany(ADDRESS),
        "Contract address or a list of addresses from which logs should originate",
        required=False,
    ),
    Field(
        "topics",
        ListOf(OneOrMany(HASH), nullable_items=True),
        "Array of 32 Bytes DATA topics; null entries match any topic",
        required=False,
    ),
)


def _address_field(description: str) -> Field:
    return Field("address", ADDRESS, description)


FLOW_TOOLS: Tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name="flow_getNetworkInfo",
        description="Retrieves information about the current Flow EVM network configuration",
        input_shape=(),
        handler=get_network_info,
        dependencies=("config",),
    ),
    ToolDefinition(
        name="flow_getCode",
        description="Retrieves the code at a given Flow EVM address",
        input_shape=(_address_field("The Flow EVM address to get code from"), block_parameter_field()),
        handler=get_code,
    ),
    ToolDefinition(
        name="flow_chainId",
        description="Retrieves the current chain ID of the Flow EVM network",
        input_shape=(),
        handler=get_chain_id,
    ),
    ToolDefinition(
        name="flow_gasPrice",
        description="Retrieves the current gas price in Flow EVM",
        input_shape=(),
        handler=get_gas_price,
        dependencies=("client", "config"),
    ),
    ToolDefinition(
        name="flow_getBalance",
        description="Retrieves the balance of a given Flow EVM address",
        input_shape=(_address_field("The Flow EVM address to check balance"), block_parameter_field()),
        handler=get_balance,
        dependencies=("client", "config"),
    ),
    ToolDefinition(
        name="flow_call",
        description="Executes a call to a contract function without creating a transaction",
        input_shape=(
            Field("transaction", ObjectOf(TRANSACTION_SHAPE), "The transaction call object"),
            block_parameter_field(),
        ),
        handler=call_contract,
    ),
    ToolDefinition(
        name="flow_getLogs",
        description="Retrieves logs matching the given filter criteria",
        input_shape=(Field("filter", ObjectOf(LOG_FILTER_SHAPE), "The filter options", arg="log_filter"),),
        handler=get_logs,
    ),
    ToolDefinition(
        name="flow_sendRawTransaction",
        description="Submits a signed transaction to the Flow EVM network",
        input_shape=(
            Field(
                "signedTransactionData",
                HEX_QUANTITY,
                "The signed transaction data",
                arg="signed_transaction_data",
            ),
        ),
        handler=send_raw_transaction,
        dependencies=("client", "config"),
    ),
    ToolDefinition(
        name="flow_blockNumber",
        description="Gets the latest block number on the Flow EVM network",
        input_shape=(),
        handler=get_block_number,
    ),
    ToolDefinition(
        name="flow_checkCOA",
        description="Checks if an address is a Cadence-Owned Account (COA)",
        input_shape=(_address_field("The Flow EVM address to check"),),
        handler=check_coa,
        dependencies=(),
    ),
)

# Ethereum-named aliases for the RPC-backed tools.
ETH_ALIASES: Dict[str, str] = {
    "eth_getCode": "flow_getCode",
    "eth_chainId": "flow_chainId",
    "eth_gasPrice": "flow_gasPrice",
    "eth_getBalance": "flow_getBalance",
    "eth_call": "flow_call",
    "eth_getLogs": "flow_getLogs",
    "eth_sendRawTransaction": "flow_sendRawTransaction",
    "eth_blockNumber": "flow_blockNumber",
}


def build_registry(*, include_eth_aliases: bool = True) -> Dict[str, ToolDefinition]:
    registry: Dict[str, ToolDefinition] = {}
    for tool in FLOW_TOOLS:
        if tool.name in registry:
            raise ValueError(f"Duplicate tool name: {tool.name}")
        registry[tool.name] = tool
    if include_eth_aliases:
        for alias, target in ETH_ALIASES.items():
            tool = registry[target]
            registry[alias] = ToolDefinition(
                name=alias,
                description=f"{tool.description} (alias of {target})",
                input_shape=tool.input_shape,
                handler=tool.handler,
                dependencies=tool.dependencies,
            )
    return registry


TOOL_REGISTRY: Dict[str, ToolDefinition] = build_registry(
    include_eth_aliases=default_config.expose_eth_aliases
)


def list_tools() -> List[Dict[str, Any]]:
    """Return the MCP tool listing."""
    return [
        {
            "name": tool.name,
            "description": tool.description,
            "inputSchema": tool.input_schema,
        }
        for tool in TOOL_REGISTRY.values()
    ]


async def call_tool(
    tool_name: str,
    params: Optional[Dict[str, Any]] = None,
    *,
    client: Optional[FlowEvmRpcClient] = None,
    config: Optional[FlowEvmConfig] = None,
) -> ToolResult:
    """Validate ``params`` and dispatch to the named tool. Never raises."""
    tool = TOOL_REGISTRY.get(tool_name)
    if tool is None:
        return error_result(f"Unknown tool: {tool_name}")

    try:
        validated = validate_arguments(tool.input_shape, params)
    except ValidationError as exc:
        logger.info("tool=%s rejected invalid arguments: %s", tool_name, exc, extra={"tool": tool_name})
        return error_result(f"Error: Invalid arguments for {tool_name}. {exc}")

    if client is None:
        # An explicit config also selects the node the request is sent to.
        client = FlowEvmRpcClient(config) if config is not None else default_client
    dependencies = {
        "client": client,
        "config": config if config is not None else default_config,
    }
    kwargs = tool.bind(validated)
    kwargs.update({name: dependencies[name] for name in tool.dependencies})
    try:
        return await tool.handler(**kwargs)
    except Exception:
        return unexpected_failure(f"run {tool_name}")
