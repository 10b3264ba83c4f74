"""Contract and transaction tools: eth_call, log queries and raw transaction submission."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List

from flow_evm_mcp.config import FlowEvmConfig, default_config
from flow_evm_mcp.evm_rpc import FlowEvmRpcClient, FlowEvmRpcError, default_client
from flow_evm_mcp.tools.results import (
    ToolResult,
    malformed_result,
    rpc_failure,
    text_result,
    unexpected_failure,
)
from flow_evm_mcp.tools.units import block_number_text
from flow_evm_mcp.tools.validators import DEFAULT_BLOCK_PARAMETER

logger = logging.getLogger(__name__)

NO_LOGS_MESSAGE = "No logs found matching the filter criteria."
TOPIC_SEPARATOR = "\n          "
RAW_TX_LOG_PREFIX = 20


def _format_log(index: int, entry: Any) -> str:
    if not isinstance(entry, dict):
        raise ValueError(f"expected a log object, got {entry!r}")
    topics = entry.get("topics") or []
    if not isinstance(topics, list):
        raise ValueError(f"expected a topics array, got {topics!r}")
    return (
        f"Log #{index}:\n"
        f"  Address: {entry.get('address')}\n"
        f"  Block Number: {block_number_text(entry.get('blockNumber'))}\n"
        f"  Transaction Hash: {entry.get('transactionHash')}\n"
        f"  Topics: {TOPIC_SEPARATOR.join(str(topic) for topic in topics)}\n"
        f"  Data: {entry.get('data')}"
    )


def _format_logs(logs: Any) -> str:
    if not isinstance(logs, list):
        raise ValueError(f"expected an array of logs, got {type(logs).__name__}")
    if not logs:
        return NO_LOGS_MESSAGE
    rendered: List[str] = [_format_log(index, entry) for index, entry in enumerate(logs, start=1)]
    return f"Found {len(logs)} logs:\n\n" + "\n\n".join(rendered)


def _explorer_tx_url(explorer: str, tx_hash: str) -> str:
    return f"{explorer.rstrip('/')}/tx/{tx_hash}"


async def call_contract(
    transaction: Dict[str, Any],
    block_parameter: str = DEFAULT_BLOCK_PARAMETER,
    *,
    client: FlowEvmRpcClient = default_client,
) -> ToolResult:
    """
    Execute a message call without creating a transaction.

    The call object is forwarded unchanged; encoding call data is the caller's job.
    """
    logger.info(
        "Executing eth_call with transaction to %s at block %s",
        transaction.get("to"),
        block_parameter,
    )
    try:
        result = await client.call(transaction, block_parameter)
    except FlowEvmRpcError as exc:
        return rpc_failure("execute call", exc)
    except Exception:
        return unexpected_failure("execute call")
    return text_result(f"Call result:\n{result}")


async def get_logs(log_filter: Dict[str, Any], *, client: FlowEvmRpcClient = default_client) -> ToolResult:
    logger.info("Getting logs with filter %s", json.dumps(log_filter, sort_keys=True))
    try:
        logs = await client.get_logs(log_filter)
        return text_result(_format_logs(logs))
    except FlowEvmRpcError as exc:
        return rpc_failure("get logs", exc)
    except ValueError as exc:
        return malformed_result("get logs", exc)
    except Exception:
        return unexpected_failure("get logs")


async def send_raw_transaction(
    signed_transaction_data: str,
    *,
    client: FlowEvmRpcClient = default_client,
    config: FlowEvmConfig = default_config,
) -> ToolResult:
    """
    Broadcast an already-signed transaction.

    Args:
        signed_transaction_data: RLP-encoded signed transaction as 0x-prefixed hex.
        client: Flow EVM RPC client (override for testing).
        config: Runtime configuration; supplies the block explorer base URL.

    Returns:
        Success text with the transaction hash and an explorer link, or an error result.
    """
    logger.info("Sending raw transaction: %s...", signed_transaction_data[:RAW_TX_LOG_PREFIX])
    try:
        tx_hash = await client.send_raw_transaction(signed_transaction_data)
    except FlowEvmRpcError as exc:
        return rpc_failure("send transaction", exc)
    except Exception:
        return unexpected_failure("send transaction")
    if not isinstance(tx_hash, str) or not tx_hash:
        return malformed_result("send transaction", ValueError(f"expected a transaction hash, got {tx_hash!r}"))
    return text_result(
        "Transaction sent successfully!\n"
        f"Transaction Hash: {tx_hash}\n"
        f"View on Block Explorer: {_explorer_tx_url(config.network.block_explorer, tx_hash)}"
    )
