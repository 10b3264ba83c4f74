"""Account-related tools: balance, deployed code and COA classification."""

from __future__ import annotations

import logging

from flow_evm_mcp.config import FlowEvmConfig, default_config
from flow_evm_mcp.evm_rpc import FlowEvmRpcClient, FlowEvmRpcError, default_client
from flow_evm_mcp.tools.results import (
    ToolResult,
    malformed_result,
    rpc_failure,
    text_result,
    unexpected_failure,
)
from flow_evm_mcp.tools.units import hex_to_int, wei_to_native
from flow_evm_mcp.tools.validators import DEFAULT_BLOCK_PARAMETER

logger = logging.getLogger(__name__)

# Cadence-Owned Accounts live under a reserved prefix; the all-zero suffix is the factory.
COA_ADDRESS_PREFIX = "0x000000000000000000000002"
COA_FACTORY_ADDRESS = "0x0000000000000000000000020000000000000000"

EMPTY_CODE = "0x"


def _format_balance(address: str, raw: str, currency: str) -> str:
    atto = hex_to_int(raw)
    return f"Balance for {address}:\n{atto} Atto-{currency}\n{wei_to_native(atto)} {currency}"


def _format_code(address: str, code: object) -> str:
    if not isinstance(code, str):
        raise ValueError(f"expected hex code, got {code!r}")
    if code == EMPTY_CODE:
        return (
            f"No code found at address {address} "
            "(this may be a regular wallet address, not a contract)"
        )
    return f"Contract code at {address}:\n{code}"


def classify_coa(address: str) -> str:
    """Return ``"factory"``, ``"coa"`` or ``"other"`` for ``address``."""
    lowered = address.lower()
    if lowered == COA_FACTORY_ADDRESS:
        return "factory"
    if lowered.startswith(COA_ADDRESS_PREFIX):
        return "coa"
    return "other"


async def get_balance(
    address: str,
    block_parameter: str = DEFAULT_BLOCK_PARAMETER,
    *,
    client: FlowEvmRpcClient = default_client,
    config: FlowEvmConfig = default_config,
) -> ToolResult:
    """
    Balance of ``address`` in atto-units and whole native currency.

    Args:
        address: Validated 20-byte hex address.
        block_parameter: Block tag or hex block number.
        client: Flow EVM RPC client (override for testing).
        config: Runtime configuration; supplies the currency symbol.
    """
    logger.info("Getting balance for address %s at block %s", address, block_parameter)
    try:
        raw = await client.get_balance(address, block_parameter)
        return text_result(_format_balance(address, raw, config.network.currency))
    except FlowEvmRpcError as exc:
        return rpc_failure("get balance", exc)
    except ValueError as exc:
        return malformed_result("get balance", exc)
    except Exception:
        return unexpected_failure("get balance")


async def get_code(
    address: str,
    block_parameter: str = DEFAULT_BLOCK_PARAMETER,
    *,
    client: FlowEvmRpcClient = default_client,
) -> ToolResult:
    logger.info("Getting code for address %s at block %s", address, block_parameter)
    try:
        code = await client.get_code(address, block_parameter)
        return text_result(_format_code(address, code))
    except FlowEvmRpcError as exc:
        return rpc_failure("get code", exc)
    except ValueError as exc:
        return malformed_result("get code", exc)
    except Exception:
        return unexpected_failure("get code")


async def check_coa(address: str) -> ToolResult:
    """Classify ``address`` by prefix alone; never touches the network."""
    logger.info("Checking if address is a COA: %s", address)
    try:
        kind = classify_coa(address)
    except Exception:
        return unexpected_failure("check COA status")

    if kind == "factory":
        return text_result(
            f"The address {address} is the COA factory address, "
            "which is reserved for deploying contracts for COA accounts."
        )
    if kind == "coa":
        return text_result(
            f"The address {address} is a Cadence-Owned Account (COA), which is controlled "
            "by a resource in the Cadence environment, not by a private key."
        )
    return text_result(
        f"The address {address} is not a Cadence-Owned Account (COA). "
        "It appears to be a regular Externally Owned Account (EOA) or contract address."
    )
