"""Minimal live sanity checks for the Flow EVM MCP tools."""

from __future__ import annotations

import asyncio
import os
import sys

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from flow_evm_mcp.mcp import call_tool  # noqa: E402

# Defaults to the COA factory address; override via env.
SAMPLE_ADDRESS = os.getenv("FLOW_EVM_SAMPLE_ADDRESS", "0x0000000000000000000000020000000000000000")
# Opt-in to the log query (can be heavy on public endpoints).
RUN_LOGS = os.getenv("RUN_LOGS_SANITY", "false").lower() in {"1", "true", "yes"}


async def _show(tool: str, arguments: dict | None = None) -> None:
    result = await call_tool(tool, arguments or {})
    status = "ERROR" if result.is_error else "ok"
    print(f"--- {tool} [{status}]\n{result.text}\n")


async def main() -> None:
    await _show("flow_getNetworkInfo")
    await _show("flow_chainId")
    await _show("flow_blockNumber")
    await _show("flow_gasPrice")
    await _show("flow_getBalance", {"address": SAMPLE_ADDRESS})
    await _show("flow_getCode", {"address": SAMPLE_ADDRESS})
    await _show("flow_checkCOA", {"address": SAMPLE_ADDRESS})

    if RUN_LOGS:
        await _show("flow_getLogs", {"filter": {"fromBlock": "latest", "toBlock": "latest"}})


if __name__ == "__main__":
    asyncio.run(main())
