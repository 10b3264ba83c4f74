"""Text results returned to MCP callers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from flow_evm_mcp.evm_rpc import FlowEvmRpcError, MalformedResponseError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ToolResult:
    """Ordered text content plus the MCP ``isError`` flag."""

    content: List[Dict[str, str]] = field(default_factory=list)
    is_error: bool = False

    @property
    def text(self) -> str:
        return "\n".join(item["text"] for item in self.content)

    def to_dict(self) -> Dict[str, Any]:
        return {"content": [dict(item) for item in self.content], "isError": self.is_error}


def text_result(text: str) -> ToolResult:
    return ToolResult(content=[{"type": "text", "text": text}])


def error_result(text: str) -> ToolResult:
    return ToolResult(content=[{"type": "text", "text": text}], is_error=True)


def rpc_failure(action: str, exc: FlowEvmRpcError) -> ToolResult:
    """Error result for a failed round trip, e.g. ``Failed to get balance. RPC error: ...``."""
    return error_result(f"Error: Failed to {action}. {exc}")


def malformed_result(action: str, exc: Exception) -> ToolResult:
    return rpc_failure(action, MalformedResponseError(str(exc)))


def unexpected_failure(action: str) -> ToolResult:
    logger.exception("Unexpected error while trying to %s", action)
    return error_result(f"Error: Unexpected error while trying to {action}.")
