"""
Thin JSON-RPC client for a Flow EVM node.

Every call is a single HTTP POST carrying one JSON-RPC request. Failures are
mapped to internal exceptions that the tool layer turns into error results.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from flow_evm_mcp.config import FlowEvmConfig, default_config
from flow_evm_mcp.metrics import default_metrics

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"
REQUEST_ID = 1

SUPPORTED_METHODS = frozenset(
    {
        "eth_blockNumber",
        "eth_call",
        "eth_chainId",
        "eth_gasPrice",
        "eth_getBalance",
        "eth_getCode",
        "eth_getLogs",
        "eth_sendRawTransaction",
    }
)


class FlowEvmRpcError(Exception):
    """Base exception for failed JSON-RPC round trips."""

    tag = "RPC failure"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.tag}: {self.message}"


class TransportError(FlowEvmRpcError):
    """Raised when the node cannot be reached or answers with an HTTP error."""

    tag = "Transport error"


class RpcError(FlowEvmRpcError):
    """Raised when the node returns a JSON-RPC error object."""

    tag = "RPC error"

    def __init__(self, message: str, *, code: Optional[int] = None, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.data = data

    def __str__(self) -> str:
        if self.code is None:
            return f"{self.tag}: {self.message}"
        return f"{self.tag}: {self.message} (code {self.code})"


class MalformedResponseError(FlowEvmRpcError):
    """Raised when the response carries neither a result nor an error."""

    tag = "Malformed response"


class FlowEvmRpcClient:
    """Async client for the Ethereum-compatible JSON-RPC surface of Flow EVM."""

    def __init__(
        self,
        config: FlowEvmConfig | None = None,
        *,
        async_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config or default_config
        self._client = async_client

    @property
    def rpc_url(self) -> str:
        return self.config.rpc_url

    @staticmethod
    def build_request(method: str, params: Optional[List[Any]] = None) -> Dict[str, Any]:
        """Build the JSON-RPC request body for ``method``."""
        if method not in SUPPORTED_METHODS:
            raise ValueError(f"Unsupported JSON-RPC method: {method}")
        return {
            "jsonrpc": JSONRPC_VERSION,
            "id": REQUEST_ID,
            "method": method,
            "params": list(params or []),
        }

    async def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(self.rpc_url, json=payload)
        # No connection reuse between calls.
        async with httpx.AsyncClient(timeout=self.config.timeout) as client:
            return await client.post(self.rpc_url, json=payload)

    def _process_response(self, method: str, response: httpx.Response) -> Any:
        try:
            data = response.json()
        except ValueError:
            data = None

        if isinstance(data, dict) and data.get("error") is not None:
            error = data["error"]
            if isinstance(error, dict):
                message = error.get("message")
                code = error.get("code")
                raise RpcError(
                    str(message) if message is not None else "Unknown error",
                    code=code if isinstance(code, int) else None,
                    data=error.get("data"),
                )
            raise RpcError(str(error))

        if response.status_code >= 400:
            raise TransportError(f"HTTP {response.status_code} from {self.rpc_url}")

        if not isinstance(data, dict):
            raise MalformedResponseError(f"{method} response is not a JSON-RPC object")
        if "result" not in data:
            raise MalformedResponseError(f"{method} response has neither result nor error")
        return data["result"]

    async def request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Perform one JSON-RPC round trip and return the raw ``result``."""
        payload = self.build_request(method, params)
        try:
            try:
                response = await self._post(payload)
            except httpx.RequestError as exc:
                logger.warning("Flow EVM node unreachable for %s", method, extra={"rpc_method": method})
                raise TransportError(str(exc) or exc.__class__.__name__) from exc
            result = self._process_response(method, response)
        except FlowEvmRpcError as exc:
            if isinstance(exc, RpcError):
                logger.warning("%s returned %s", method, exc, extra={"rpc_method": method})
            default_metrics.record_rpc(method, success=False)
            raise
        default_metrics.record_rpc(method, success=True)
        return result

    async def get_code(self, address: str, block_parameter: str = "latest") -> Any:
        """Retrieve the bytecode deployed at ``address``."""
        return await self.request("eth_getCode", [address, block_parameter])

    async def get_chain_id(self) -> Any:
        return await self.request("eth_chainId")

    async def get_gas_price(self) -> Any:
        return await self.request("eth_gasPrice")

    async def get_balance(self, address: str, block_parameter: str = "latest") -> Any:
        """Retrieve the balance of ``address`` in atto-units (hex quantity)."""
        return await self.request("eth_getBalance", [address, block_parameter])

    async def call(self, transaction: Dict[str, Any], block_parameter: str = "latest") -> Any:
        """Execute a read-only message call."""
        return await self.request("eth_call", [transaction, block_parameter])

    async def get_logs(self, log_filter: Dict[str, Any]) -> Any:
        return await self.request("eth_getLogs", [log_filter])

    async def send_raw_transaction(self, signed_transaction_data: str) -> Any:
        """Broadcast an already-signed transaction and return its hash."""
        return await self.request("eth_sendRawTransaction", [signed_transaction_data])

    async def get_block_number(self) -> Any:
        return await self.request("eth_blockNumber")


default_client = FlowEvmRpcClient()
