"""JSON-RPC client wrappers for a Flow EVM node."""

from .client import (
    FlowEvmRpcClient,
    FlowEvmRpcError,
    MalformedResponseError,
    RpcError,
    SUPPORTED_METHODS,
    TransportError,
    default_client,
)

__all__ = [
    "FlowEvmRpcClient",
    "FlowEvmRpcError",
    "TransportError",
    "RpcError",
    "MalformedResponseError",
    "SUPPORTED_METHODS",
    "default_client",
]
