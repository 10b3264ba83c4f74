"""FastAPI application wiring Flow EVM MCP tools to HTTP routes."""

from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Any, Dict, Optional

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse, Response

from flow_evm_mcp import mcp
from flow_evm_mcp.config import default_config
from flow_evm_mcp.metrics import default_metrics
from flow_evm_mcp.rate_limiter import PerKeyRateLimiter
from flow_evm_mcp.tools.results import ToolResult

logger = logging.getLogger(__name__)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "message": record.getMessage(),
            "name": record.name,
        }
        for key in ("tool", "request_id", "error", "rpc_method"):
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def _configure_logging() -> None:
    # StreamHandler writes to stderr; stdout stays free for protocol traffic.
    level = getattr(logging, default_config.log_level.upper(), logging.INFO)
    handler = logging.StreamHandler()
    if default_config.log_format.lower() == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logging.basicConfig(level=level, handlers=[handler])


_configure_logging()
rate_limiter = PerKeyRateLimiter(
    rate_per_sec=default_config.rate_limit_qps,
    per_tool=default_config.per_tool_rate_limits,
)
HEALTH_STATUS = {"status": "ok"}
APP_VERSION = "1.0.0"
MCP_SERVER_NAME = "flow-evm-rpc"
MCP_SERVER_VERSION = APP_VERSION

app = FastAPI(
    title="Flow EVM MCP Server",
    description=f"Flow EVM JSON-RPC tool surface for LLM agents ({default_config.network.name}).",
    version=APP_VERSION,
)


@app.middleware("http")
async def add_request_context(request: Request, call_next):
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    start = time.time()
    default_metrics.incr_request()
    response = await call_next(request)
    duration_ms = (time.time() - start) * 1000
    default_metrics.record_duration(request_id, duration_ms)
    response.headers["X-Request-ID"] = request_id
    return response


UNKNOWN_TOOL_KEY = "unknown"


def _tool_key(tool_name: str) -> str:
    """Rate-limit and metrics key; caller-supplied names outside the registry share one key."""
    return tool_name if tool_name in mcp.TOOL_REGISTRY else UNKNOWN_TOOL_KEY


def _log_tool_result(tool_name: str, result: Optional[ToolResult], request_id: Optional[str] = None) -> None:
    if result is None or result.is_error:
        error_text = result.text if result is not None else None
        logger.warning(
            "tool=%s outcome=error error=%s request_id=%s",
            tool_name,
            error_text,
            request_id,
            extra={"tool": tool_name, "request_id": request_id, "error": error_text},
        )
        default_metrics.record_tool(tool_name, success=False)
    else:
        logger.info(
            "tool=%s outcome=success request_id=%s",
            tool_name,
            request_id,
            extra={"tool": tool_name, "request_id": request_id},
        )
        default_metrics.record_tool(tool_name, success=True)


async def _enforce_rate_limit(tool_name: str) -> Optional[JSONResponse]:
    allowed = await rate_limiter.allow(tool_name)
    if not allowed:
        logger.warning("tool=%s outcome=rate_limited", tool_name)
        default_metrics.incr_rate_limited()
        return JSONResponse(
            status_code=429,
            content={"jsonrpc": "2.0", "error": {"code": 429, "message": "Rate limit exceeded"}},
        )
    return None


async def _run_tool(tool_name: str, arguments: Dict[str, Any], request: Request) -> JSONResponse:
    tool_key = _tool_key(tool_name)
    limited = await _enforce_rate_limit(tool_key)
    if limited:
        return limited
    result = await mcp.call_tool(tool_name, arguments)
    _log_tool_result(tool_key, result, getattr(request.state, "request_id", None))
    return JSONResponse(content=result.to_dict())


@app.get("/health")
async def health() -> JSONResponse:
    """Lightweight health endpoint for monitoring."""
    return JSONResponse(content=HEALTH_STATUS)


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Return in-process metrics snapshot."""
    return JSONResponse(content=default_metrics.snapshot())


@app.get("/tools/network_info")
async def network_info(request: Request) -> JSONResponse:
    """Proxy for flow_getNetworkInfo."""
    return await _run_tool("flow_getNetworkInfo", {}, request)


@app.get("/tools/chain_id")
async def chain_id(request: Request) -> JSONResponse:
    """Proxy for flow_chainId."""
    return await _run_tool("flow_chainId", {}, request)


@app.get("/tools/gas_price")
async def gas_price(request: Request) -> JSONResponse:
    """Proxy for flow_gasPrice."""
    return await _run_tool("flow_gasPrice", {}, request)


@app.get("/tools/block_number")
async def block_number(request: Request) -> JSONResponse:
    """Proxy for flow_blockNumber."""
    return await _run_tool("flow_blockNumber", {}, request)


@app.get("/tools/balance/{address}")
async def balance(address: str, request: Request, blockParameter: str | None = Query(None)) -> JSONResponse:
    """Proxy for flow_getBalance."""
    return await _run_tool("flow_getBalance", {"address": address, "blockParameter": blockParameter}, request)


@app.get("/tools/code/{address}")
async def code(address: str, request: Request, blockParameter: str | None = Query(None)) -> JSONResponse:
    """Proxy for flow_getCode."""
    return await _run_tool("flow_getCode", {"address": address, "blockParameter": blockParameter}, request)


@app.get("/tools/coa/{address}")
async def coa(address: str, request: Request) -> JSONResponse:
    """Proxy for flow_checkCOA."""
    return await _run_tool("flow_checkCOA", {"address": address}, request)


@app.post("/mcp")
async def mcp_gateway(request: Request) -> Response:
    """
    Minimal JSON-RPC gateway for MCP-style integrations.

    Supported methods:
      - initialize
      - list_tools / tools/list
      - call_tool / tools/call
      - notifications/initialized
    """
    request_id = getattr(request.state, "request_id", None)
    start_time = time.time()

    def _respond(
        payload: Dict[str, Any],
        status_code: int = 200,
        *,
        outcome: str,
        method_label: Optional[str] = None,
        tool_label: Optional[str] = None,
        error_code: Optional[int] = None,
    ) -> JSONResponse:
        duration_ms = (time.time() - start_time) * 1000
        logger.debug(
            "mcp outcome=%s method=%s tool=%s id=%s status=%s duration_ms=%.2f error_code=%s",
            outcome,
            method_label,
            tool_label,
            payload.get("id"),
            status_code,
            duration_ms,
            error_code,
            extra={"request_id": request_id, "tool": tool_label, "error": error_code},
        )
        return JSONResponse(status_code=status_code, content=payload)

    try:
        body = await request.json()
    except ValueError:
        payload = _jsonrpc_error_payload(None, -32700, "Parse error")
        return _respond(payload, status_code=400, outcome="error", error_code=-32700)

    if not isinstance(body, dict):
        payload = _jsonrpc_error_payload(None, -32600, "Invalid request")
        return _respond(payload, status_code=400, outcome="error", error_code=-32600)

    method = body.get("method")
    rpc_id = body.get("id")
    raw_params = body.get("params")
    if raw_params is None:
        params: Dict[str, Any] = {}
    elif isinstance(raw_params, dict):
        params = raw_params
    else:
        payload = _jsonrpc_error_payload(rpc_id, -32602, "Invalid params")
        return _respond(payload, outcome="error", method_label=method, error_code=-32602)

    if not method:
        payload = _jsonrpc_error_payload(rpc_id, -32600, "Invalid request")
        return _respond(payload, outcome="error", error_code=-32600)

    if method == "initialize":
        protocol_version = params.get("protocolVersion")
        if not isinstance(protocol_version, str) or not protocol_version:
            payload = _jsonrpc_error_payload(rpc_id, -32602, "Invalid params")
            return _respond(payload, outcome="error", method_label=method, error_code=-32602)
        result = {
            "protocolVersion": protocol_version,
            "serverInfo": {"name": MCP_SERVER_NAME, "version": MCP_SERVER_VERSION},
            "capabilities": {"tools": {"listChanged": False}},
        }
        return _respond(_jsonrpc_success_payload(rpc_id, result), outcome="success", method_label=method)

    if method in ("list_tools", "tools/list"):
        limited = await _enforce_rate_limit("list_tools")
        if limited:
            return limited
        result = {"tools": mcp.list_tools()}
        return _respond(_jsonrpc_success_payload(rpc_id, result), outcome="success", method_label=method)

    if method in ("call_tool", "tools/call"):
        tool_name = params.get("name") or params.get("tool")
        tool_params = params.get("arguments")
        if tool_params is None:
            tool_params = params.get("params") or {}
        if not isinstance(tool_name, str) or not tool_name.strip():
            payload = _jsonrpc_error_payload(rpc_id, -32602, "Invalid params")
            return _respond(payload, outcome="error", method_label=method, error_code=-32602)
        if not isinstance(tool_params, dict):
            payload = _jsonrpc_error_payload(rpc_id, -32602, "Invalid params")
            return _respond(payload, outcome="error", method_label=method, tool_label=tool_name, error_code=-32602)
        tool_key = _tool_key(tool_name)
        limited = await _enforce_rate_limit(tool_key)
        if limited:
            return limited
        tool_result = await mcp.call_tool(tool_name, tool_params)
        _log_tool_result(tool_key, tool_result, request_id)
        return _respond(
            _jsonrpc_success_payload(rpc_id, tool_result.to_dict()),
            outcome="error" if tool_result.is_error else "success",
            method_label=method,
            tool_label=tool_name,
        )

    if method in ("notifications/initialized", "initialized"):
        # Notifications get no JSON-RPC response body.
        logger.debug("mcp initialized notification received request_id=%s", request_id, extra={"request_id": request_id})
        return Response(status_code=204)

    payload = _jsonrpc_error_payload(rpc_id, -32601, "Method not found")
    return _respond(payload, outcome="error", method_label=method, error_code=-32601)


# Run with: uvicorn flow_evm_mcp.server:app


def _jsonrpc_success_payload(rpc_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": rpc_id, "result": result}


def _jsonrpc_error_payload(rpc_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": rpc_id, "error": {"code": code, "message": message}}
