import pytest
from fastapi.testclient import TestClient

from flow_evm_mcp import server as server_mod
from flow_evm_mcp.rate_limiter import PerKeyRateLimiter
from flow_evm_mcp.server import MCP_SERVER_NAME, MCP_SERVER_VERSION, app
from flow_evm_mcp.tools.results import text_result

FACTORY = "0x0000000000000000000000020000000000000000"


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(server_mod, "rate_limiter", PerKeyRateLimiter(rate_per_sec=0))
    return TestClient(app)


def test_health_route(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    assert "X-Request-ID" in resp.headers


def test_mcp_initialize(client):
    resp = client.post(
        "/mcp",
        json={
            "jsonrpc": "2.0",
            "id": 10,
            "method": "initialize",
            "params": {"protocolVersion": "2025-03-26", "capabilities": {}, "clientInfo": {"name": "t", "version": "0"}},
        },
    )
    assert resp.status_code == 200
    result = resp.json()["result"]
    assert result["protocolVersion"] == "2025-03-26"
    assert result["serverInfo"] == {"name": MCP_SERVER_NAME, "version": MCP_SERVER_VERSION}
    assert result["capabilities"]["tools"]["listChanged"] is False


def test_mcp_tools_list(client):
    resp = client.post("/mcp", json={"jsonrpc": "2.0", "id": 1, "method": "tools/list"})
    assert resp.status_code == 200
    tools = resp.json()["result"]["tools"]
    coa = next(t for t in tools if t["name"] == "flow_checkCOA")
    assert coa["inputSchema"]["type"] == "object"
    assert coa["inputSchema"]["required"] == ["address"]


def test_mcp_tools_call_local_tool(client):
    resp = client.post(
        "/mcp",
        json={
            "jsonrpc": "2.0",
            "id": 4,
            "method": "tools/call",
            "params": {"name": "flow_checkCOA", "arguments": {"address": FACTORY}},
        },
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["id"] == 4
    assert data["result"]["isError"] is False
    content = data["result"]["content"][0]
    assert content["type"] == "text"
    assert "COA factory address" in content["text"]


def test_mcp_tools_call_validation_error_is_in_band(client):
    resp = client.post(
        "/mcp",
        json={
            "jsonrpc": "2.0",
            "id": 5,
            "method": "tools/call",
            "params": {"name": "flow_getBalance", "arguments": {"address": "0xbad"}},
        },
    )
    assert resp.status_code == 200
    result = resp.json()["result"]
    assert result["isError"] is True
    assert "address" in result["content"][0]["text"]
    assert client.get("/metrics").json()["tool_error"] == {"flow_getBalance": 1}


def test_mcp_call_tool_uses_dispatcher(client, monkeypatch):
    seen = {}

    async def fake_call_tool(name, params=None):
        seen["call"] = (name, params)
        return text_result("Latest Block Number:\nHex: 0x10\nDecimal: 16")

    monkeypatch.setattr(server_mod.mcp, "call_tool", fake_call_tool)
    resp = client.post(
        "/mcp",
        json={"jsonrpc": "2.0", "id": 6, "method": "call_tool", "params": {"tool": "flow_blockNumber", "params": {}}},
    )
    assert seen["call"] == ("flow_blockNumber", {})
    assert resp.json()["result"]["content"][0]["text"].endswith("Decimal: 16")


def test_mcp_unknown_method(client):
    resp = client.post("/mcp", json={"jsonrpc": "2.0", "id": 7, "method": "not_a_real_method"})
    assert resp.json()["error"]["code"] == -32601


def test_mcp_invalid_params_type(client):
    resp = client.post("/mcp", json={"jsonrpc": "2.0", "id": 11, "method": "call_tool", "params": []})
    assert resp.json()["error"]["code"] == -32602


def test_mcp_missing_tool_name(client):
    resp = client.post("/mcp", json={"jsonrpc": "2.0", "id": 13, "method": "tools/call", "params": {"arguments": {}}})
    assert resp.json()["error"]["code"] == -32602


def test_mcp_parse_error(client):
    resp = client.post("/mcp", content="{not json", headers={"Content-Type": "application/json"})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == -32700


def test_mcp_missing_method(client):
    resp = client.post("/mcp", json={"jsonrpc": "2.0", "id": 12})
    assert resp.json()["error"]["code"] == -32600


def test_mcp_initialized_notification(client):
    resp = client.post("/mcp", json={"jsonrpc": "2.0", "method": "notifications/initialized"})
    assert resp.status_code == 204
    assert resp.text == ""


def test_rest_routes_validate_and_run_local_tools(client):
    resp = client.get(f"/tools/coa/{FACTORY}")
    assert resp.status_code == 200
    assert "COA factory address" in resp.json()["content"][0]["text"]

    resp = client.get("/tools/balance/not-an-address")
    assert resp.json()["isError"] is True

    resp = client.get("/tools/network_info")
    assert resp.json()["content"][0]["text"].startswith("Flow EVM Network Information:")


def test_rate_limited_tool_call(monkeypatch):
    class DenyLimiter:
        async def allow(self, _tool):
            return False

    monkeypatch.setattr(server_mod, "rate_limiter", DenyLimiter())
    client = TestClient(app)
    resp = client.get("/tools/chain_id")
    assert resp.status_code == 429
    assert resp.json()["error"]["message"] == "Rate limit exceeded"
    data = client.get("/metrics").json()
    assert data["rate_limited"] >= 1
    assert data["tool_error"].get("flow_chainId", 0) == 0


def test_unknown_tool_names_share_one_key(monkeypatch):
    limiter = PerKeyRateLimiter(rate_per_sec=1000)
    monkeypatch.setattr(server_mod, "rate_limiter", limiter)
    client = TestClient(app)
    for index in range(50):
        resp = client.post(
            "/mcp",
            json={"jsonrpc": "2.0", "id": index, "method": "tools/call", "params": {"name": f"bogus_{index}"}},
        )
        assert resp.json()["result"]["content"][0]["text"] == f"Unknown tool: bogus_{index}"
    assert set(limiter._buckets) == {server_mod.UNKNOWN_TOOL_KEY}
    assert client.get("/metrics").json()["tool_error"] == {server_mod.UNKNOWN_TOOL_KEY: 50}
