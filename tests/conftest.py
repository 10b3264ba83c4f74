import os
import sys

import pytest

# Ensure repository root is on sys.path before importing project modules.
repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

from flow_evm_mcp.metrics import default_metrics  # noqa: E402


@pytest.fixture(autouse=True)
def reset_metrics():
    default_metrics.reset()
    yield
    default_metrics.reset()


class MockResponse:
    def __init__(self, status_code: int, json_body=None, *, raise_on_json: bool = False):
        self.status_code = status_code
        self._json = json_body
        self._raise_on_json = raise_on_json

    def json(self):
        if self._raise_on_json:
            raise ValueError("not json")
        return self._json


class MockAsyncClient:
    """Stands in for httpx.AsyncClient; records every POST."""

    def __init__(self, responses=None, exc: Exception | None = None):
        self.responses = list(responses or [])
        self.exc = exc
        self.calls = []

    async def post(self, url, json=None, headers=None):
        self.calls.append({"url": url, "json": json})
        if self.exc is not None:
            raise self.exc
        if not self.responses:
            raise RuntimeError("No mock responses")
        return self.responses.pop(0)

    async def aclose(self):
        return None


class CountingClient:
    """Tool-level stub that fails the test if any RPC wrapper is touched."""

    def __init__(self):
        self.calls = 0

    def __getattr__(self, name):
        async def _record(*_args, **_kwargs):
            self.calls += 1
            raise AssertionError(f"unexpected RPC call: {name}")

        return _record


@pytest.fixture
def counting_client():
    return CountingClient()
