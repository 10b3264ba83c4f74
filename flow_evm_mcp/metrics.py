"""Minimal in-process metrics recorder (not suitable for multi-process aggregation)."""

from __future__ import annotations

from collections import Counter, deque
from threading import Lock
from typing import Deque, Dict, Tuple

MAX_RECENT_DURATIONS = 100


class MetricsRecorder:
    def __init__(self, max_recent_durations: int = MAX_RECENT_DURATIONS) -> None:
        self._lock = Lock()
        self._requests = 0
        # Only the most recent request durations are kept.
        self._request_durations_ms: Deque[Tuple[str, float]] = deque(maxlen=max_recent_durations)
        self._rate_limited = 0
        self._tool_success: Counter[str] = Counter()
        self._tool_error: Counter[str] = Counter()
        self._rpc_calls: Counter[str] = Counter()
        self._rpc_failures: Counter[str] = Counter()

    def incr_request(self) -> None:
        with self._lock:
            self._requests += 1

    def record_duration(self, request_id: str, duration_ms: float) -> None:
        with self._lock:
            self._request_durations_ms.append((request_id, duration_ms))

    def incr_rate_limited(self) -> None:
        with self._lock:
            self._rate_limited += 1

    def record_tool(self, tool: str, *, success: bool) -> None:
        with self._lock:
            if success:
                self._tool_success[tool] += 1
            else:
                self._tool_error[tool] += 1

    def record_rpc(self, method: str, *, success: bool) -> None:
        """Count one JSON-RPC round trip for ``method``."""
        with self._lock:
            self._rpc_calls[method] += 1
            if not success:
                self._rpc_failures[method] += 1

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            return {
                "requests": self._requests,
                "rate_limited": self._rate_limited,
                "tool_success": dict(self._tool_success),
                "tool_error": dict(self._tool_error),
                "rpc_calls": dict(self._rpc_calls),
                "rpc_failures": dict(self._rpc_failures),
                "recent_request_durations_ms": dict(self._request_durations_ms),
            }

    def reset(self) -> None:
        with self._lock:
            self._requests = 0
            self._request_durations_ms.clear()
            self._rate_limited = 0
            self._tool_success.clear()
            self._tool_error.clear()
            self._rpc_calls.clear()
            self._rpc_failures.clear()


default_metrics = MetricsRecorder()
