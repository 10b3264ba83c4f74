from flow_evm_mcp.metrics import MetricsRecorder


def test_recent_durations_are_bounded():
    recorder = MetricsRecorder(max_recent_durations=3)
    for index in range(10):
        recorder.incr_request()
        recorder.record_duration(f"req-{index}", float(index))
    snapshot = recorder.snapshot()
    assert snapshot["requests"] == 10
    assert snapshot["recent_request_durations_ms"] == {"req-7": 7.0, "req-8": 8.0, "req-9": 9.0}


def test_reset_clears_counters():
    recorder = MetricsRecorder()
    recorder.record_duration("req-1", 1.5)
    recorder.record_tool("flow_chainId", success=True)
    recorder.record_rpc("eth_chainId", success=False)
    recorder.reset()
    snapshot = recorder.snapshot()
    assert snapshot["recent_request_durations_ms"] == {}
    assert snapshot["tool_success"] == {}
    assert snapshot["rpc_failures"] == {}
