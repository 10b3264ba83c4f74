import pytest

from flow_evm_mcp.rate_limiter import PerKeyRateLimiter, TokenBucket


@pytest.mark.asyncio
async def test_token_bucket_exhausts():
    bucket = TokenBucket(rate=0.0001, capacity=2)
    assert await bucket.consume()
    assert await bucket.consume()
    assert not await bucket.consume()


@pytest.mark.asyncio
async def test_per_key_buckets_are_independent():
    limiter = PerKeyRateLimiter(rate_per_sec=0.0001, burst=1)
    assert await limiter.allow("flow_chainId")
    assert not await limiter.allow("flow_chainId")
    assert await limiter.allow("flow_gasPrice")


@pytest.mark.asyncio
async def test_per_tool_override_and_disable():
    limiter = PerKeyRateLimiter(rate_per_sec=0.0001, burst=1, per_tool={"flow_checkCOA": 0})
    assert limiter.rate_for("flow_checkCOA") == 0
    for _ in range(5):
        assert await limiter.allow("flow_checkCOA")
    assert limiter.rate_for("flow_getLogs") == 0.0001
