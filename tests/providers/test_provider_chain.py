import asyncio

from conftest import FakeClock, FakeResponse, FakeSession
from stargazer.errors import ProviderError
from stargazer.providers.base import Provider, ProviderChain, get_json, settle
from stargazer.ratelimit import RateLimiter

import pytest


class StaticProvider(Provider[str]):
    def __init__(self, name, result=None, error=None, delay=0.0, timeout_s=1.0):
        self.name = name
        self.result = result
        self.error = error
        self.delay = delay
        self.timeout_s = timeout_s
        self.calls = 0

    async def fetch(self, session, *args, **kwargs):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


def test_first_success_wins():
    first = StaticProvider("first", result="a")
    second = StaticProvider("second", result="b")
    chain = ProviderChain("test", [first, second], lambda: "default")
    assert asyncio.run(chain.fetch(None)) == "a"
    assert second.calls == 0


def test_falls_through_failures():
    chain = ProviderChain(
        "test",
        [
            StaticProvider("broken", error=ProviderError("nope")),
            StaticProvider("bad-data", error=KeyError("field")),
            StaticProvider("ok", result="c"),
        ],
        lambda: "default",
    )
    assert asyncio.run(chain.fetch(None)) == "c"


def test_timeout_counts_as_failure():
    slow = StaticProvider("slow", result="late", delay=0.5, timeout_s=0.01)
    chain = ProviderChain("test", [slow], lambda: "default")
    assert asyncio.run(chain.fetch(None)) == "default"


def test_all_failures_return_default(caplog):
    chain = ProviderChain("test", [StaticProvider("broken", error=ValueError("bad"))], list)
    with caplog.at_level("WARNING"):
        assert asyncio.run(chain.fetch(None)) == []
    assert "All test providers failed" in caplog.text


def test_unexpected_errors_propagate():
    chain = ProviderChain("test", [StaticProvider("bug", error=ZeroDivisionError())], lambda: "default")
    with pytest.raises(ZeroDivisionError):
        asyncio.run(chain.fetch(None))


def test_rate_limited_provider_is_skipped():
    limiter = RateLimiter(clock=FakeClock())
    first = StaticProvider("first", result="a")
    second = StaticProvider("second", result="b")
    chain = ProviderChain("test", [first, second], lambda: "default", limiter=limiter, limit=1, window_s=60)
    assert asyncio.run(chain.fetch(None)) == "a"
    assert asyncio.run(chain.fetch(None)) == "b"
    assert first.calls == 1


def test_in_process_provider_bypasses_limiter():
    limiter = RateLimiter(clock=FakeClock())
    local = StaticProvider("local", result="a")
    local.rate_limited = False
    chain = ProviderChain("test", [local], lambda: "default", limiter=limiter, limit=1, window_s=60)
    assert [asyncio.run(chain.fetch(None)) for _ in range(5)] == ["a"] * 5
    assert local.calls == 5


def test_settle_fallbacks():
    async def boom():
        raise RuntimeError("boom")

    async def slow():
        await asyncio.sleep(0.5)
        return "late"

    async def fine():
        return "ok"

    assert asyncio.run(settle("boom", boom(), "fallback")) == "fallback"
    assert asyncio.run(settle("slow", slow(), "fallback", timeout_s=0.01)) == "fallback"
    assert asyncio.run(settle("fine", fine(), "fallback", timeout_s=1)) == "ok"


def test_get_json_raises_on_http_error():
    session = FakeSession({"https://example.test/": FakeResponse({"error": "x"}, status=503)})
    with pytest.raises(ProviderError):
        asyncio.run(get_json(session, "https://example.test/data"))


def test_get_json_passes_params():
    session = FakeSession({"https://example.test/": {"ok": True}})
    assert asyncio.run(get_json(session, "https://example.test/data", params={"a": 1})) == {"ok": True}
    assert session.calls == [("https://example.test/data", {"a": 1})]
