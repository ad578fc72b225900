from abc import ABC, abstractmethod
import asyncio
import logging
from typing import Any, Awaitable, Callable, Generic, Sequence, TypeVar

import aiohttp

from stargazer.errors import ProviderError
from stargazer.ratelimit import RateLimiter

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT_S = 10.0

# failures a provider may raise that a chain absorbs
PROVIDER_ERRORS = (
    ProviderError,
    aiohttp.ClientError,
    asyncio.TimeoutError,
    ValueError,
    KeyError,
    TypeError,
    AttributeError,
)


async def get_json(
    session: aiohttp.ClientSession,
    url: str,
    *,
    params: dict | None = None,
    timeout_s: float = DEFAULT_TIMEOUT_S,
) -> Any:
    async with session.get(url, params=params, timeout=aiohttp.ClientTimeout(total=timeout_s)) as response:
        if response.status < 200 or response.status >= 300:
            raise ProviderError(f"{url} returned HTTP {response.status}")
        return await response.json(content_type=None)


class Provider(ABC, Generic[T]):
    name: str
    timeout_s: float = DEFAULT_TIMEOUT_S
    # only providers that make outbound calls count against the limiter
    rate_limited: bool = True

    @abstractmethod
    async def fetch(self, session: aiohttp.ClientSession, *args, **kwargs) -> T:
        raise NotImplementedError


class ProviderChain(Generic[T]):
    """Ordered fallback over providers; the first one that succeeds wins.

    Each call is raced against the provider's timeout. When a limiter is
    given, a provider over its outbound budget is skipped like a failure.
    The chain never raises for provider faults: ``default`` is returned
    once every provider has failed.
    """

    def __init__(
        self,
        kind: str,
        providers: Sequence[Provider[T]],
        default: Callable[[], T],
        *,
        limiter: RateLimiter | None = None,
        limit: int = 30,
        window_s: float = 60.0,
    ):
        self.kind = kind
        self.providers = list(providers)
        self._default = default
        self._limiter = limiter
        self._limit = limit
        self._window_s = window_s

    def _over_budget(self, provider: Provider[T]) -> bool:
        if self._limiter is None or not provider.rate_limited:
            return False
        result = self._limiter.check(f"provider:{provider.name}", self._limit, self._window_s)
        return not result.allowed

    async def fetch(self, session: aiohttp.ClientSession, *args, **kwargs) -> T:
        for provider in self.providers:
            if self._over_budget(provider):
                logger.warning("%s provider %s skipped: rate limited", self.kind, provider.name)
                continue
            try:
                return await asyncio.wait_for(
                    provider.fetch(session, *args, **kwargs),
                    timeout=provider.timeout_s,
                )
            except asyncio.TimeoutError:
                logger.warning("%s provider %s timed out after %.1fs", self.kind, provider.name, provider.timeout_s)
            except PROVIDER_ERRORS as e:
                logger.warning("%s provider %s failed: %s", self.kind, provider.name, e)
        logger.warning("All %s providers failed; using fallback", self.kind)
        return self._default()


async def settle(name: str, awaitable: Awaitable[T], fallback: T, timeout_s: float | None = None) -> T:
    """Await one fan-out branch; any failure or timeout resolves to ``fallback``."""
    try:
        if timeout_s is not None:
            return await asyncio.wait_for(awaitable, timeout=timeout_s)
        return await awaitable
    except asyncio.TimeoutError:
        logger.warning("%s timed out after %.1fs", name, timeout_s)
    except Exception as e:  # noqa: BLE001 - branch isolation
        logger.warning("%s failed: %s", name, e)
    return fallback
