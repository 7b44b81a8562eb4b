"""
Pytest configuration and fixtures.
"""
import pytest

from shared.cache_manager import SharedCacheManager
from tradingview_mcp_server.models import ScreenerResponse
from tradingview_mcp_server.screener_tools import ScreenTool


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeScannerClient:
    """Records scanner queries and replays a canned response."""

    def __init__(self):
        self.calls = []
        self.response = {"totalCount": 0, "data": []}
        self.error = None
        self.on_call = None

    async def _scan(self, market, query):
        self.calls.append((market, query))
        if self.on_call is not None:
            self.on_call(market, query)
        if self.error is not None:
            raise self.error
        return ScreenerResponse.model_validate(self.response)

    async def scan_stocks(self, query):
        return await self._scan("global", query)

    async def scan_forex(self, query):
        return await self._scan("forex", query)

    async def scan_crypto(self, query):
        return await self._scan("crypto", query)

    @property
    def last_query(self):
        return self.calls[-1][1]


class CountingRateLimiter:
    """Admits immediately and counts acquisitions."""

    def __init__(self):
        self.acquired = 0

    async def acquire(self):
        self.acquired += 1


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scanner():
    return FakeScannerClient()


@pytest.fixture
def limiter():
    return CountingRateLimiter()


@pytest.fixture
def cache(clock):
    return SharedCacheManager(ttl_seconds=300, clock=clock)


@pytest.fixture
def screen_tool(scanner, cache, limiter):
    return ScreenTool(scanner, cache, limiter)
