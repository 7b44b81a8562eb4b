"""TradingView scanner client.

Thin transport over the public scanner endpoints:
- /global/scan for stocks, ETFs and symbol lookups
- /forex/scan for currency pairs
- /crypto/scan for cryptocurrencies
"""

from typing import Optional

import httpx
from pydantic import ValidationError

from shared.http_client import BaseHTTPTool, ProviderError
from shared.logging_utils import get_library_logger

from . import __version__
from .models import ScreenerQuery, ScreenerResponse

logger = get_library_logger(__name__)

API_BASE = "https://scanner.tradingview.com"
API_TIMEOUT = 10.0


class TradingViewClient:
    """POST scanner queries and decode the row-oriented responses."""

    def __init__(
        self,
        base_url: str = API_BASE,
        timeout: float = API_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.client = BaseHTTPTool(
            provider_name="TradingView",
            base_url=base_url,
            timeout=timeout,
            user_agent=f"tradingview-mcp-server/{__version__}",
            transport=transport
        )

    async def close(self):
        await self.client.close()

    async def _scan(self, endpoint: str, query: ScreenerQuery) -> ScreenerResponse:
        payload = query.to_payload()
        logger.debug(f"Scanning {endpoint} with {len(query.filter)} predicates, {len(query.columns)} columns")
        data = await self.client.post(endpoint, json_data=payload)
        try:
            return ScreenerResponse.model_validate(data)
        except ValidationError as e:
            logger.error(f"Unexpected response shape from {endpoint}: {e.error_count()} errors")
            raise ProviderError(f"TradingView returned an unexpected response: {e.errors()[0]['msg']}") from e

    async def scan_stocks(self, query: ScreenerQuery) -> ScreenerResponse:
        return await self._scan("/global/scan", query)

    async def scan_forex(self, query: ScreenerQuery) -> ScreenerResponse:
        return await self._scan("/forex/scan", query)

    async def scan_crypto(self, query: ScreenerQuery) -> ScreenerResponse:
        return await self._scan("/crypto/scan", query)
