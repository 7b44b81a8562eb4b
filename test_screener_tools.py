#!/usr/bin/env python3
"""
Screening lifecycle tests: validation, query building, caching and throttling
"""

import pytest

from shared.cache_manager import SharedCacheManager
from shared.http_client import ProviderHTTPError
from tradingview_mcp_server.filters import FilterValidationError
from tradingview_mcp_server.models import Predicate, ScreenerResponse
from tradingview_mcp_server.screener_tools import (
    DEFAULT_COLUMNS,
    ETF_DEFAULT_COLUMNS,
    FUND_PREDICATE,
    ScreenTool,
    build_cache_key,
    project_rows,
)

RSI_FILTER = {"field": "RSI", "operator": "greater_or_equal", "value": 50}


class TestStockScreen:

    @pytest.mark.asyncio
    async def test_builds_scanner_query(self, screen_tool, scanner):
        await screen_tool.screen_stocks([RSI_FILTER], limit=5)

        market, query = scanner.calls[0]
        assert market == "global"
        payload = query.to_payload()
        assert payload["filter"] == [{"left": "RSI", "operation": "egreater", "right": 50}]
        assert payload["sort"] == {"sortBy": "market_cap_basic", "sortOrder": "desc"}
        assert payload["range"] == [0, 5]
        assert payload["markets"] == ["america"]
        assert payload["options"] == {"lang": "en"}
        assert payload["symbols"] == {"query": {"types": []}, "tickers": []}

    @pytest.mark.asyncio
    async def test_filtered_fields_added_to_columns(self, screen_tool, scanner):
        await screen_tool.screen_stocks([
            RSI_FILTER,
            {"field": "close", "operator": "greater", "value": "SMA200"},
        ])
        assert scanner.last_query.columns == DEFAULT_COLUMNS + ["RSI"]

    @pytest.mark.asyncio
    async def test_caller_columns_replace_defaults(self, screen_tool, scanner):
        await screen_tool.screen_stocks([RSI_FILTER], columns=["name", "sector"])
        assert scanner.last_query.columns == ["name", "sector", "RSI"]

    @pytest.mark.asyncio
    async def test_rows_projected_with_symbol(self, screen_tool, scanner):
        scanner.response = {
            "totalCount": 1234,
            "data": [
                {"s": "NASDAQ:AAPL", "d": ["Apple Inc.", 189.5, 3.0e12, 150.1, 29.3, 1.7, "NASDAQ", 58.2]},
                {"s": "NYSE:KO", "d": ["Coca-Cola", None]},
            ],
        }

        result = await screen_tool.screen_stocks([RSI_FILTER], limit=2)

        assert result["total_count"] == 1234
        apple, coke = result["stocks"]
        assert apple["symbol"] == "NASDAQ:AAPL"
        assert apple["name"] == "Apple Inc."
        assert apple["RSI"] == 58.2
        # Nulls pass through and short rows pad with None
        assert coke["close"] is None
        assert coke["RSI"] is None

    @pytest.mark.asyncio
    async def test_custom_markets_and_sort(self, screen_tool, scanner):
        await screen_tool.screen_stocks(
            [RSI_FILTER], markets=["japan"], sort_by="price_earnings_ttm", sort_order="asc"
        )
        payload = scanner.last_query.to_payload()
        assert payload["markets"] == ["japan"]
        assert payload["sort"] == {"sortBy": "price_earnings_ttm", "sortOrder": "asc"}


class TestValidation:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [0, 201, -1, True, "20"])
    async def test_limit_out_of_range(self, screen_tool, scanner, limit):
        with pytest.raises(ValueError, match="Limit must be between 1 and 200"):
            await screen_tool.screen_stocks([RSI_FILTER], limit=limit)
        assert scanner.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [1, 200])
    async def test_limit_bounds_accepted(self, screen_tool, scanner, limit):
        await screen_tool.screen_stocks([RSI_FILTER], limit=limit)
        assert scanner.last_query.range == (0, limit)

    @pytest.mark.asyncio
    async def test_bad_sort_order(self, screen_tool):
        with pytest.raises(ValueError, match="Invalid sort_order"):
            await screen_tool.screen_stocks([RSI_FILTER], sort_order="up")

    @pytest.mark.asyncio
    async def test_invalid_filter_blocks_provider_call(self, screen_tool, scanner, limiter):
        with pytest.raises(FilterValidationError, match="index 1"):
            await screen_tool.screen_stocks([RSI_FILTER, {"field": "RSI", "operator": "bogus", "value": 1}])
        assert scanner.calls == []
        assert limiter.acquired == 0

    @pytest.mark.asyncio
    async def test_non_string_filter_keys_rejected(self, screen_tool, scanner):
        bad_filter = {**RSI_FILTER, 1: "extra"}
        with pytest.raises(FilterValidationError, match="index 1: property names must be strings") as exc:
            await screen_tool.screen_stocks([RSI_FILTER, bad_filter])
        assert exc.value.index == 1
        assert scanner.calls == []

    @pytest.mark.asyncio
    async def test_filters_must_be_a_list(self, screen_tool):
        with pytest.raises(FilterValidationError, match="filters must be an array"):
            await screen_tool.screen_stocks({"field": "RSI"})


class TestEtfScreen:

    @pytest.mark.asyncio
    async def test_fund_predicate_appended_last(self, screen_tool, scanner):
        scanner.response = {"totalCount": 1, "data": [{"s": "AMEX:SPY", "d": ["SPDR S&P 500", 500.0]}]}

        result = await screen_tool.screen_etf([{"field": "volume", "operator": "greater", "value": 1_000_000}])

        market, query = scanner.calls[0]
        assert market == "global"
        assert query.filter[-1] == FUND_PREDICATE
        assert query.filter[0] == Predicate(left="volume", operation="greater", right=1_000_000)
        assert query.columns == ETF_DEFAULT_COLUMNS
        assert "type" not in query.columns
        assert result["etfs"][0]["symbol"] == "AMEX:SPY"
        assert "stocks" not in result

    @pytest.mark.asyncio
    async def test_etf_and_stock_keys_do_not_collide(self, screen_tool, scanner):
        await screen_tool.screen_stocks([RSI_FILTER])
        await screen_tool.screen_etf([RSI_FILTER])
        assert len(scanner.calls) == 2


class TestForexAndCrypto:

    @pytest.mark.asyncio
    async def test_forex(self, screen_tool, scanner):
        scanner.response = {"totalCount": 1, "data": [{"s": "FX:EURUSD", "d": ["EURUSD", 1.08, 0.1]}]}

        result = await screen_tool.screen_forex([{"field": "change", "operator": "greater", "value": 0}])

        market, query = scanner.calls[0]
        assert market == "forex"
        assert query.sort.sort_by == "volume"
        assert "markets" not in query.to_payload()
        assert result["pairs"][0] == {"symbol": "FX:EURUSD", "name": "EURUSD", "close": 1.08, "change": 0.1}

    @pytest.mark.asyncio
    async def test_crypto(self, screen_tool, scanner):
        result = await screen_tool.screen_crypto([RSI_FILTER], columns=["name"])

        market, query = scanner.calls[0]
        assert market == "crypto"
        assert query.sort.sort_by == "market_cap_basic"
        assert query.columns == ["name", "RSI"]
        assert "markets" not in query.to_payload()
        assert result == {"total_count": 0, "cryptocurrencies": []}


class TestCaching:

    @pytest.mark.asyncio
    async def test_repeat_call_served_from_cache(self, screen_tool, scanner, limiter):
        first = await screen_tool.screen_stocks([RSI_FILTER])
        second = await screen_tool.screen_stocks([RSI_FILTER])

        assert second is first
        assert len(scanner.calls) == 1
        assert limiter.acquired == 1

    @pytest.mark.asyncio
    async def test_any_differing_parameter_misses(self, screen_tool, scanner):
        await screen_tool.screen_stocks([RSI_FILTER])
        await screen_tool.screen_stocks([RSI_FILTER], limit=21)
        await screen_tool.screen_stocks([RSI_FILTER], sort_order="asc")
        await screen_tool.screen_stocks([RSI_FILTER], markets=["japan"])
        await screen_tool.screen_stocks([RSI_FILTER], columns=["name"])
        await screen_tool.screen_stocks([{**RSI_FILTER, "value": 51}])
        assert len(scanner.calls) == 6

    @pytest.mark.asyncio
    async def test_entry_expires(self, screen_tool, scanner, clock):
        await screen_tool.screen_crypto([RSI_FILTER])
        clock.advance(300)
        await screen_tool.screen_crypto([RSI_FILTER])
        assert len(scanner.calls) == 2

    @pytest.mark.asyncio
    async def test_ttl_zero_always_calls_provider(self, scanner, limiter, clock):
        tool = ScreenTool(scanner, SharedCacheManager(ttl_seconds=0, clock=clock), limiter)
        await tool.screen_forex([RSI_FILTER])
        await tool.screen_forex([RSI_FILTER])
        assert len(scanner.calls) == 2
        assert limiter.acquired == 2

    @pytest.mark.asyncio
    async def test_provider_error_not_cached(self, screen_tool, scanner, cache):
        scanner.error = ProviderHTTPError("TradingView API error: 500 Internal Server Error", status_code=500)

        with pytest.raises(ProviderHTTPError, match="500"):
            await screen_tool.screen_stocks([RSI_FILTER])
        assert cache.cache == {}

        scanner.error = None
        await screen_tool.screen_stocks([RSI_FILTER])
        assert len(scanner.calls) == 2

    @pytest.mark.asyncio
    async def test_limiter_acquired_before_provider_call(self, screen_tool, scanner, limiter):
        seen = []
        scanner.on_call = lambda market, query: seen.append(limiter.acquired)
        await screen_tool.screen_stocks([RSI_FILTER])
        assert seen == [1]


class TestHelpers:

    def test_cache_key_is_order_independent(self):
        assert build_cache_key(a=1, b=[1, 2]) == build_cache_key(b=[1, 2], a=1)
        assert build_cache_key(a=1) != build_cache_key(a=2)

    def test_project_rows(self):
        response = ScreenerResponse.model_validate(
            {"totalCount": 1, "data": [{"s": "NYSE:IBM", "d": ["IBM", 180.0]}]}
        )
        assert project_rows(response, ["name", "close", "RSI"]) == [
            {"symbol": "NYSE:IBM", "name": "IBM", "close": 180.0, "RSI": None}
        ]
