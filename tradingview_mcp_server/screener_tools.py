"""Screening tools for stocks, ETFs, forex, crypto and direct symbol lookup.

Every operation runs the same request lifecycle:
validate input -> cache lookup -> translate filters -> derive columns ->
rate limit -> scanner call -> row projection -> cache write.
"""

import json
from collections.abc import Mapping
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from shared.cache_manager import SharedCacheManager
from shared.logging_utils import get_library_logger
from shared.rate_limiter import RateLimiter

from .client import TradingViewClient
from .filters import FilterValidationError, derive_columns, validate_and_convert
from .models import (
    Predicate,
    ScreenerQuery,
    ScreenerResponse,
    SortSpec,
    SymbolsClause,
)

logger = get_library_logger(__name__)

MIN_LIMIT = 1
MAX_LIMIT = 200
MAX_SYMBOLS = 100

# Minimal default columns for lean responses
DEFAULT_COLUMNS = [
    "name",
    "close",
    "market_cap_basic",
    "return_on_equity",
    "price_earnings_ttm",
    "debt_to_equity",
    "exchange",
]

# Extended columns for comprehensive analysis (used by presets)
EXTENDED_COLUMNS = DEFAULT_COLUMNS + [
    "free_cash_flow_ttm",
    "free_cash_flow_margin_ttm",
    "earnings_release_next_trading_date_fq",
    "fundamental_currency_code",
    "dividends_yield_current",
    "dividend_payout_ratio_ttm",
    "beta_5_year",
    "sector",
    "industry",
    "earnings_per_share_diluted_yoy_growth_ttm",
]

ETF_DEFAULT_COLUMNS = ["name", "close", "volume", "change", "change_from_open"]
FOREX_DEFAULT_COLUMNS = ["name", "close", "change"]
CRYPTO_DEFAULT_COLUMNS = ["name", "close", "market_cap_basic", "change"]
LOOKUP_DEFAULT_COLUMNS = [
    "name",
    "close",
    "change",
    "volume",
    "market_cap_basic",
    "all_time_high",
    "all_time_low",
    "price_52_week_high",
    "price_52_week_low",
]

# Restricts /global/scan results to funds
FUND_PREDICATE = Predicate(left="type", operation="equal", right="fund")

Scan = Callable[[ScreenerQuery], Awaitable[ScreenerResponse]]


def build_cache_key(**params: Any) -> str:
    """Deterministic key for a logical request; any differing parameter changes it."""
    return json.dumps(params, sort_keys=True, default=str)


def _validate_filter_keys(filters: Sequence[Any]) -> None:
    # Keys are sorted when the cache key is built; mixed key types cannot be ordered
    for index, raw in enumerate(filters):
        if isinstance(raw, Mapping):
            bad = [key for key in raw if not isinstance(key, str)]
            if bad:
                raise FilterValidationError(
                    f"Invalid filter at index {index}: property names must be strings, got {bad[0]!r}",
                    index
                )


def project_rows(response: ScreenerResponse, columns: Sequence[str]) -> List[Dict[str, Any]]:
    """Decode positional row values into {symbol, <column>: value} dicts."""
    rows = []
    for item in response.data:
        row: Dict[str, Any] = {"symbol": item.id}
        for idx, col in enumerate(columns):
            row[col] = item.values[idx] if idx < len(item.values) else None
        rows.append(row)
    return rows


def _validate_limit(limit: Any) -> None:
    if isinstance(limit, bool) or not isinstance(limit, int) or not MIN_LIMIT <= limit <= MAX_LIMIT:
        raise ValueError(f"Limit must be between {MIN_LIMIT} and {MAX_LIMIT}")


def _validate_sort_order(sort_order: Any) -> None:
    if sort_order not in ("asc", "desc"):
        raise ValueError(f"Invalid sort_order: {sort_order}. Must be 'asc' or 'desc'")


def _validate_filter_list(filters: Any) -> None:
    if not isinstance(filters, (list, tuple)):
        raise FilterValidationError(
            "filters must be an array of {field, operator, value} objects"
        )


class ScreenTool:
    """Runs screens and symbol lookups against the scanner with caching and throttling."""

    def __init__(
        self,
        client: TradingViewClient,
        cache: SharedCacheManager,
        rate_limiter: RateLimiter
    ):
        self.client = client
        self.cache = cache
        self.rate_limiter = rate_limiter

    async def _run_screen(
        self,
        *,
        domain: str,
        result_key: str,
        scan: Scan,
        filters: Sequence[Any],
        sort_by: str,
        sort_order: str,
        limit: int,
        columns: Optional[Sequence[str]],
        default_columns: Sequence[str],
        markets: Optional[List[str]] = None,
        extra_predicates: Sequence[Predicate] = ()
    ) -> Dict[str, Any]:
        _validate_limit(limit)
        _validate_sort_order(sort_order)
        _validate_filter_list(filters)
        _validate_filter_keys(filters)

        key_params: Dict[str, Any] = {
            "type": domain,
            "filters": list(filters),
            "sort_by": sort_by,
            "sort_order": sort_order,
            "limit": limit,
            "columns": list(columns) if columns is not None else None,
        }
        if markets is not None:
            key_params["markets"] = markets
        cache_key = build_cache_key(**key_params)

        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"{domain} screen served from cache")
            return cached

        predicates = validate_and_convert(filters)
        predicates.extend(extra_predicates)

        query_columns = derive_columns(columns if columns is not None else default_columns, filters)

        query = ScreenerQuery(
            filter=predicates,
            columns=query_columns,
            sort=SortSpec(sort_by=sort_by, sort_order=sort_order),
            range=(0, limit),
            symbols=SymbolsClause(),
            markets=markets,
        )

        await self.rate_limiter.acquire()
        response = await scan(query)
        logger.info(f"{domain} screen returned {len(response.data)} of {response.total_count} matches")

        result = {
            "total_count": response.total_count,
            result_key: project_rows(response, query_columns),
        }

        self.cache.set(cache_key, result)
        return result

    async def screen_stocks(
        self,
        filters: Sequence[Any],
        markets: Optional[List[str]] = None,
        sort_by: str = "market_cap_basic",
        sort_order: str = "desc",
        limit: int = 20,
        columns: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        """Screen equities. Returns {"total_count", "stocks"}."""
        return await self._run_screen(
            domain="stocks",
            result_key="stocks",
            scan=self.client.scan_stocks,
            filters=filters,
            sort_by=sort_by,
            sort_order=sort_order,
            limit=limit,
            columns=columns,
            default_columns=DEFAULT_COLUMNS,
            markets=list(markets) if markets is not None else ["america"],
        )

    async def screen_etf(
        self,
        filters: Sequence[Any],
        markets: Optional[List[str]] = None,
        sort_by: str = "market_cap_basic",
        sort_order: str = "desc",
        limit: int = 20,
        columns: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        """Screen ETFs; a fund-type predicate is appended after the caller's filters."""
        return await self._run_screen(
            domain="etf",
            result_key="etfs",
            scan=self.client.scan_stocks,
            filters=filters,
            sort_by=sort_by,
            sort_order=sort_order,
            limit=limit,
            columns=columns,
            default_columns=ETF_DEFAULT_COLUMNS,
            markets=list(markets) if markets is not None else ["america"],
            extra_predicates=(FUND_PREDICATE,),
        )

    async def screen_forex(
        self,
        filters: Sequence[Any],
        sort_by: str = "volume",
        sort_order: str = "desc",
        limit: int = 20,
        columns: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        return await self._run_screen(
            domain="forex",
            result_key="pairs",
            scan=self.client.scan_forex,
            filters=filters,
            sort_by=sort_by,
            sort_order=sort_order,
            limit=limit,
            columns=columns,
            default_columns=FOREX_DEFAULT_COLUMNS,
        )

    async def screen_crypto(
        self,
        filters: Sequence[Any],
        sort_by: str = "market_cap_basic",
        sort_order: str = "desc",
        limit: int = 20,
        columns: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        return await self._run_screen(
            domain="crypto",
            result_key="cryptocurrencies",
            scan=self.client.scan_crypto,
            filters=filters,
            sort_by=sort_by,
            sort_order=sort_order,
            limit=limit,
            columns=columns,
            default_columns=CRYPTO_DEFAULT_COLUMNS,
        )

    async def lookup_symbols(
        self,
        symbols: Sequence[str],
        columns: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        """
        Look up specific tickers (stocks, indexes, ETFs) by exchange-qualified symbol.

        Useful for instruments a screen cannot reach, such as TVC:SPX or
        OMXSTO:OMXS30. Returns {"total_count", "symbols"}.
        """
        if isinstance(symbols, str) or not isinstance(symbols, (list, tuple)):
            raise ValueError("symbols must be an array of ticker strings")
        if len(symbols) == 0:
            raise ValueError("At least one symbol is required")
        if len(symbols) > MAX_SYMBOLS:
            raise ValueError(f"Maximum {MAX_SYMBOLS} symbols allowed")

        tickers = list(symbols)
        cache_key = build_cache_key(
            type="lookup",
            symbols=tickers,
            columns=list(columns) if columns is not None else None,
        )

        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug("symbol lookup served from cache")
            return cached

        query_columns = list(dict.fromkeys(columns if columns is not None else LOOKUP_DEFAULT_COLUMNS))

        query = ScreenerQuery(
            filter=[],
            columns=query_columns,
            range=(0, len(tickers)),
            symbols=SymbolsClause(tickers=tickers),
        )

        await self.rate_limiter.acquire()
        response = await self.client.scan_stocks(query)
        logger.info(f"symbol lookup returned {len(response.data)} of {len(tickers)} tickers")

        result = {
            "total_count": response.total_count,
            "symbols": project_rows(response, query_columns),
        }

        self.cache.set(cache_key, result)
        return result
