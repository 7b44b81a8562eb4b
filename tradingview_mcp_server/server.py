#!/usr/bin/env python3
"""
TradingView Screener MCP Server
Screens stocks, ETFs, forex and crypto through the TradingView scanner.
Tool inputs use a simple {field, operator, value} filter language.
"""
import json
import logging
from typing import Any, Dict, List, Literal, Optional

from fastmcp import FastMCP
from pydantic import Field

from shared.cache_manager import get_shared_cache
from shared.config import get_config
from shared.logging_utils import setup_mcp_server_logging
from shared.rate_limiter import RateLimiter

from . import __version__
from .client import TradingViewClient
from .fields import FieldsTool
from .filters import VALID_OPERATORS
from .models import Preset
from .presets import PRESETS, PresetsTool
from .screener_tools import ScreenTool

logger = logging.getLogger("tradingview-mcp-server")

config = get_config()

# Process-wide components, read from configuration once at start-up
cache = get_shared_cache(ttl_seconds=config.cache_ttl_seconds)
rate_limiter = RateLimiter(requests_per_minute=config.rate_limit_rpm)
client = TradingViewClient(
    base_url=config.provider_base_url,
    timeout=config.provider_timeout_seconds
)
screen_tool = ScreenTool(client, cache, rate_limiter)
fields_tool = FieldsTool()
presets_tool = PresetsTool()

server = FastMCP("TradingView Screener")

FILTERS_DESCRIPTION = (
    "Array of filter conditions, each {field, operator, value}. "
    f"Operators: {', '.join(VALID_OPERATORS)}. "
    "value is a number, a field name for field-to-field comparison (e.g. 'SMA200'), "
    "a boolean, [min, max] for in_range, or a list of strings for membership."
)
LIMIT_DESCRIPTION = "Number of results to return (1-200). Default: 20"
SortOrderParam = Literal["asc", "desc"]


def _error_payload(tool: str, error: Exception) -> Dict[str, Any]:
    logger.error(f"{tool} failed: {error}")
    return {"error": str(error)}


@server.tool()
async def screen_stocks(
    filters: List[Any] = Field(..., description=FILTERS_DESCRIPTION),
    markets: List[str] = Field(["america"], description="Markets to scan (e.g., ['america', 'japan'])"),
    sort_by: str = Field("market_cap_basic", description="Field to sort results by"),
    sort_order: SortOrderParam = Field("desc", description="Sort order"),
    limit: int = Field(20, description=LIMIT_DESCRIPTION),
    columns: Optional[List[str]] = Field(
        None,
        description="Columns to include in results. If omitted, uses minimal default columns. "
                    "Presets may define extended column sets."
    )
) -> Dict[str, Any]:
    """
    Screen stocks based on fundamental and technical criteria.
    Returns stocks matching the specified filters. Filtered fields are always
    included as result columns.
    """
    try:
        return await screen_tool.screen_stocks(
            filters, markets=markets, sort_by=sort_by, sort_order=sort_order,
            limit=limit, columns=columns
        )
    except Exception as e:
        return _error_payload("screen_stocks", e)


@server.tool()
async def screen_etf(
    filters: List[Any] = Field(..., description=FILTERS_DESCRIPTION),
    markets: List[str] = Field(["america"], description="Markets to scan (e.g., ['america'])"),
    sort_by: str = Field("market_cap_basic", description="Field to sort results by"),
    sort_order: SortOrderParam = Field("desc", description="Sort order"),
    limit: int = Field(20, description=LIMIT_DESCRIPTION),
    columns: Optional[List[str]] = Field(
        None,
        description="Columns to include. Default: name, close, volume, change, change_from_open"
    )
) -> Dict[str, Any]:
    """
    Screen ETFs (Exchange-Traded Funds) based on performance and technical criteria.
    Results are restricted to fund-type instruments.
    """
    try:
        return await screen_tool.screen_etf(
            filters, markets=markets, sort_by=sort_by, sort_order=sort_order,
            limit=limit, columns=columns
        )
    except Exception as e:
        return _error_payload("screen_etf", e)


@server.tool()
async def screen_forex(
    filters: List[Any] = Field(..., description=FILTERS_DESCRIPTION),
    sort_by: str = Field("volume", description="Field to sort results by"),
    sort_order: SortOrderParam = Field("desc", description="Sort order"),
    limit: int = Field(20, description=LIMIT_DESCRIPTION),
    columns: Optional[List[str]] = Field(None, description="Columns to include. Default: name, close, change")
) -> Dict[str, Any]:
    """Screen forex pairs based on technical criteria."""
    try:
        return await screen_tool.screen_forex(
            filters, sort_by=sort_by, sort_order=sort_order, limit=limit, columns=columns
        )
    except Exception as e:
        return _error_payload("screen_forex", e)


@server.tool()
async def screen_crypto(
    filters: List[Any] = Field(..., description=FILTERS_DESCRIPTION),
    sort_by: str = Field("market_cap_basic", description="Field to sort results by"),
    sort_order: SortOrderParam = Field("desc", description="Sort order"),
    limit: int = Field(20, description=LIMIT_DESCRIPTION),
    columns: Optional[List[str]] = Field(
        None, description="Columns to include. Default: name, close, market_cap_basic, change"
    )
) -> Dict[str, Any]:
    """Screen cryptocurrencies based on technical and market criteria."""
    try:
        return await screen_tool.screen_crypto(
            filters, sort_by=sort_by, sort_order=sort_order, limit=limit, columns=columns
        )
    except Exception as e:
        return _error_payload("screen_crypto", e)


@server.tool()
async def lookup_symbols(
    symbols: List[str] = Field(
        ...,
        description="Ticker symbols (e.g., ['TVC:SPX', 'NASDAQ:AAPL', 'OMXSTO:OMXS30']). Maximum 100 symbols."
    ),
    columns: Optional[List[str]] = Field(
        None,
        description="Columns to include. Default: name, close, change, volume, market_cap_basic, "
                    "all_time_high, all_time_low, price_52_week_high, price_52_week_low"
    )
) -> Dict[str, Any]:
    """
    Look up specific symbols (stocks, indexes, ETFs) by ticker.
    Use this for market indexes like TVC:SPX, TVC:DJI or OMXSTO:OMXS30 that
    cannot be found via screening. Default columns include all-time and
    52-week highs/lows.
    """
    try:
        return await screen_tool.lookup_symbols(symbols, columns=columns)
    except Exception as e:
        return _error_payload("lookup_symbols", e)


@server.tool()
def list_fields(
    asset_type: Literal["stock", "forex", "crypto"] = Field("stock", description="Type of asset"),
    category: Optional[Literal["fundamental", "technical", "performance"]] = Field(
        None, description="Filter fields by category. If omitted, returns all categories"
    )
) -> Dict[str, Any]:
    """
    List available fields for filtering and display.
    Use this to discover what fields you can filter and sort by.
    """
    return fields_tool.list_fields(asset_type=asset_type, category=category)


@server.tool()
def list_presets() -> Dict[str, Any]:
    """List all available preset screening strategies."""
    presets = presets_tool.list_presets()
    return {"presets": presets, "count": len(presets)}


@server.tool()
def get_preset(
    preset_name: str = Field(..., description="Name of preset, e.g. quality_stocks, value_stocks, market_indexes")
) -> Dict[str, Any]:
    """
    Get a pre-configured screening strategy.
    Returns the filters, sort and columns to pass to the matching screen tool
    (or the symbols to pass to lookup_symbols).
    """
    preset = presets_tool.get_preset(preset_name)
    if preset is None:
        return {
            "error": f"Preset not found: {preset_name}",
            "available_presets": list(PRESETS),
        }
    return preset


def _register_preset_resource(key: str, preset: Preset) -> None:
    """Expose one preset as a listed preset://<key> JSON resource."""

    def read_preset() -> str:
        return json.dumps(presets_tool.get_preset(key), indent=2)

    server.resource(
        f"preset://{key}",
        name=preset.name,
        description=preset.description,
        mime_type="application/json",
    )(read_preset)


for _key, _preset in PRESETS.items():
    _register_preset_resource(_key, _preset)


def main():
    setup_mcp_server_logging("tradingview-mcp-server", level=config.log_level)

    cleanup = cache.start_cleanup(config.cache_cleanup_interval_seconds)
    logger.info(f"TradingView MCP Server v{__version__} running on stdio")
    logger.info(f"Cache TTL: {config.cache_ttl_seconds}s | Rate Limit: {config.rate_limit_rpm} req/min")

    try:
        server.run()
    finally:
        cleanup.cancel(timeout=1.0)


if __name__ == "__main__":
    main()
