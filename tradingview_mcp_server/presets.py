"""
Preset screening configurations.
Each preset is a named bundle of screen arguments that can be passed straight
to the matching tool.
"""
from typing import Any, Dict, List, Optional

from .models import Preset
from .screener_tools import EXTENDED_COLUMNS, LOOKUP_DEFAULT_COLUMNS

PRESETS: Dict[str, Preset] = {
    "quality_stocks": Preset(
        name="Quality Stocks (Conservative)",
        description=(
            "High-quality, low-volatility stocks with strong fundamentals and uptrends. "
            "Based on Avanza conservative screening strategy."
        ),
        filters=[
            {"field": "return_on_equity", "operator": "greater", "value": 12},
            {"field": "market_cap_basic", "operator": "greater", "value": 200_000_000},
            {"field": "price_earnings_ttm", "operator": "less", "value": 40},
            {"field": "price_sales_ratio", "operator": "less", "value": 8},
            {"field": "debt_to_equity", "operator": "less", "value": 0.7},
            {"field": "after_tax_margin", "operator": "greater", "value": 10},
            {"field": "RSI", "operator": "in_range", "value": [45, 65]},
            {"field": "Volatility.M", "operator": "less_or_equal", "value": 3},
            {"field": "SMA50", "operator": "greater", "value": "SMA200"},
        ],
        markets=["america"],
        sort_by="market_cap_basic",
        sort_order="desc",
    ),
    "value_stocks": Preset(
        name="Value Stocks",
        description="Undervalued stocks with low P/E and P/B ratios",
        filters=[
            {"field": "price_earnings_ttm", "operator": "less", "value": 15},
            {"field": "price_book_fq", "operator": "less", "value": 1.5},
            {"field": "market_cap_basic", "operator": "greater", "value": 1_000_000_000},
            {"field": "return_on_equity", "operator": "greater", "value": 10},
        ],
        markets=["america"],
        sort_by="price_earnings_ttm",
        sort_order="asc",
    ),
    "dividend_stocks": Preset(
        name="Dividend Stocks",
        description="High dividend yield with consistent payout",
        filters=[
            {"field": "dividend_yield_recent", "operator": "greater", "value": 3},
            {"field": "market_cap_basic", "operator": "greater", "value": 5_000_000_000},
            {"field": "debt_to_equity", "operator": "less", "value": 1.0},
        ],
        markets=["america"],
        sort_by="dividend_yield_recent",
        sort_order="desc",
    ),
    "momentum_stocks": Preset(
        name="Momentum Stocks",
        description="Stocks with strong recent performance and technical momentum",
        filters=[
            {"field": "RSI", "operator": "in_range", "value": [50, 70]},
            {"field": "SMA50", "operator": "greater", "value": "SMA200"},
            {"field": "Perf.1M", "operator": "greater", "value": 5},
            {"field": "volume", "operator": "greater", "value": 1_000_000},
        ],
        markets=["america"],
        sort_by="Perf.1M",
        sort_order="desc",
    ),
    "growth_stocks": Preset(
        name="Growth Stocks",
        description="High-growth companies with strong revenue and earnings expansion",
        filters=[
            {"field": "return_on_equity", "operator": "greater", "value": 20},
            {"field": "operating_margin", "operator": "greater", "value": 15},
            {"field": "market_cap_basic", "operator": "greater", "value": 1_000_000_000},
        ],
        markets=["america"],
        sort_by="return_on_equity",
        sort_order="desc",
    ),
    "quality_growth_screener": Preset(
        name="Quality Growth Screener",
        description=(
            "Profitable, growing, conservatively financed companies on major US exchanges "
            "in a healthy uptrend. Returns extended columns for deeper analysis."
        ),
        filters=[
            {"field": "return_on_equity_fq", "operator": "greater", "value": 15},
            {"field": "net_margin_fy", "operator": "greater", "value": 12},
            {"field": "debt_to_equity_fy", "operator": "less", "value": 0.6},
            {"field": "total_revenue_yoy_growth_ttm", "operator": "greater", "value": 8},
            {"field": "gross_margin_ttm", "operator": "greater", "value": 30},
            {"field": "return_on_invested_capital_fq", "operator": "greater", "value": 10},
            {"field": "current_ratio", "operator": "greater", "value": 1.2},
            {"field": "free_cash_flow_ttm", "operator": "greater", "value": 0},
            {"field": "market_cap_basic", "operator": "greater", "value": 2_000_000_000},
            {"field": "price_earnings_ttm", "operator": "in_range", "value": [5, 35]},
            {"field": "average_volume_90d_calc", "operator": "greater", "value": 500_000},
            {"field": "RSI", "operator": "in_range", "value": [45, 62]},
            {"field": "SMA50", "operator": "greater", "value": "SMA200"},
            {"field": "close", "operator": "greater", "value": "SMA200"},
            {"field": "exchange", "operator": "in_range", "value": ["NASDAQ", "NYSE", "CBOE"]},
            {"field": "is_primary", "operator": "equal", "value": True},
        ],
        markets=["america"],
        sort_by="market_cap_basic",
        sort_order="desc",
        columns=list(EXTENDED_COLUMNS),
    ),
    "market_indexes": Preset(
        name="Market Indexes",
        description=(
            "Major equity indexes for market regime checks (drawdown from all-time "
            "high, 52-week range). Use with lookup_symbols."
        ),
        symbols=["TVC:SPX", "TVC:DJI", "TVC:NDQ", "TVC:RUT", "TVC:VIX", "OMXSTO:OMXS30"],
        columns=list(LOOKUP_DEFAULT_COLUMNS),
    ),
}


class PresetsTool:
    def get_preset(self, preset_name: str) -> Optional[Dict[str, Any]]:
        preset = PRESETS.get(preset_name)
        if preset is None:
            return None
        return preset.model_dump(mode="json", exclude_none=True)

    def list_presets(self) -> List[Dict[str, str]]:
        return [
            {"name": key, "description": preset.description}
            for key, preset in PRESETS.items()
        ]
