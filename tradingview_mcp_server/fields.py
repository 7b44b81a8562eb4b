"""
Field catalog for screening filters and result columns.
Read-only metadata: name, label, category, value type and description.
"""
from typing import Any, Dict, List, Optional

from .models import FieldMetadata


def _field(name: str, label: str, category: str, type_: str, description: str) -> FieldMetadata:
    return FieldMetadata(name=name, label=label, category=category, type=type_, description=description)


STOCK_FIELDS: List[FieldMetadata] = [
    # Fundamental: valuation
    _field("market_cap_basic", "Market Capitalization", "fundamental", "currency", "Total market value of company"),
    _field("price_earnings_ttm", "P/E Ratio (TTM)", "fundamental", "number", "Price to earnings ratio"),
    _field("price_earnings_growth_ttm", "PEG Ratio (TTM)", "fundamental", "number", "P/E ratio divided by earnings growth rate"),
    _field("price_book_fq", "P/B Ratio", "fundamental", "number", "Price to book value ratio"),
    _field("price_sales_ratio", "P/S Ratio", "fundamental", "number", "Price to sales ratio"),
    _field("price_sales_current", "P/S Ratio (Current)", "fundamental", "number", "Price to sales ratio using current price"),
    _field("enterprise_value_current", "Enterprise Value", "fundamental", "currency", "Market cap plus debt minus cash"),
    _field("enterprise_value_to_ebit_ttm", "EV/EBIT (TTM)", "fundamental", "number", "Enterprise value relative to operating earnings"),
    _field("enterprise_value_ebitda_ttm", "EV/EBITDA (TTM)", "fundamental", "number", "Enterprise value relative to EBITDA"),
    _field("ebitda", "EBITDA", "fundamental", "currency", "Earnings before interest, taxes, depreciation and amortization"),

    # Fundamental: returns
    _field("return_on_equity", "Return on Equity (TTM)", "fundamental", "percent", "Profitability relative to shareholder equity"),
    _field("return_on_equity_fq", "Return on Equity (FQ)", "fundamental", "percent", "Return on equity for the most recent fiscal quarter"),
    _field("return_on_assets", "Return on Assets (TTM)", "fundamental", "percent", "Net income relative to total assets"),
    _field("return_on_assets_fq", "Return on Assets (FQ)", "fundamental", "percent", "Return on assets for the most recent fiscal quarter"),
    _field("return_on_invested_capital_fq", "ROIC (FQ)", "fundamental", "percent", "Return on invested capital for the most recent fiscal quarter"),

    # Fundamental: margins
    _field("gross_margin", "Gross Margin", "fundamental", "percent", "Gross profit as percentage of revenue"),
    _field("gross_margin_ttm", "Gross Margin (TTM)", "fundamental", "percent", "Trailing twelve month gross margin"),
    _field("operating_margin", "Operating Margin", "fundamental", "percent", "Operating income as percentage of revenue"),
    _field("operating_margin_ttm", "Operating Margin (TTM)", "fundamental", "percent", "Trailing twelve month operating margin"),
    _field("pre_tax_margin_ttm", "Pre-Tax Margin (TTM)", "fundamental", "percent", "Income before taxes as percentage of revenue"),
    _field("after_tax_margin", "After-Tax Margin", "fundamental", "percent", "Profit margin after taxes"),
    _field("net_margin_ttm", "Net Margin (TTM)", "fundamental", "percent", "Net income as percentage of revenue"),
    _field("net_margin_fy", "Net Margin (FY)", "fundamental", "percent", "Net margin for the most recent fiscal year"),
    _field("free_cash_flow_margin_ttm", "FCF Margin (TTM)", "fundamental", "percent", "Free cash flow as percentage of revenue"),

    # Fundamental: operating expense ratios
    _field("research_and_dev_ratio_ttm", "R&D Ratio (TTM)", "fundamental", "percent", "Research and development expense as percentage of revenue"),
    _field("sell_gen_admin_exp_other_ratio_ttm", "SG&A Ratio (TTM)", "fundamental", "percent", "Selling, general and administrative expense as percentage of revenue"),

    # Fundamental: balance sheet
    _field("debt_to_equity", "Debt/Equity Ratio", "fundamental", "number", "Total debt relative to shareholder equity"),
    _field("debt_to_equity_fy", "Debt/Equity Ratio (FY)", "fundamental", "number", "Debt to equity for the most recent fiscal year"),
    _field("total_assets", "Total Assets", "fundamental", "currency", "Total assets on the balance sheet"),
    _field("total_debt", "Total Debt", "fundamental", "currency", "Short and long term debt"),
    _field("current_ratio", "Current Ratio", "fundamental", "number", "Current assets relative to current liabilities"),

    # Fundamental: income and growth
    _field("total_revenue", "Total Revenue", "fundamental", "currency", "Total company revenue"),
    _field("total_revenue_yoy_growth_ttm", "Revenue Growth YoY (TTM)", "fundamental", "percent", "Year-over-year trailing revenue growth"),
    _field("revenue_per_share_ttm", "Revenue per Share (TTM)", "fundamental", "currency", "Trailing revenue divided by shares outstanding"),
    _field("net_income", "Net Income", "fundamental", "currency", "Total net profit"),
    _field("earnings_per_share_diluted_ttm", "EPS (Diluted, TTM)", "fundamental", "currency", "Earnings per share"),
    _field("earnings_per_share_diluted_yoy_growth_ttm", "EPS Growth YoY (TTM)", "fundamental", "percent", "Year-over-year diluted EPS growth"),
    _field("free_cash_flow_ttm", "Free Cash Flow (TTM)", "fundamental", "currency", "Operating cash flow minus capital expenditures"),

    # Fundamental: dividends
    _field("dividend_yield_recent", "Dividend Yield", "fundamental", "percent", "Annual dividend as percentage of price"),
    _field("dividends_yield_current", "Dividend Yield (Current)", "fundamental", "percent", "Indicated dividend yield at the current price"),
    _field("dividend_payout_ratio_ttm", "Payout Ratio (TTM)", "fundamental", "percent", "Dividends as percentage of earnings"),

    # Technical
    _field("RSI", "RSI (14)", "technical", "number", "Relative Strength Index momentum oscillator"),
    _field("SMA50", "SMA 50", "technical", "number", "50-day Simple Moving Average"),
    _field("SMA200", "SMA 200", "technical", "number", "200-day Simple Moving Average"),
    _field("EMA10", "EMA 10", "technical", "number", "10-day Exponential Moving Average"),
    _field("Volatility.M", "Volatility (Monthly)", "technical", "percent", "1-month price volatility"),
    _field("ATR", "Average True Range", "technical", "number", "Measure of volatility"),
    _field("ADX", "ADX", "technical", "number", "Average Directional Index"),
    _field("beta_1_year", "Beta (1Y)", "technical", "number", "1-year beta: volatility relative to the market"),
    _field("beta_5_year", "Beta (5Y)", "technical", "number", "5-year beta: volatility relative to the market"),

    # Performance
    _field("close", "Current Price", "performance", "currency", "Current stock price"),
    _field("change", "Change %", "performance", "percent", "Daily price change percentage"),
    _field("volume", "Volume", "performance", "number", "Trading volume"),
    _field("average_volume_90d_calc", "Average Volume (90D)", "performance", "number", "90-day average trading volume"),
    _field("Perf.W", "Weekly Performance", "performance", "percent", "1-week price change"),
    _field("Perf.1M", "Monthly Performance", "performance", "percent", "1-month price change"),
    _field("Perf.3M", "3-Month Performance", "performance", "percent", "3-month price change"),
    _field("Perf.Y", "Yearly Performance", "performance", "percent", "1-year price change"),
    _field("Perf.YTD", "YTD Performance", "performance", "percent", "Year-to-date price change"),
    _field("exchange", "Exchange", "performance", "string", "Listing exchange (e.g., NASDAQ, NYSE, CBOE)"),
    _field("is_primary", "Primary Listing", "performance", "boolean", "True for the primary listing of a security"),
]

FOREX_FIELDS: List[FieldMetadata] = [
    _field("close", "Rate", "performance", "number", "Current exchange rate"),
    _field("change", "Change %", "performance", "percent", "Daily rate change percentage"),
    _field("volume", "Volume", "performance", "number", "Trading volume"),
    _field("Perf.W", "Weekly Performance", "performance", "percent", "1-week rate change"),
    _field("Perf.1M", "Monthly Performance", "performance", "percent", "1-month rate change"),
    _field("RSI", "RSI (14)", "technical", "number", "Relative Strength Index momentum oscillator"),
    _field("SMA50", "SMA 50", "technical", "number", "50-day Simple Moving Average"),
    _field("SMA200", "SMA 200", "technical", "number", "200-day Simple Moving Average"),
    _field("ATR", "Average True Range", "technical", "number", "Measure of volatility"),
    _field("Volatility.D", "Volatility (Daily)", "technical", "percent", "1-day rate volatility"),
]

CRYPTO_FIELDS: List[FieldMetadata] = [
    _field("market_cap_basic", "Market Capitalization", "fundamental", "currency", "Circulating supply times price"),
    _field("close", "Current Price", "performance", "currency", "Current coin price"),
    _field("change", "Change %", "performance", "percent", "Daily price change percentage"),
    _field("volume", "Volume", "performance", "number", "Trading volume"),
    _field("Perf.W", "Weekly Performance", "performance", "percent", "1-week price change"),
    _field("Perf.1M", "Monthly Performance", "performance", "percent", "1-month price change"),
    _field("RSI", "RSI (14)", "technical", "number", "Relative Strength Index momentum oscillator"),
    _field("SMA50", "SMA 50", "technical", "number", "50-day Simple Moving Average"),
    _field("Volatility.D", "Volatility (Daily)", "technical", "percent", "1-day price volatility"),
]

FIELD_CATALOG: Dict[str, List[FieldMetadata]] = {
    "stock": STOCK_FIELDS,
    "forex": FOREX_FIELDS,
    "crypto": CRYPTO_FIELDS,
}


class FieldsTool:
    """Lists fields available for filtering, sorting and display."""

    def list_fields(self, asset_type: str = "stock", category: Optional[str] = None) -> Dict[str, Any]:
        fields = FIELD_CATALOG.get(asset_type)
        if fields is None:
            return {
                "message": f"Unknown asset type: {asset_type}. Available: {', '.join(FIELD_CATALOG)}",
                "fields": [],
            }

        if category:
            fields = [f for f in fields if f.category.value == category]

        return {
            "asset_type": asset_type,
            "category": category or "all",
            "field_count": len(fields),
            "fields": [f.model_dump(mode="json") for f in fields],
        }
