"""
TradingView Screener MCP Server

Screens stocks, ETFs, forex pairs and cryptocurrencies through the
TradingView scanner, with filter translation, rate limiting and caching.
"""

__version__ = "1.0.0"
