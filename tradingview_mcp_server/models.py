"""
Pydantic models for the TradingView screener MCP server
Typed shapes for the scanner wire format, field metadata and preset bundles
"""

from pydantic import BaseModel, Field, ConfigDict
from typing import Any, Dict, List, Optional, Tuple
from enum import Enum


# ============================================================================
# ENUMS
# ============================================================================

class SortOrder(str, Enum):
    """Sort direction accepted by the scanner"""
    ASC = "asc"
    DESC = "desc"


class FieldCategory(str, Enum):
    """Field catalog categories"""
    FUNDAMENTAL = "fundamental"
    TECHNICAL = "technical"
    PERFORMANCE = "performance"


# ============================================================================
# SCANNER QUERY
# ============================================================================

class Predicate(BaseModel):
    """Provider-facing form of one caller filter"""
    model_config = ConfigDict(frozen=True)

    left: str = Field(..., description="Field being filtered")
    operation: str = Field(..., description="Scanner operation code (e.g. egreater)")
    right: Any = Field(..., description="Comparison value, passed through unchanged")


class SortSpec(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sort_by: str = Field(..., alias="sortBy")
    sort_order: SortOrder = Field(SortOrder.DESC, alias="sortOrder")


class SymbolsQuery(BaseModel):
    types: List[str] = Field(default_factory=list)


class SymbolsClause(BaseModel):
    """Explicit ticker scoping; an empty ticker list means no scoping"""
    query: SymbolsQuery = Field(default_factory=SymbolsQuery)
    tickers: List[str] = Field(default_factory=list)


class ScreenerQuery(BaseModel):
    """Body of a POST to a /<market>/scan endpoint"""
    model_config = ConfigDict(populate_by_name=True)

    filter: List[Predicate] = Field(default_factory=list)
    columns: List[str] = Field(..., description="Requested columns; row values follow this order")
    sort: Optional[SortSpec] = None
    range: Tuple[int, int] = Field(..., description="[start, end) row range")
    options: Dict[str, Any] = Field(default_factory=lambda: {"lang": "en"})
    symbols: SymbolsClause = Field(default_factory=SymbolsClause)
    markets: Optional[List[str]] = None

    def to_payload(self) -> Dict[str, Any]:
        """Serialize to the scanner JSON body (camelCase, no null members)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ============================================================================
# SCANNER RESPONSE
# ============================================================================

class ScreenerRow(BaseModel):
    """One result row; values are positional, parallel to the requested columns"""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="s", description="Exchange-qualified symbol, e.g. NASDAQ:AAPL")
    values: List[Any] = Field(default_factory=list, alias="d")


class ScreenerResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_count: int = Field(0, alias="totalCount")
    data: List[ScreenerRow] = Field(default_factory=list)


# ============================================================================
# STATIC METADATA
# ============================================================================

class FieldMetadata(BaseModel):
    name: str
    label: str
    category: FieldCategory
    type: str = Field(..., description="number, percent, currency, string or boolean")
    description: Optional[str] = None


class Preset(BaseModel):
    """Named bundle of screen arguments"""
    name: str
    description: str
    filters: List[Dict[str, Any]] = Field(default_factory=list)
    markets: Optional[List[str]] = None
    sort_by: Optional[str] = None
    sort_order: Optional[SortOrder] = None
    columns: Optional[List[str]] = None
    symbols: Optional[List[str]] = Field(None, description="Tickers for lookup_symbols presets")
