"""
Market data model: MarketQuote
Maps to: market_quotes table (one row per symbol)
"""

from sqlmodel import SQLModel, Field
from datetime import datetime, timezone
from decimal import Decimal


class MarketQuote(SQLModel, table=True):
    """Latest price snapshot for a symbol, upserted on every price tick"""
    __tablename__ = "market_quotes"

    symbol: str = Field(primary_key=True, max_length=20)
    price: Decimal = Field(max_digits=20, decimal_places=8)
    change: Decimal = Field(default=Decimal("0"), max_digits=20, decimal_places=8)
    volume: int = Field(default=0)
    high: Decimal = Field(max_digits=20, decimal_places=8)
    low: Decimal = Field(max_digits=20, decimal_places=8)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class MarketQuoteResponse(SQLModel):
    symbol: str
    price: float
    change: float
    volume: int
    high: float
    low: float
    updated_at: datetime
