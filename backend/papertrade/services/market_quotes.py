"""
Market quote storage: latest snapshot per symbol.
"""

from decimal import Decimal
from typing import Iterable, List, Optional
from datetime import datetime, timezone
import logging

from sqlalchemy import select
from sqlmodel.ext.asyncio.session import AsyncSession

from papertrade.core.database import session_scope
from papertrade.models.market import MarketQuote

logger = logging.getLogger(__name__)


class MarketQuoteService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_quote(self, symbol: str) -> Optional[MarketQuote]:
        return await self.db.get(MarketQuote, symbol.upper())

    async def list_quotes(self) -> List[MarketQuote]:
        result = await self.db.execute(select(MarketQuote).order_by(MarketQuote.symbol))
        return list(result.scalars().all())

    async def upsert_quote(
        self,
        symbol: str,
        price: Decimal,
        change: Decimal,
        volume: int,
        high: Decimal,
        low: Decimal,
        commit: bool = True
    ) -> MarketQuote:
        """Insert the quote if absent, else overwrite every field"""
        symbol = symbol.upper()
        quote = await self.db.get(MarketQuote, symbol)

        if quote is None:
            quote = MarketQuote(
                symbol=symbol, price=price, change=change,
                volume=volume, high=high, low=low
            )
            self.db.add(quote)
        else:
            quote.price = price
            quote.change = change
            quote.volume = volume
            quote.high = high
            quote.low = low
            quote.updated_at = datetime.now(timezone.utc)

        if commit:
            await self.db.commit()
        return quote

    async def upsert_quotes(self, quotes: Iterable[dict]) -> None:
        for q in quotes:
            await self.upsert_quote(
                q["symbol"], q["price"], q["change"],
                q["volume"], q["high"], q["low"], commit=False
            )
        await self.db.commit()


async def store_tick(quotes: List[dict]) -> None:
    """Price feed listener: persist the latest quote for every symbol"""
    async with session_scope() as session:
        await MarketQuoteService(session).upsert_quotes(quotes)
    logger.debug(f"Stored {len(quotes)} quotes")
