"""
Trade Recorder Service

Append-only log of executed trades per user and the aggregate statistics
shown on the dashboard.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy import select
from sqlmodel.ext.asyncio.session import AsyncSession

from papertrade.core.config import settings
from papertrade.models.trade import Trade, TradeSide, TradeStatus
from papertrade.services.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)


class TradeRecorder:

    def __init__(self, db: AsyncSession, recent_limit: Optional[int] = None):
        self.db = db
        self.recent_limit = (
            recent_limit if recent_limit is not None else settings.RECENT_TRADES_LIMIT
        )

    async def record_trade(
        self,
        user_id: UUID,
        symbol: str,
        side: TradeSide,
        quantity: int,
        price: Decimal,
        algorithm: str,
        profit: Decimal = Decimal("0"),
        commit: bool = True
    ) -> int:
        if user_id is None:
            raise UnauthorizedError()

        trade = Trade(
            user_id=user_id,
            symbol=symbol,
            side=TradeSide(side).value,
            quantity=quantity,
            price=price,
            algorithm=algorithm,
            profit=profit,
            status=TradeStatus.EXECUTED.value
        )
        self.db.add(trade)
        await self.db.flush()

        if commit:
            await self.db.commit()

        return trade.id

    async def list_trades(self, user_id: UUID, limit: Optional[int] = None) -> List[Trade]:
        """User's trades, newest first"""
        stmt = (
            select(Trade)
            .where(Trade.user_id == user_id)
            .order_by(Trade.id.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_stats(self, user_id: UUID) -> Dict[str, Any]:
        trades = await self.list_trades(user_id)

        total_trades = len(trades)
        total_profit = sum((t.profit for t in trades), Decimal("0"))
        winning = sum(1 for t in trades if t.profit > 0)
        # max() keeps an empty history at a 0% win rate
        win_rate = winning / max(total_trades, 1) * 100

        return {
            "total_trades": total_trades,
            "total_profit": total_profit,
            "win_rate": win_rate,
            "recent_trades": trades[:self.recent_limit]
        }
