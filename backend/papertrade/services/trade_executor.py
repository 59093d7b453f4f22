"""
Trade Execution Service

Runs one order end to end: price lookup, validation, holdings update,
revaluation, then the trade record and the portfolio snapshot written in
a single database transaction.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Optional
from uuid import UUID
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from papertrade.core.config import settings
from papertrade.models.portfolio import PortfolioSnapshot
from papertrade.models.trade import TradeSide
from papertrade.services.exceptions import (
    OrderRejectedError,
    PortfolioNotFoundError,
    PriceUnavailableError,
    TradeExecutionError,
    UnauthorizedError,
)
from papertrade.services.holdings_ledger import apply_order
from papertrade.services.order_validator import validate_order
from papertrade.services.portfolio_calculator import compute_total_value
from papertrade.services.portfolio_store import PortfolioStore, user_lock
from papertrade.services.trade_recorder import TradeRecorder

logger = logging.getLogger(__name__)

PriceLookup = Callable[[str], Optional[Decimal]]


class ExecutionState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    REJECTED = "rejected"
    APPLYING = "applying"
    RECORDING = "recording"


@dataclass
class ExecutionResult:
    trade_id: int
    symbol: str
    side: TradeSide
    quantity: int
    price: Decimal
    profit: Decimal
    algorithm: str
    portfolio: PortfolioSnapshot


class TradeExecutor:
    """
    Core trading engine for executing simulated trades.

    CRITICAL OPERATIONS:
    1. Read the current price from the price feed
    2. Validate cash/holdings against the stored portfolio
    3. Apply the order to holdings and revalue the portfolio
    4. Record the trade and persist the portfolio in one commit

    The algorithm label is stored with the trade for display and has no
    effect on execution.
    """

    def __init__(
        self,
        db: AsyncSession,
        price_lookup: PriceLookup,
        track_realized_profit: Optional[bool] = None
    ):
        self.db = db
        self.price_lookup = price_lookup
        self.track_realized_profit = (
            track_realized_profit
            if track_realized_profit is not None
            else settings.TRACK_REALIZED_PROFIT
        )
        self.store = PortfolioStore(db)
        self.recorder = TradeRecorder(db)
        self.state = ExecutionState.IDLE

    async def execute_order(
        self,
        user_id: UUID,
        symbol: str,
        side: Any,
        quantity: Any,
        algorithm: str = "heap"
    ) -> ExecutionResult:
        if user_id is None:
            raise UnauthorizedError()

        symbol = symbol.upper()
        price = self._get_current_price(symbol)

        # Validate and write under one lock so the check sees committed state
        async with user_lock(user_id):
            return await self._execute_locked(user_id, symbol, side, quantity, price, algorithm)

    async def _execute_locked(
        self,
        user_id: UUID,
        symbol: str,
        side: Any,
        quantity: Any,
        price: Decimal,
        algorithm: str
    ) -> ExecutionResult:
        self.state = ExecutionState.VALIDATING
        try:
            portfolio = await self.store.get_or_create_portfolio(user_id, for_update=True)
            if not portfolio.persisted:
                raise PortfolioNotFoundError()
            trade_side, qty = validate_order(portfolio, symbol, side, quantity, price)
        except (OrderRejectedError, PortfolioNotFoundError) as e:
            self.state = ExecutionState.REJECTED
            logger.info(f"Order rejected for user_id={user_id}: {symbol} {side} {quantity}: {e}")
            await self.db.rollback()
            self.state = ExecutionState.IDLE
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            self.state = ExecutionState.IDLE
            logger.error(f"Portfolio read failed for user_id={user_id}: {str(e)}")
            raise TradeExecutionError(f"Failed to load portfolio: {str(e)}") from e

        self.state = ExecutionState.APPLYING
        profit = self._realized_profit(portfolio, symbol, trade_side, qty, price)
        new_holdings = apply_order(portfolio.holdings, symbol, trade_side, qty, price)

        cost = price * qty
        new_cash = portfolio.cash - cost if trade_side == TradeSide.BUY else portfolio.cash + cost
        total_value = compute_total_value(new_cash, new_holdings, self.price_lookup)

        self.state = ExecutionState.RECORDING
        try:
            trade_id = await self.recorder.record_trade(
                user_id, symbol, trade_side, qty, price, algorithm,
                profit=profit, commit=False
            )
            await self.store.persist_portfolio(
                user_id, new_cash, total_value, new_holdings, commit=False
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Trade execution failed: {str(e)}")
            raise TradeExecutionError(f"Failed to execute trade: {str(e)}") from e
        finally:
            self.state = ExecutionState.IDLE

        logger.info(
            f"Executed {trade_side.value} {qty} {symbol} @ {price} "
            f"for user_id={user_id} (trade_id={trade_id})"
        )

        return ExecutionResult(
            trade_id=trade_id,
            symbol=symbol,
            side=trade_side,
            quantity=qty,
            price=price,
            profit=profit,
            algorithm=algorithm,
            portfolio=PortfolioSnapshot(
                user_id=user_id,
                cash=new_cash,
                total_value=total_value,
                holdings=new_holdings,
                persisted=True
            )
        )

    def _get_current_price(self, symbol: str) -> Decimal:
        price = self.price_lookup(symbol)
        if price is None:
            raise PriceUnavailableError(f"No price available for {symbol}")
        return price

    def _realized_profit(
        self,
        portfolio: PortfolioSnapshot,
        symbol: str,
        side: TradeSide,
        quantity: int,
        price: Decimal
    ) -> Decimal:
        """(price - average cost) * quantity on SELL, 0 otherwise"""
        if not self.track_realized_profit or side != TradeSide.SELL:
            return Decimal("0")
        holding = portfolio.find_holding(symbol)
        return (price - holding.avg_price) * quantity
