"""
Trading API routes
Portfolio viewing, order placement, and trade history.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlmodel.ext.asyncio.session import AsyncSession
import logging

from papertrade.core.config import settings
from papertrade.core.database import get_session
from papertrade.core.dependencies import get_current_user, get_price_source
from papertrade.core.price_feed import PriceGenerator
from papertrade.core.security import limiter
from papertrade.models.user import User
from papertrade.models.trade import (
    OrderCreate,
    OrderResponse,
    Trade,
    TradeHistoryItem,
    TradeStatsResponse,
)
from papertrade.services.exceptions import (
    OrderRejectedError,
    PortfolioNotFoundError,
    PriceUnavailableError,
    TradeExecutionError,
    UnauthorizedError,
)
from papertrade.services.portfolio_calculator import PortfolioCalculator
from papertrade.services.portfolio_store import PortfolioStore
from papertrade.services.trade_executor import TradeExecutor
from papertrade.services.trade_recorder import TradeRecorder

logger = logging.getLogger(__name__)

router = APIRouter()


def _history_item(trade: Trade) -> TradeHistoryItem:
    return TradeHistoryItem(
        id=trade.id,
        symbol=trade.symbol,
        side=trade.side,
        quantity=trade.quantity,
        price=float(trade.price),
        algorithm=trade.algorithm,
        profit=float(trade.profit),
        status=trade.status,
        executed_at=trade.executed_at,
    )


# ============================================================================
# PORTFOLIO
# ============================================================================

@router.get("/portfolio")
@limiter.limit("60/minute")
async def get_portfolio(
    request: Request,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    prices: PriceGenerator = Depends(get_price_source),
):
    """Get user's portfolio revalued at current prices (preview if not created yet)."""
    snapshot = await PortfolioStore(session).get_or_create_portfolio(current_user.id)
    calculator = PortfolioCalculator(prices.get_price, settings.STARTING_CASH)
    return calculator.get_current_value(snapshot)


@router.post("/portfolio", status_code=status.HTTP_201_CREATED)
async def create_portfolio(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Create the user's portfolio with the starting cash. Idempotent."""
    portfolio_id = await PortfolioStore(session).create_portfolio(current_user.id)
    return {"portfolio_id": str(portfolio_id)}


@router.post("/portfolio/reset")
async def reset_portfolio(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    prices: PriceGenerator = Depends(get_price_source),
):
    """Restore starting cash and drop all holdings. Trade history is kept."""
    try:
        snapshot = await PortfolioStore(session).reset_portfolio(current_user.id)
    except PortfolioNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    calculator = PortfolioCalculator(prices.get_price, settings.STARTING_CASH)
    return calculator.get_current_value(snapshot)


# ============================================================================
# ORDER PLACEMENT
# ============================================================================

@router.post("/order", response_model=OrderResponse)
@limiter.limit(settings.RATE_LIMIT_ORDERS)
async def place_order(
    request: Request,
    order: OrderCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    prices: PriceGenerator = Depends(get_price_source),
):
    """Place a BUY or SELL market order at the current simulated price."""
    executor = TradeExecutor(session, prices.get_price)

    try:
        result = await executor.execute_order(
            current_user.id,
            order.symbol,
            order.side,
            order.quantity,
            algorithm=order.algorithm,
        )
    except UnauthorizedError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    except OrderRejectedError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except PortfolioNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except PriceUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except TradeExecutionError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Trade execution failed"
        )

    return OrderResponse(
        success=True,
        message=(
            f"{result.side.value} order executed: {result.quantity} "
            f"{result.symbol} @ ${float(result.price):,.2f}"
        ),
        trade_id=result.trade_id,
        price=float(result.price),
        cash=float(result.portfolio.cash),
        total_value=float(result.portfolio.total_value),
    )


# ============================================================================
# TRADE HISTORY
# ============================================================================

@router.get("/trades/history", response_model=list[TradeHistoryItem])
@limiter.limit("60/minute")
async def get_trade_history(
    request: Request,
    limit: int = 10,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Get recent trades for the current user, newest first."""
    limit = max(1, min(limit, 100))
    trades = await TradeRecorder(session).list_trades(current_user.id, limit=limit)
    return [_history_item(t) for t in trades]


@router.get("/trades/stats", response_model=TradeStatsResponse)
@limiter.limit("60/minute")
async def get_trade_stats(
    request: Request,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    stats = await TradeRecorder(session).get_stats(current_user.id)
    return TradeStatsResponse(
        total_trades=stats["total_trades"],
        total_profit=float(stats["total_profit"]),
        win_rate=stats["win_rate"],
        recent_trades=[_history_item(t) for t in stats["recent_trades"]],
    )
