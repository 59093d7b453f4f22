"""
Market data API routes
Live simulated prices, stored quotes, and tick streaming via Redis pub/sub.
"""

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, HTTPException
from sqlmodel.ext.asyncio.session import AsyncSession

from papertrade.core.database import get_session
from papertrade.core.dependencies import get_price_source
from papertrade.core.price_feed import PriceGenerator
from papertrade.core.redis import PRICE_CHANNEL, get_redis_client
from papertrade.models.market import MarketQuote, MarketQuoteResponse
from papertrade.services.market_quotes import MarketQuoteService

router = APIRouter()


@router.websocket("/ws/prices")
async def price_stream(websocket: WebSocket):
    """
    WebSocket endpoint relaying every price tick to the frontend.
    Usage: ws://localhost:8000/market/ws/prices
    """
    redis = get_redis_client()
    if not redis:
        await websocket.close(code=1011, reason="Price feed unavailable")
        return

    await websocket.accept()

    pubsub = redis.pubsub()
    await pubsub.subscribe(PRICE_CHANNEL)

    try:
        async for message in pubsub.listen():
            if message["type"] == "message":
                data = message["data"]
                if isinstance(data, bytes):
                    data = data.decode("utf-8")
                await websocket.send_text(data)
    except WebSocketDisconnect:
        pass
    finally:
        await pubsub.unsubscribe(PRICE_CHANNEL)
        await pubsub.close()


@router.get("/prices")
async def get_prices(prices: PriceGenerator = Depends(get_price_source)):
    """Current simulated price for every symbol."""
    return prices.quotes()


@router.get("/prices/{symbol}")
async def get_latest_price(
    symbol: str,
    prices: PriceGenerator = Depends(get_price_source),
):
    """Current simulated price for one symbol."""
    quote = prices.quote(symbol)
    if quote is None:
        raise HTTPException(status_code=404, detail=f"Unknown symbol: {symbol.upper()}")
    return quote


def _quote_response(quote: MarketQuote) -> MarketQuoteResponse:
    return MarketQuoteResponse(
        symbol=quote.symbol,
        price=float(quote.price),
        change=float(quote.change),
        volume=quote.volume,
        high=float(quote.high),
        low=float(quote.low),
        updated_at=quote.updated_at,
    )


@router.get("/quotes", response_model=list[MarketQuoteResponse])
async def get_stored_quotes(session: AsyncSession = Depends(get_session)):
    """Last stored quote for every symbol, ordered by symbol."""
    quotes = await MarketQuoteService(session).list_quotes()
    return [_quote_response(q) for q in quotes]


@router.get("/quotes/{symbol}", response_model=MarketQuoteResponse)
async def get_stored_quote(
    symbol: str,
    session: AsyncSession = Depends(get_session),
):
    """Last quote written by the price feed for a symbol."""
    quote = await MarketQuoteService(session).get_quote(symbol)
    if quote is None:
        raise HTTPException(status_code=404, detail=f"No quote stored for {symbol.upper()}")
    return _quote_response(quote)
