from decimal import Decimal

from papertrade.core.price_feed import PriceGenerator
from papertrade.services.market_quotes import MarketQuoteService


async def test_get_quote_absent(session):
    assert await MarketQuoteService(session).get_quote("AAPL") is None


async def test_upsert_inserts_then_overwrites_every_field(session):
    service = MarketQuoteService(session)
    await service.upsert_quote("aapl", Decimal("150"), Decimal("1.5"), 1000, Decimal("151"), Decimal("149"))
    await service.upsert_quote("AAPL", Decimal("148"), Decimal("-2"), 2500, Decimal("152"), Decimal("147"))

    quotes = await service.list_quotes()
    assert len(quotes) == 1
    quote = quotes[0]
    assert quote.symbol == "AAPL"
    assert quote.price == Decimal("148")
    assert quote.change == Decimal("-2")
    assert quote.volume == 2500
    assert quote.high == Decimal("152")
    assert quote.low == Decimal("147")


async def test_upsert_quotes_from_price_tick(session):
    feed = PriceGenerator(["AAPL", "MSFT"], seed=9)
    quotes = feed.tick()

    service = MarketQuoteService(session)
    await service.upsert_quotes(quotes)

    stored = {q.symbol: q for q in await service.list_quotes()}
    assert set(stored) == {"AAPL", "MSFT"}
    assert stored["MSFT"].price == feed.get_price("MSFT")
