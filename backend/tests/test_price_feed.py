import asyncio
from decimal import Decimal

from papertrade.core.price_feed import PRICE_FLOOR, PriceGenerator

SYMBOLS = ["AAPL", "GOOGL", "MSFT", "TSLA", "AMZN", "NVDA", "META"]


def test_seed_prices_fall_in_range():
    feed = PriceGenerator(SYMBOLS, seed=1)
    for symbol, price in feed.snapshot().items():
        assert Decimal("100") <= price < Decimal("500"), symbol


def test_same_seed_gives_same_walk():
    a = PriceGenerator(SYMBOLS, seed=7)
    b = PriceGenerator(SYMBOLS, seed=7)
    for _ in range(5):
        a.tick()
        b.tick()
    assert a.snapshot() == b.snapshot()


def test_tick_moves_each_price_by_less_than_five():
    feed = PriceGenerator(SYMBOLS, seed=3)
    for _ in range(50):
        before = feed.snapshot()
        feed.tick()
        for symbol, price in feed.snapshot().items():
            assert abs(price - before[symbol]) <= Decimal("5")
            assert price == price.quantize(Decimal("0.01"))


def test_prices_never_drop_below_floor():
    feed = PriceGenerator(["AAPL"], seed=11)
    feed._prices["AAPL"] = PRICE_FLOOR
    for _ in range(500):
        feed.tick()
        assert feed.get_price("AAPL") >= PRICE_FLOOR


def test_quote_tracks_change_high_low_and_volume():
    feed = PriceGenerator(["AAPL"], seed=5)
    start = feed.get_price("AAPL")
    seen = [start]
    for _ in range(20):
        quote = feed.tick()[0]
        seen.append(quote["price"])

    quote = feed.quote("aapl")
    assert quote["symbol"] == "AAPL"
    assert quote["high"] == max(seen)
    assert quote["low"] == min(seen)
    assert quote["change"] == seen[-1] - seen[-2]
    assert quote["volume"] > 0


def test_unknown_symbol_has_no_price():
    feed = PriceGenerator(SYMBOLS, seed=1)
    assert feed.get_price("DOGE") is None
    assert feed.quote("DOGE") is None


async def test_start_stop_notifies_listeners():
    feed = PriceGenerator(["AAPL", "MSFT"], interval=0.01, seed=2)
    received = []

    async def broken(quotes):
        raise RuntimeError("listener down")

    async def collect(quotes):
        received.append(quotes)

    feed.add_listener(broken)
    feed.add_listener(collect)

    await feed.start()
    assert feed.running
    await asyncio.sleep(0.1)
    await feed.stop()

    assert not feed.running
    assert received
    assert {q["symbol"] for q in received[0]} == {"AAPL", "MSFT"}

    ticks = feed.ticks
    await asyncio.sleep(0.05)
    assert feed.ticks == ticks
