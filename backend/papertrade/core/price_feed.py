import asyncio
import logging
import random
from datetime import datetime, timezone
from decimal import Decimal, ROUND_DOWN
from typing import Awaitable, Callable, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
PRICE_FLOOR = Decimal("10")
SEED_MIN = 100
SEED_SPAN = 400
MAX_STEP = 10  # deltas fall in [-MAX_STEP / 2, MAX_STEP / 2)

QuoteListener = Callable[[List[dict]], Awaitable[None]]


class PriceGenerator:
    """
    Synthetic random-walk price source for a fixed symbol universe.
    Keeps one current price per symbol in memory and, once started, moves
    every price on a fixed interval and hands the new quotes to listeners.

    Readers always see a point-in-time value: an order validated between
    two ticks uses whatever price was current when it was read.
    """

    def __init__(
        self,
        symbols: Iterable[str],
        interval: float = 2.0,
        seed: Optional[int] = None
    ):
        self.symbols = [s.upper() for s in symbols]
        self.interval = interval
        self.running = False
        self.ticks = 0

        self._rng = random.Random(seed)
        self._prices: Dict[str, Decimal] = {}
        self._changes: Dict[str, Decimal] = {}
        self._highs: Dict[str, Decimal] = {}
        self._lows: Dict[str, Decimal] = {}
        self._volumes: Dict[str, int] = {}
        self._listeners: List[QuoteListener] = []
        self._task: Optional[asyncio.Task] = None

        self._seed_prices()

    def _seed_prices(self) -> None:
        for symbol in self.symbols:
            raw = Decimal(SEED_MIN + self._rng.random() * SEED_SPAN)
            price = raw.quantize(CENT, rounding=ROUND_DOWN)
            self._prices[symbol] = price
            self._changes[symbol] = Decimal("0.00")
            self._highs[symbol] = price
            self._lows[symbol] = price
            self._volumes[symbol] = 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_price(self, symbol: str) -> Optional[Decimal]:
        return self._prices.get(symbol.upper())

    def snapshot(self) -> Dict[str, Decimal]:
        return dict(self._prices)

    def quote(self, symbol: str) -> Optional[dict]:
        symbol = symbol.upper()
        if symbol not in self._prices:
            return None
        return {
            "symbol": symbol,
            "price": self._prices[symbol],
            "change": self._changes[symbol],
            "volume": self._volumes[symbol],
            "high": self._highs[symbol],
            "low": self._lows[symbol],
            "timestamp": int(datetime.now(timezone.utc).timestamp() * 1000)
        }

    def quotes(self) -> List[dict]:
        return [self.quote(symbol) for symbol in self.symbols]

    # ------------------------------------------------------------------
    # Random walk
    # ------------------------------------------------------------------

    def tick(self) -> List[dict]:
        """Move every price once and return the resulting quotes."""
        for symbol in self.symbols:
            step = Decimal((self._rng.random() - 0.5) * MAX_STEP)
            delta = step.quantize(CENT, rounding=ROUND_DOWN)
            previous = self._prices[symbol]
            price = max(PRICE_FLOOR, previous + delta)

            self._prices[symbol] = price
            self._changes[symbol] = price - previous
            self._highs[symbol] = max(self._highs[symbol], price)
            self._lows[symbol] = min(self._lows[symbol], price)
            self._volumes[symbol] += self._rng.randint(100, 10000)

        self.ticks += 1
        return self.quotes()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def add_listener(self, listener: QuoteListener) -> None:
        self._listeners.append(listener)

    async def start(self) -> None:
        if self.running:
            return
        self.running = True
        self._task = asyncio.create_task(self._run())
        logger.info(
            f"Price feed started for {len(self.symbols)} symbols "
            f"every {self.interval}s"
        )

    async def stop(self) -> None:
        self.running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Price feed stopped")

    async def _run(self) -> None:
        while self.running:
            await asyncio.sleep(self.interval)
            quotes = self.tick()
            await self._notify(quotes)

    async def _notify(self, quotes: List[dict]) -> None:
        for listener in self._listeners:
            try:
                await listener(quotes)
            except Exception as e:
                logger.error(f"Price listener {getattr(listener, '__name__', listener)} failed: {e}")


_price_generator: Optional[PriceGenerator] = None


def init_price_generator(
    symbols: Iterable[str],
    interval: float = 2.0,
    seed: Optional[int] = None
) -> PriceGenerator:
    """Create the process-wide generator. Called once during app lifespan startup."""
    global _price_generator
    _price_generator = PriceGenerator(symbols, interval=interval, seed=seed)
    return _price_generator


def get_price_generator() -> Optional[PriceGenerator]:
    """Get the process-wide generator. Returns None if not initialized."""
    return _price_generator


async def shutdown_price_generator() -> None:
    global _price_generator
    if _price_generator:
        await _price_generator.stop()
        _price_generator = None
