"""
Holdings ledger: applies an accepted order to a holdings list using
volume-weighted average cost.
"""

from decimal import Decimal, ROUND_HALF_EVEN
from typing import List, Sequence

from papertrade.models.portfolio import Holding
from papertrade.models.trade import TradeSide
from papertrade.services.exceptions import InsufficientHoldingsError

PRICE_QUANT = Decimal("0.00000001")


def weighted_average_price(
    old_avg: Decimal, old_qty: int, price: Decimal, qty: int
) -> Decimal:
    total_cost = old_avg * old_qty + price * qty
    avg = total_cost / (old_qty + qty)
    return avg.quantize(PRICE_QUANT, rounding=ROUND_HALF_EVEN)


def apply_order(
    holdings: Sequence[Holding],
    symbol: str,
    side: TradeSide,
    quantity: int,
    price: Decimal
) -> List[Holding]:
    """
    Return the holdings after the order. The input sequence is not modified.

    BUY appends a new position or re-averages the existing one in place.
    SELL keeps the average cost and drops the position when it reaches 0.
    """
    updated = [h.model_copy() for h in holdings]
    index = next((i for i, h in enumerate(updated) if h.symbol == symbol), None)

    if side == TradeSide.BUY:
        if index is None:
            updated.append(Holding(symbol=symbol, quantity=quantity, avg_price=price))
        else:
            existing = updated[index]
            updated[index] = Holding(
                symbol=symbol,
                quantity=existing.quantity + quantity,
                avg_price=weighted_average_price(
                    existing.avg_price, existing.quantity, price, quantity
                ),
            )
        return updated

    if index is None or updated[index].quantity < quantity:
        raise InsufficientHoldingsError()

    remaining = updated[index].quantity - quantity
    if remaining == 0:
        del updated[index]
    else:
        updated[index] = Holding(
            symbol=symbol,
            quantity=remaining,
            avg_price=updated[index].avg_price,
        )
    return updated
