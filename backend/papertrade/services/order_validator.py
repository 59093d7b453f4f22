"""
Order validation against a portfolio snapshot.

Orders are all-or-nothing: either the whole quantity can be filled at the
given price or the order is rejected with a specific reason.
"""

from decimal import Decimal
from typing import Any

from papertrade.models.portfolio import PortfolioSnapshot
from papertrade.models.trade import TradeSide
from papertrade.services.exceptions import (
    InsufficientBalanceError,
    InsufficientHoldingsError,
    InvalidQuantityError,
    InvalidSideError,
)


def normalize_side(side: Any) -> TradeSide:
    try:
        return TradeSide(str(side).upper())
    except ValueError:
        raise InvalidSideError(f"invalid side: {side}")


def normalize_quantity(quantity: Any) -> int:
    """Accept positive integers only (bools and fractional values are rejected)"""
    if isinstance(quantity, bool):
        raise InvalidQuantityError()
    if isinstance(quantity, int):
        value = quantity
    elif isinstance(quantity, str) and quantity.strip().lstrip("+").isdigit():
        value = int(quantity.strip())
    else:
        raise InvalidQuantityError()
    if value <= 0:
        raise InvalidQuantityError()
    return value


def validate_order(
    portfolio: PortfolioSnapshot,
    symbol: str,
    side: Any,
    quantity: Any,
    price: Decimal
) -> tuple[TradeSide, int]:
    """
    Check an order against current cash and holdings.

    Returns the normalized (side, quantity) on success, raises an
    OrderRejectedError subclass otherwise. Nothing is mutated.
    """
    trade_side = normalize_side(side)
    qty = normalize_quantity(quantity)

    if trade_side == TradeSide.BUY:
        cost = price * qty
        if portfolio.cash < cost:
            raise InsufficientBalanceError(
                f"insufficient balance: required ${cost:.2f}, "
                f"available ${portfolio.cash:.2f}"
            )
    else:
        holding = portfolio.find_holding(symbol)
        available = holding.quantity if holding else 0
        if available < qty:
            raise InsufficientHoldingsError(
                f"insufficient holdings: required {qty}, available {available}"
            )

    return trade_side, qty
