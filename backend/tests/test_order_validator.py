import uuid
from decimal import Decimal

import pytest

from papertrade.models.portfolio import Holding, PortfolioSnapshot
from papertrade.models.trade import TradeSide
from papertrade.services.exceptions import (
    InsufficientBalanceError,
    InsufficientHoldingsError,
    InvalidQuantityError,
    InvalidSideError,
    OrderRejectedError,
)
from papertrade.services.order_validator import validate_order


def make_portfolio(cash="100000", holdings=()):
    return PortfolioSnapshot(
        user_id=uuid.uuid4(),
        cash=Decimal(cash),
        total_value=Decimal(cash),
        holdings=list(holdings),
        persisted=True,
    )


def test_buy_within_cash_is_accepted():
    side, qty = validate_order(make_portfolio(), "AAPL", "BUY", 10, Decimal("150"))
    assert side == TradeSide.BUY
    assert qty == 10


def test_buy_spending_exactly_all_cash_is_accepted():
    validate_order(make_portfolio(cash="1500"), "AAPL", "BUY", 10, Decimal("150"))


def test_buy_rejected_with_insufficient_balance():
    with pytest.raises(InsufficientBalanceError) as exc:
        validate_order(make_portfolio(cash="100"), "AAPL", "BUY", 10, Decimal("150"))
    assert "insufficient balance" in str(exc.value)


def test_sell_without_holding_is_rejected():
    with pytest.raises(InsufficientHoldingsError) as exc:
        validate_order(make_portfolio(), "AAPL", "SELL", 5, Decimal("150"))
    assert "insufficient holdings" in str(exc.value)


def test_sell_more_than_held_is_rejected():
    portfolio = make_portfolio(holdings=[
        Holding(symbol="AAPL", quantity=3, avg_price=Decimal("150"))
    ])
    with pytest.raises(InsufficientHoldingsError):
        validate_order(portfolio, "AAPL", "SELL", 4, Decimal("150"))


def test_sell_entire_holding_is_accepted():
    portfolio = make_portfolio(holdings=[
        Holding(symbol="AAPL", quantity=3, avg_price=Decimal("150"))
    ])
    side, qty = validate_order(portfolio, "AAPL", "sell", 3, Decimal("10"))
    assert side == TradeSide.SELL
    assert qty == 3


@pytest.mark.parametrize("quantity", [0, -5, 1.5, "abc", None, True, "2.5"])
def test_invalid_quantities_are_rejected(quantity):
    with pytest.raises(InvalidQuantityError) as exc:
        validate_order(make_portfolio(), "AAPL", "BUY", quantity, Decimal("150"))
    assert "invalid quantity" in str(exc.value)


def test_numeric_string_quantity_is_normalized():
    _, qty = validate_order(make_portfolio(), "AAPL", "BUY", "7", Decimal("1"))
    assert qty == 7


def test_unknown_side_is_rejected():
    with pytest.raises(InvalidSideError):
        validate_order(make_portfolio(), "AAPL", "HOLD", 1, Decimal("1"))


def test_rejections_share_a_base_class():
    assert issubclass(InsufficientBalanceError, OrderRejectedError)
    assert issubclass(InsufficientHoldingsError, OrderRejectedError)
    assert issubclass(InvalidQuantityError, OrderRejectedError)
