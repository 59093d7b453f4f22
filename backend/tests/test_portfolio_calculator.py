import uuid
from decimal import Decimal

import pytest

from papertrade.models.portfolio import Holding, PortfolioSnapshot
from papertrade.services.portfolio_calculator import PortfolioCalculator, compute_total_value


def test_total_value_is_cash_plus_marked_holdings(prices):
    holdings = [
        Holding(symbol="AAPL", quantity=10, avg_price=Decimal("140")),
        Holding(symbol="MSFT", quantity=2, avg_price=Decimal("250")),
    ]
    total = compute_total_value(Decimal("1000"), holdings, prices.get)
    assert total == Decimal("1000") + 10 * Decimal("150") + 2 * Decimal("300")


def test_missing_live_price_falls_back_to_average_cost(prices):
    holdings = [Holding(symbol="ZZZZ", quantity=4, avg_price=Decimal("12.5"))]
    assert compute_total_value(Decimal("0"), holdings, prices.get) == Decimal("50")


def test_no_holdings_is_just_cash(prices):
    assert compute_total_value(Decimal("98500"), [], prices.get) == Decimal("98500")


def test_breakdown_reports_unrealized_pnl_and_allocation(prices):
    calculator = PortfolioCalculator(prices.get, Decimal("100000"))
    breakdown = calculator.get_holdings_breakdown([
        Holding(symbol="AAPL", quantity=10, avg_price=Decimal("100")),
        Holding(symbol="MSFT", quantity=5, avg_price=Decimal("300")),
    ])

    aapl, msft = breakdown
    assert aapl["current_value"] == 1500.0
    assert aapl["unrealized_pnl"] == 500.0
    assert aapl["pnl_percent"] == 50.0
    assert msft["unrealized_pnl"] == 0.0
    assert aapl["allocation_percent"] + msft["allocation_percent"] == pytest.approx(100.0)


def test_current_value_for_preview_portfolio(prices):
    calculator = PortfolioCalculator(prices.get, Decimal("100000"))
    snapshot = PortfolioSnapshot(
        user_id=uuid.uuid4(),
        cash=Decimal("100000"),
        total_value=Decimal("100000"),
        holdings=[],
        persisted=False,
    )
    view = calculator.get_current_value(snapshot)
    assert view["persisted"] is False
    assert view["total_value"] == 100000.0
    assert view["total_pnl"] == 0.0
    assert view["holdings"] == []


def test_current_value_revalues_at_live_prices(prices):
    calculator = PortfolioCalculator(prices.get, Decimal("100000"))
    snapshot = PortfolioSnapshot(
        user_id=uuid.uuid4(),
        cash=Decimal("98500"),
        total_value=Decimal("100000"),
        holdings=[Holding(symbol="AAPL", quantity=10, avg_price=Decimal("150"))],
        persisted=True,
    )
    prices["AAPL"] = Decimal("160")

    view = calculator.get_current_value(snapshot)
    assert view["total_value"] == 100100.0
    assert view["holdings_value"] == 1600.0
    assert view["total_pnl"] == 100.0
    assert view["pnl_percent"] == 0.1
