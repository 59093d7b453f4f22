"""
Portfolio Calculator Service

Derives portfolio value, P&L and holdings breakdown from cash, holdings
and the current price of each symbol. total_value is never stored apart
from this derivation.
"""

from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Sequence
from datetime import datetime, timezone
import logging

from papertrade.models.portfolio import Holding, PortfolioSnapshot

logger = logging.getLogger(__name__)

PriceLookup = Callable[[str], Optional[Decimal]]


def holding_price(holding: Holding, price_lookup: PriceLookup) -> Decimal:
    """Live price for the holding, or its average cost when none is available"""
    price = price_lookup(holding.symbol)
    if price is None:
        return holding.avg_price
    return price


def compute_total_value(
    cash: Decimal, holdings: Sequence[Holding], price_lookup: PriceLookup
) -> Decimal:
    """cash + sum(quantity * current price) over all holdings"""
    holdings_value = sum(
        (h.quantity * holding_price(h, price_lookup) for h in holdings),
        Decimal("0")
    )
    return cash + holdings_value


class PortfolioCalculator:
    """
    Real-time portfolio valuation for display.

    Wraps a price lookup (symbol -> current price) and turns a snapshot
    into a JSON-ready breakdown with unrealized P&L per holding.
    """

    def __init__(self, price_lookup: PriceLookup, starting_cash: Decimal):
        self.price_lookup = price_lookup
        self.starting_cash = starting_cash

    def total_value(self, cash: Decimal, holdings: Sequence[Holding]) -> Decimal:
        return compute_total_value(cash, holdings, self.price_lookup)

    def get_holdings_breakdown(self, holdings: Sequence[Holding]) -> List[Dict[str, Any]]:
        breakdown = []

        for holding in holdings:
            qty = Decimal(holding.quantity)
            current_price = holding_price(holding, self.price_lookup)
            invested = qty * holding.avg_price
            current_value = qty * current_price
            unrealized_pnl = current_value - invested
            pnl_percent = (
                (unrealized_pnl / invested * 100)
                if invested > 0 else Decimal("0")
            )

            breakdown.append({
                "symbol": holding.symbol,
                "quantity": holding.quantity,
                "avg_price": float(holding.avg_price),
                "current_price": float(current_price),
                "total_invested": float(invested),
                "current_value": float(current_value),
                "unrealized_pnl": float(unrealized_pnl),
                "pnl_percent": float(pnl_percent.quantize(Decimal("0.01"))),
                "allocation_percent": 0.0
            })

        # Calculate allocation percentages
        total_holdings_value = sum(h["current_value"] for h in breakdown)
        if total_holdings_value > 0:
            for h in breakdown:
                h["allocation_percent"] = round(
                    (h["current_value"] / total_holdings_value) * 100, 2
                )

        return breakdown

    def get_current_value(self, portfolio: PortfolioSnapshot) -> Dict[str, Any]:
        holdings = self.get_holdings_breakdown(portfolio.holdings)
        total_value = self.total_value(portfolio.cash, portfolio.holdings)
        holdings_value = total_value - portfolio.cash
        total_invested = sum(
            (h.quantity * h.avg_price for h in portfolio.holdings), Decimal("0")
        )

        total_pnl = total_value - self.starting_cash
        pnl_percent = (
            (total_pnl / self.starting_cash * 100)
            if self.starting_cash > 0 else Decimal("0")
        )

        return {
            "user_id": str(portfolio.user_id),
            "persisted": portfolio.persisted,
            "cash": float(portfolio.cash),
            "total_value": float(total_value),
            "holdings_value": float(holdings_value),
            "total_invested": float(total_invested),
            "starting_cash": float(self.starting_cash),
            "total_pnl": float(total_pnl),
            "pnl_percent": float(pnl_percent.quantize(Decimal("0.01"))),
            "holdings_count": len(holdings),
            "holdings": holdings,
            "updated_at": datetime.now(timezone.utc).isoformat()
        }
