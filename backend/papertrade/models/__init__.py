from papertrade.models.user import User
from papertrade.models.portfolio import Portfolio, PortfolioHolding, Holding, PortfolioSnapshot
from papertrade.models.trade import Trade, TradeSide, TradeStatus
from papertrade.models.market import MarketQuote

__all__ = [
    "User",
    "Portfolio",
    "PortfolioHolding",
    "Holding",
    "PortfolioSnapshot",
    "Trade",
    "TradeSide",
    "TradeStatus",
    "MarketQuote",
]
