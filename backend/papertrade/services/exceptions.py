"""
Trading engine exceptions.

OrderRejectedError and its subclasses are validation failures: the message
is safe to show to the user as-is. Everything else is an execution or
authorization failure.
"""


class TradeExecutionError(Exception):
    """Base exception for trade execution failures"""
    pass


class UnauthorizedError(TradeExecutionError):
    """Raised when a mutating operation has no authenticated identity"""

    def __init__(self, message: str = "unauthorized"):
        super().__init__(message)


class PortfolioNotFoundError(TradeExecutionError):
    """Raised when trading against a portfolio that was never created"""

    def __init__(self, message: str = "portfolio not created"):
        super().__init__(message)


class PriceUnavailableError(TradeExecutionError):
    """Raised when no current price exists for the symbol"""
    pass


class OrderRejectedError(TradeExecutionError):
    """Base class for orders refused by the validator"""
    pass


class InvalidQuantityError(OrderRejectedError):
    """Raised for non-integer or non-positive quantities"""

    def __init__(self, message: str = "invalid quantity"):
        super().__init__(message)


class InvalidSideError(OrderRejectedError):
    """Raised when side is neither BUY nor SELL"""

    def __init__(self, message: str = "invalid side"):
        super().__init__(message)


class InsufficientBalanceError(OrderRejectedError):
    """Raised when cash does not cover a BUY"""

    def __init__(self, message: str = "insufficient balance"):
        super().__init__(message)


class InsufficientHoldingsError(OrderRejectedError):
    """Raised when a SELL exceeds the quantity held"""

    def __init__(self, message: str = "insufficient holdings"):
        super().__init__(message)
