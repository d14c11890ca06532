"""
Core components for coinsim

Account and quote models, the in-memory account store
and portfolio valuation.
"""

from .models import (
    Account,
    MarketQuote,
    HoldingValue,
    PortfolioBreakdown,
    TradeAction,
    TradeOutcome,
    TradeRequest,
    TradeResult
)
from .user_store import UserStore, seed_accounts
from .valuator import PortfolioValuator

__all__ = [
    "Account",
    "MarketQuote",
    "HoldingValue",
    "PortfolioBreakdown",
    "TradeAction",
    "TradeOutcome",
    "TradeRequest",
    "TradeResult",
    "UserStore",
    "seed_accounts",
    "PortfolioValuator"
]
