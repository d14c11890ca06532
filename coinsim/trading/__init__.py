"""
Trading components for coinsim

Contains the simulated buy/sell engine.
"""

from .trade_engine import TradeEngine, trade_quantity, parse_action

__all__ = [
    "TradeEngine",
    "trade_quantity",
    "parse_action"
]
