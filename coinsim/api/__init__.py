"""
External API clients for coinsim

Handles CoinGecko market data and the optional generative-text
chat backend.
"""

from .coingecko_client import CoinGeckoClient, normalize_ids
from .chat_proxy import ChatProxy

__all__ = [
    "CoinGeckoClient",
    "ChatProxy",
    "normalize_ids"
]
