"""
coinsim - Simulated Cryptocurrency Portfolio Backend

Fetches live market prices from CoinGecko, keeps demo accounts in memory
and applies simulated buy/sell trades against live prices.
"""

__version__ = "0.1.0"

from .config.config import Config, load_config
from .core.user_store import UserStore
from .core.valuator import PortfolioValuator
from .api.coingecko_client import CoinGeckoClient
from .trading.trade_engine import TradeEngine
from .utils.logging_config import setup_logging
from .utils.exceptions import CoinsimError

__all__ = [
    "Config",
    "load_config",
    "UserStore",
    "PortfolioValuator",
    "CoinGeckoClient",
    "TradeEngine",
    "CoinsimError",
    "setup_logging",
    "__version__"
]
