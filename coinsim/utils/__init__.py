"""
Utility functions and helpers for coinsim

Contains logging setup, the exception hierarchy and error context helpers.
"""

from .logging_config import setup_logging, get_logger
from .exceptions import (
    CoinsimError,
    APIError,
    FeedUnavailableError,
    ChatProxyError,
    ValidationError,
    InvalidActionError,
    InvalidAmountError,
    TradingError,
    AccountNotFoundError,
    PriceUnavailableError,
    ConfigurationError
)
from .error_handler import error_context

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",

    # Error Handling
    "error_context",

    # Exceptions
    "CoinsimError",
    "APIError",
    "FeedUnavailableError",
    "ChatProxyError",
    "ValidationError",
    "InvalidActionError",
    "InvalidAmountError",
    "TradingError",
    "AccountNotFoundError",
    "PriceUnavailableError",
    "ConfigurationError"
]
