"""
Custom exceptions for coinsim

Defines the error hierarchy raised by the price feed, the trade engine
and the HTTP layer. Business-rule outcomes (insufficient funds or holdings)
are not exceptions; they are returned as trade results.
"""

import time
from typing import Optional, Dict, Any


class CoinsimError(Exception):
    """
    Base exception class for all coinsim errors.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.timestamp = time.time()

    def __str__(self) -> str:
        base_msg = self.message
        if self.error_code:
            base_msg = f"[{self.error_code}] {base_msg}"
        if self.context:
            base_msg += f" Context: {self.context}"
        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert the exception to a dictionary representation.

        Returns:
            Dict containing the exception details including message, error code, and context.
        """
        return {
            "message": self.message,
            "error_code": self.error_code,
            "error_type": self.__class__.__name__,
            "context": self.context,
            "timestamp": self.timestamp
        }


class APIError(CoinsimError):
    """
    Exception raised when an external HTTP API misbehaves.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        endpoint: Optional[str] = None,
        error_code: str = "API_ERROR",
        context: Optional[Dict[str, Any]] = None
    ):
        full_context = {
            "status_code": status_code,
            "endpoint": endpoint,
            **(context or {})
        }
        super().__init__(message, error_code, full_context)
        self.status_code = status_code
        self.endpoint = endpoint


class FeedUnavailableError(APIError):
    """
    Exception raised when the market-data provider cannot deliver quotes.

    Covers non-success responses (``status_code`` is the upstream status),
    timeouts and connection failures (``status_code`` is None) and bodies
    that are not a list of market records.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        endpoint: Optional[str] = None,
        timed_out: bool = False,
        context: Optional[Dict[str, Any]] = None
    ):
        full_context = {
            "timed_out": timed_out,
            **(context or {})
        }
        super().__init__(
            message,
            status_code=status_code,
            endpoint=endpoint,
            error_code="FEED_UNAVAILABLE",
            context=full_context
        )
        self.timed_out = timed_out


class ChatProxyError(APIError):
    """
    Exception raised when the generative-text API call fails.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        endpoint: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message,
            status_code=status_code,
            endpoint=endpoint,
            error_code="CHAT_PROXY_ERROR",
            context=context
        )


class ValidationError(CoinsimError):
    """
    Exception raised for malformed requests.
    """

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        actual_value: Optional[Any] = None,
        error_code: str = "VALIDATION_ERROR",
        context: Optional[Dict[str, Any]] = None
    ):
        full_context = {
            "field_name": field_name,
            "actual_value": actual_value,
            **(context or {})
        }
        super().__init__(message, error_code, full_context)
        self.field_name = field_name
        self.actual_value = actual_value


class InvalidActionError(ValidationError):
    """
    Exception raised when a trade action is neither ``buy`` nor ``sell``.
    """

    def __init__(self, action: Any, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            "action must be buy or sell",
            field_name="action",
            actual_value=action,
            error_code="INVALID_ACTION",
            context=context
        )
        self.action = action


class InvalidAmountError(ValidationError):
    """
    Exception raised when the derived trade quantity is not positive.
    """

    def __init__(
        self,
        quantity: Optional[float] = None,
        amount_usd: Optional[float] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            "Invalid trade quantity/amount",
            field_name="qty" if amount_usd is None else "amountUsd",
            actual_value=quantity,
            error_code="INVALID_AMOUNT",
            context={"amount_usd": amount_usd, **(context or {})}
        )
        self.quantity = quantity
        self.amount_usd = amount_usd


class TradingError(CoinsimError):
    """
    Exception raised for ledger and trading errors.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "TRADING_ERROR",
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, error_code, context)


class AccountNotFoundError(TradingError):
    """
    Exception raised when a user identifier is not in the store.
    """

    def __init__(self, user_id: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            "User not found",
            error_code="ACCOUNT_NOT_FOUND",
            context={"user_id": user_id, **(context or {})}
        )
        self.user_id = user_id


class PriceUnavailableError(TradingError):
    """
    Exception raised when the feed has no usable price for an asset.
    """

    def __init__(self, asset_id: Optional[str], context: Optional[Dict[str, Any]] = None):
        super().__init__(
            "Invalid coinId or price not available",
            error_code="PRICE_UNAVAILABLE",
            context={"asset_id": asset_id, **(context or {})}
        )
        self.asset_id = asset_id


class ConfigurationError(CoinsimError):
    """
    Exception raised for configuration-related errors.
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        full_context = {
            "config_key": config_key,
            "config_value": config_value,
            **(context or {})
        }
        super().__init__(message, "CONFIG_ERROR", full_context)
        self.config_key = config_key
        self.config_value = config_value
