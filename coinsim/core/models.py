"""
Data models for coinsim.

Accounts are the only long-lived objects; quotes, breakdowns and trade
results are built per request and discarded after the response.
"""

import copy
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _to_float(value: Any) -> Optional[float]:
    """Coerce a provider number to float, None when absent or not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


@dataclass
class Account:
    """A user's simulated cash balance and holdings."""
    user_id: str
    name: str
    balance_usd: float
    holdings: Dict[str, float] = field(default_factory=dict)

    def profile(self) -> Dict[str, Any]:
        return {
            'userId': self.user_id,
            'name': self.name,
            'balanceUSD': self.balance_usd,
            'holdings': dict(self.holdings),
        }

    def snapshot(self) -> "Account":
        """Detached copy, safe to read while the original is mutated."""
        return copy.deepcopy(self)


@dataclass(frozen=True)
class MarketQuote:
    """Price snapshot for one asset at fetch time."""
    id: str
    current_price: Optional[float]
    price_change_percentage_24h: Optional[float] = None
    symbol: Optional[str] = None
    name: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @classmethod
    def from_market_record(cls, record: Dict[str, Any]) -> "MarketQuote":
        """Build a quote from one element of the /coins/markets response."""
        return cls(
            id=str(record['id']),
            current_price=_to_float(record.get('current_price')),
            price_change_percentage_24h=_to_float(record.get('price_change_percentage_24h')),
            symbol=record.get('symbol'),
            name=record.get('name'),
            raw=dict(record),
        )

    @property
    def has_price(self) -> bool:
        return bool(self.current_price) and self.current_price > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.raw,
            'id': self.id,
            'symbol': self.symbol,
            'name': self.name,
            'current_price': self.current_price,
            'price_change_percentage_24h': self.price_change_percentage_24h,
        }


@dataclass(frozen=True)
class HoldingValue:
    """Valuation of one held asset."""
    asset_id: str
    qty: float
    price: float
    value: float
    change24h: float

    def to_dict(self) -> Dict[str, float]:
        return {
            'qty': self.qty,
            'price': self.price,
            'value': self.value,
            'change24h': self.change24h,
        }


@dataclass(frozen=True)
class PortfolioBreakdown:
    """Per-asset valuation of an account's holdings and their sum."""
    holdings: Dict[str, HoldingValue]
    total_value: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalValue': self.total_value,
            'breakdown': {asset_id: hv.to_dict() for asset_id, hv in self.holdings.items()},
        }


class TradeAction(str, Enum):
    BUY = "buy"
    SELL = "sell"


class TradeOutcome(str, Enum):
    OK = "ok"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    INSUFFICIENT_HOLDINGS = "insufficient_holdings"


class TradeRequest(BaseModel):
    """
    Body of ``POST /api/transaction``.

    Wire names are camelCase (``userId``, ``coinId``, ``amountUsd``, ``qty``);
    the Python names are accepted too. ``action`` is kept as a plain string
    so that an unknown action is reported by the trade engine, after the
    account has been resolved.
    """
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(default=None, alias="userId")
    action: Optional[str] = None
    asset_id: str = Field(alias="coinId", min_length=1)
    amount_usd: Optional[float] = Field(default=None, alias="amountUsd")
    quantity: Optional[float] = Field(default=None, alias="qty")

    @field_validator('asset_id')
    @classmethod
    def strip_asset_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("coinId must not be blank")
        return value

    @field_validator('amount_usd', 'quantity')
    @classmethod
    def finite_number(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and not math.isfinite(value):
            raise ValueError("must be a finite number")
        return value

    def account_id(self, default: Optional[str]) -> Optional[str]:
        """``userId`` as sent; ``default`` only when the key was absent."""
        return self.user_id if "user_id" in self.model_fields_set else default


@dataclass(frozen=True)
class TradeResult:
    """Outcome of one trade attempt, applied or rejected by a business rule."""
    outcome: TradeOutcome
    action: TradeAction
    asset_id: str
    quantity: float
    price: float
    message: str
    new_balance: Optional[float] = None

    @property
    def success(self) -> bool:
        return self.outcome is TradeOutcome.OK

    def to_response(self) -> Dict[str, Any]:
        if not self.success:
            return {'success': False, 'status': 'error', 'message': self.message}
        return {
            'success': True,
            'status': 'ok',
            'message': self.message,
            'newBalance': self.new_balance,
            'quantity': self.quantity,
            'price': self.price,
        }
