"""
Portfolio valuation.

Tracks nothing; values a holdings mapping against a set of quotes.
"""

from typing import Dict, Mapping
import logging

from .models import HoldingValue, MarketQuote, PortfolioBreakdown
from ..utils.exceptions import ConfigurationError, PriceUnavailableError

logger = logging.getLogger("coinsim.core.valuator")


class PortfolioValuator:
    """Combines holdings with fetched prices into a per-asset breakdown."""

    def __init__(self, missing_price_policy: str = "zero"):
        """
        Initialize valuator.

        Args:
            missing_price_policy: ``zero`` values an asset without a quote at
                price 0; ``error`` raises PriceUnavailableError instead
        """
        if missing_price_policy not in ("zero", "error"):
            raise ConfigurationError(
                f"Unknown missing price policy: {missing_price_policy}",
                config_key="missing_price_policy",
                config_value=missing_price_policy
            )
        self.missing_price_policy = missing_price_policy

    def value(self, holdings: Mapping[str, float], quotes: Mapping[str, MarketQuote]) -> PortfolioBreakdown:
        """
        Calculate per-asset values and the total portfolio value.

        Args:
            holdings: Asset id -> quantity held
            quotes: Asset id -> current quote

        Returns:
            Breakdown covering every held asset, zero-quantity entries included
        """
        breakdown: Dict[str, HoldingValue] = {}
        total_value = 0.0

        for asset_id, qty in holdings.items():
            quote = quotes.get(asset_id)
            if quote is None or quote.current_price is None:
                if self.missing_price_policy == "error":
                    raise PriceUnavailableError(asset_id)
                logger.warning(f"No price for {asset_id}, valuing at 0")
                price = 0.0
            else:
                price = quote.current_price

            change24h = 0.0
            if quote is not None and quote.price_change_percentage_24h is not None:
                change24h = quote.price_change_percentage_24h

            value = qty * price
            breakdown[asset_id] = HoldingValue(
                asset_id=asset_id,
                qty=qty,
                price=price,
                value=value,
                change24h=change24h,
            )
            total_value += value

        return PortfolioBreakdown(holdings=breakdown, total_value=total_value)
