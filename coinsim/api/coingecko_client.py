"""
CoinGecko market-data client.

Fetches current price and 24h change for a set of coin ids and
normalizes the response into a mapping keyed by coin id. Every call is
a fresh network round-trip; nothing is cached or retried.
"""

from typing import Dict, Iterable, List

import requests
import structlog

from ..core.models import MarketQuote
from ..utils.exceptions import FeedUnavailableError, ValidationError
from ..utils.logging_config import log_performance

logger = structlog.get_logger(__name__)


def normalize_ids(ids: Iterable[str]) -> List[str]:
    """Strip whitespace, drop blanks and duplicates, keep first-seen order."""
    seen = []
    for asset_id in ids:
        asset_id = (asset_id or "").strip()
        if asset_id and asset_id not in seen:
            seen.append(asset_id)
    return seen


class CoinGeckoClient:
    """Price feed backed by the CoinGecko ``/coins/markets`` endpoint."""

    def __init__(self, base_url: str = "https://api.coingecko.com/api/v3",
                 vs_currency: str = "usd", timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.vs_currency = vs_currency
        self.timeout = timeout

    @classmethod
    def from_config(cls, feed_config) -> "CoinGeckoClient":
        return cls(
            base_url=feed_config.base_url,
            vs_currency=feed_config.vs_currency,
            timeout=feed_config.timeout,
        )

    @property
    def markets_url(self) -> str:
        return self.base_url + "/coins/markets"

    @log_performance
    def fetch_quotes(self, ids: Iterable[str]) -> Dict[str, MarketQuote]:
        """
        Fetch current market quotes.

        Args:
            ids: CoinGecko coin ids, e.g. ["bitcoin", "ethereum"]

        Returns:
            Mapping coin id -> MarketQuote. Unknown ids are simply absent.

        Raises:
            ValidationError: If no usable id was given
            FeedUnavailableError: On timeout, connection failure, non-success
                status or a body that is not a list of market records
        """
        ids = normalize_ids(ids)
        if not ids:
            raise ValidationError("At least one coin id is required", field_name="ids", actual_value=ids)

        url = self.markets_url
        params = {"vs_currency": self.vs_currency, "ids": ",".join(ids)}

        try:
            response = requests.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            logger.error("Market data request timed out", endpoint=url, timeout=self.timeout)
            raise FeedUnavailableError(
                f"Market data request timed out after {self.timeout}s",
                endpoint=url,
                timed_out=True
            ) from e
        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            logger.error("HTTP error fetching market data", endpoint=url, status_code=status_code)
            raise FeedUnavailableError(
                f"CoinGecko error {status_code}",
                status_code=status_code,
                endpoint=url
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error("Failed to connect to the market data provider", endpoint=url, error=str(e))
            raise FeedUnavailableError(
                f"Failed to connect to the market data provider: {e}",
                endpoint=url
            ) from e

        try:
            records = response.json()
        except ValueError as e:
            logger.error("Failed to decode JSON response from market data provider", endpoint=url)
            raise FeedUnavailableError(
                "Invalid JSON response from market data provider",
                endpoint=url,
                context={"json_decode_error": str(e)}
            ) from e

        if not isinstance(records, list):
            logger.error("Invalid data format from market data provider", endpoint=url,
                         data_type=type(records).__name__)
            raise FeedUnavailableError(
                "Unexpected market data format",
                endpoint=url,
                context={"data_type": type(records).__name__}
            )

        quotes = {}
        for record in records:
            if not isinstance(record, dict) or not record.get("id"):
                logger.warning("Skipping malformed market record", record=record)
                continue
            quote = MarketQuote.from_market_record(record)
            quotes[quote.id] = quote

        logger.debug("Fetched market quotes", requested=len(ids), received=len(quotes))
        return quotes

    def fetch_quote(self, asset_id: str):
        """Fetch a single quote; None if the provider does not know the id."""
        return self.fetch_quotes([asset_id]).get(asset_id.strip())
