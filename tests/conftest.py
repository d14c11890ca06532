# -*- coding: utf-8 -*-
"""
pytest configuration file with fixtures for coinsim testing.
"""
import logging
import threading
import time
from typing import Dict, Iterable, Optional
from unittest.mock import Mock, patch

import pytest
import structlog

from coinsim.config.config import Config
from coinsim.core.models import Account, MarketQuote
from coinsim.core.user_store import UserStore
from coinsim.web.app import create_app


class StubFeed:
    """Price feed returning fixed prices, optionally stalling on a barrier."""

    def __init__(self, prices: Dict[str, float], changes: Optional[Dict[str, float]] = None,
                 barrier: Optional[threading.Barrier] = None, delay: float = 0.0,
                 error: Optional[Exception] = None):
        self.prices = dict(prices)
        self.changes = changes or {}
        self.barrier = barrier
        self.delay = delay
        self.error = error
        self.calls = []

    def fetch_quotes(self, ids: Iterable[str]) -> Dict[str, MarketQuote]:
        ids = list(ids)
        self.calls.append(ids)
        if self.error is not None:
            raise self.error
        if self.delay:
            time.sleep(self.delay)
        if self.barrier is not None:
            self.barrier.wait(timeout=5)
        return {
            asset_id: MarketQuote(
                id=asset_id,
                current_price=self.prices[asset_id],
                price_change_percentage_24h=self.changes.get(asset_id, 0.0),
            )
            for asset_id in ids
            if asset_id in self.prices
        }


@pytest.fixture
def market_records():
    """Mock /coins/markets response from CoinGecko."""
    return [
        {
            "id": "bitcoin",
            "symbol": "btc",
            "name": "Bitcoin",
            "current_price": 50000.0,
            "market_cap": 985000000000,
            "price_change_percentage_24h": 2.5,
        },
        {
            "id": "ethereum",
            "symbol": "eth",
            "name": "Ethereum",
            "current_price": 3000.0,
            "market_cap": 360000000000,
            "price_change_percentage_24h": -1.25,
        },
        {
            "id": "solana",
            "symbol": "sol",
            "name": "Solana",
            "current_price": 150.0,
            "market_cap": 70000000000,
            "price_change_percentage_24h": 4.0,
        },
    ]


@pytest.fixture
def mock_requests(market_records):
    """Mock requests.get with a successful CoinGecko response."""
    with patch("requests.get") as mock_get:
        mock_response = Mock()
        mock_response.json.return_value = market_records
        mock_response.raise_for_status.return_value = None
        mock_get.return_value = mock_response
        yield mock_get


@pytest.fixture
def prices():
    return {"bitcoin": 50000.0, "ethereum": 3000.0, "solana": 150.0}


@pytest.fixture
def stub_feed(prices):
    return StubFeed(prices, changes={"bitcoin": 2.5, "ethereum": -1.25, "solana": 4.0})


@pytest.fixture
def demo_account():
    """Seed user holding only bitcoin."""
    return Account(user_id="FM10293", name="Minh Anh", balance_usd=2000.0, holdings={"bitcoin": 0.1})


@pytest.fixture
def store(demo_account):
    return UserStore([demo_account])


@pytest.fixture
def seeded_store():
    return UserStore()


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def app(config, seeded_store, stub_feed):
    app = create_app(config=config, store=seeded_store, feed=stub_feed)
    app.testing = True
    return app


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def restore_logging():
    """Undo global logging changes made by setup_logging."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    trading = logging.getLogger("coinsim.trading")
    for handler in trading.handlers:
        handler.close()
    trading.handlers.clear()
    structlog.reset_defaults()
