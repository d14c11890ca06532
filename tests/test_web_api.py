# -*- coding: utf-8 -*-
"""
Tests for the HTTP endpoints.
"""
import pytest

from coinsim.config.config import Config
from coinsim.core.models import Account
from coinsim.core.user_store import UserStore
from coinsim.utils.exceptions import FeedUnavailableError
from coinsim.web.app import create_app

from conftest import StubFeed


class TestCoins:

    def test_default_ids(self, client, stub_feed):
        rv = client.get('/api/coins')

        assert rv.status_code == 200
        data = rv.get_json()
        assert data["success"] is True
        assert set(data["data"]) == {"bitcoin", "ethereum", "solana"}
        assert data["data"]["bitcoin"]["current_price"] == 50000.0
        assert stub_feed.calls == [["bitcoin", "ethereum", "solana"]]

    def test_requested_ids(self, client, stub_feed):
        rv = client.get('/api/coins?ids=solana, bitcoin,,unknown')

        assert rv.status_code == 200
        assert set(rv.get_json()["data"]) == {"solana", "bitcoin"}
        assert stub_feed.calls == [["solana", "bitcoin", "unknown"]]

    def test_blank_ids_use_default(self, client, stub_feed):
        client.get('/api/coins?ids=,')
        assert stub_feed.calls == [["bitcoin", "ethereum", "solana"]]

    def test_feed_failure(self, config, seeded_store):
        feed = StubFeed({}, error=FeedUnavailableError("CoinGecko error 503", status_code=503))
        app = create_app(config=config, store=seeded_store, feed=feed)

        rv = app.test_client().get('/api/coins')

        assert rv.status_code == 502
        assert rv.get_json() == {"success": False, "error": "CoinGecko error 503"}


class TestProfile:

    def test_default_user(self, client):
        rv = client.get('/api/profile')

        assert rv.status_code == 200
        data = rv.get_json()
        assert data["success"] is True
        assert data["profile"]["userId"] == "FM10293"
        assert data["profile"]["name"] == "Minh Anh"
        assert data["profile"]["balanceUSD"] == 2000.0

        expected_total = 0.1 * 50000.0 + 1.0 * 3000.0 + 20.0 * 150.0
        assert data["portfolio"]["totalValue"] == pytest.approx(expected_total)
        assert data["portfolio"]["breakdown"]["bitcoin"] == {
            "qty": 0.1,
            "price": 50000.0,
            "value": pytest.approx(5000.0),
            "change24h": 2.5,
        }

    def test_explicit_user(self, client):
        rv = client.get('/api/profile/FM10293')
        assert rv.status_code == 200

    def test_trailing_slash_serves_default_user(self, client):
        rv = client.get('/api/profile/')

        assert rv.status_code == 200
        assert rv.get_json()["profile"]["userId"] == "FM10293"

    def test_unknown_user(self, client, stub_feed):
        rv = client.get('/api/profile/nobody')

        assert rv.status_code == 404
        assert rv.get_json() == {"success": False, "error": "User not found"}
        assert stub_feed.calls == []

    def test_account_without_holdings_skips_feed(self, config, stub_feed):
        store = UserStore([Account("FM10293", "Minh Anh", 10.0)])
        app = create_app(config=config, store=store, feed=stub_feed)

        rv = app.test_client().get('/api/profile')

        assert rv.get_json()["portfolio"] == {"totalValue": 0.0, "breakdown": {}}
        assert stub_feed.calls == []

    def test_missing_price_error_policy(self, stub_feed):
        config = Config()
        config.ledger.missing_price_policy = "error"
        store = UserStore([Account("FM10293", "Minh Anh", 10.0, {"mystery": 1.0})])
        app = create_app(config=config, store=store, feed=stub_feed)

        rv = app.test_client().get('/api/profile')

        assert rv.status_code == 400
        assert rv.get_json()["success"] is False


class TestTransaction:

    def test_buy_then_profile(self, client):
        rv = client.post('/api/transaction', json={
            "userId": "FM10293", "action": "buy", "coinId": "bitcoin", "amountUsd": 1000
        })

        assert rv.status_code == 200
        data = rv.get_json()
        assert data["success"] is True
        assert data["status"] == "ok"
        assert data["newBalance"] == pytest.approx(1000.0)
        assert data["quantity"] == pytest.approx(0.02)

        profile = client.get('/api/profile').get_json()
        assert profile["profile"]["balanceUSD"] == pytest.approx(1000.0)
        assert profile["portfolio"]["breakdown"]["bitcoin"]["qty"] == pytest.approx(0.12)

    def test_user_defaults_to_seed(self, client):
        rv = client.post('/api/transaction', json={"action": "sell", "coinId": "solana", "qty": 5})

        data = rv.get_json()
        assert data["success"] is True
        assert data["newBalance"] == pytest.approx(2000.0 + 5 * 150.0)

    def test_insufficient_funds_is_http_200(self, client):
        rv = client.post('/api/transaction', json={"action": "buy", "coinId": "bitcoin", "qty": 1})

        assert rv.status_code == 200
        data = rv.get_json()
        assert data["success"] is False
        assert data["status"] == "error"
        assert "Insufficient funds" in data["message"]
        assert "newBalance" not in data

    def test_insufficient_holdings_is_http_200(self, client):
        rv = client.post('/api/transaction', json={"action": "sell", "coinId": "bitcoin", "qty": 0.2})

        assert rv.status_code == 200
        data = rv.get_json()
        assert data == {"success": False, "status": "error", "message": "Insufficient quantity to sell."}

        profile = client.get('/api/profile').get_json()
        assert profile["portfolio"]["breakdown"]["bitcoin"]["qty"] == 0.1

    def test_unknown_user(self, client):
        rv = client.post('/api/transaction', json={
            "userId": "ghost", "action": "buy", "coinId": "bitcoin", "qty": 0.01
        })

        assert rv.status_code == 404
        assert rv.get_json() == {"success": False, "error": "User not found"}

    @pytest.mark.parametrize("user_id", ["", None])
    def test_explicit_empty_user_is_not_defaulted(self, client, user_id):
        rv = client.post('/api/transaction', json={
            "userId": user_id, "action": "buy", "coinId": "solana", "qty": 1
        })

        assert rv.status_code == 404
        assert rv.get_json() == {"success": False, "error": "User not found"}

        profile = client.get('/api/profile').get_json()["profile"]
        assert profile["balanceUSD"] == 2000.0
        assert profile["holdings"]["solana"] == 20.0

    def test_invalid_action(self, client):
        rv = client.post('/api/transaction', json={"action": "hold", "coinId": "bitcoin", "qty": 0.01})

        assert rv.status_code == 400
        assert rv.get_json() == {"success": False, "error": "action must be buy or sell"}

    def test_unknown_coin(self, client):
        rv = client.post('/api/transaction', json={"action": "buy", "coinId": "not-a-coin", "qty": 1})

        assert rv.status_code == 400
        assert rv.get_json()["error"] == "Invalid coinId or price not available"

    @pytest.mark.parametrize("body", [
        {"action": "buy", "coinId": "bitcoin"},
        {"action": "buy", "coinId": "bitcoin", "qty": 0},
        {"action": "buy", "coinId": "bitcoin", "amountUsd": -5},
    ])
    def test_invalid_amount(self, client, body):
        rv = client.post('/api/transaction', json=body)

        assert rv.status_code == 400
        assert rv.get_json()["error"] == "Invalid trade quantity/amount"

    def test_missing_coin_id(self, client):
        rv = client.post('/api/transaction', json={"action": "buy", "qty": 1})

        assert rv.status_code == 400
        data = rv.get_json()
        assert data["success"] is False
        assert "coinId" in data["error"]

    def test_body_not_json(self, client):
        rv = client.post('/api/transaction', data="action=buy", content_type="text/plain")

        assert rv.status_code == 400
        assert rv.get_json()["success"] is False

    def test_feed_failure_aborts_trade(self, config):
        store = UserStore()
        feed = StubFeed({}, error=FeedUnavailableError("Market data request timed out", timed_out=True))
        app = create_app(config=config, store=store, feed=feed)

        rv = app.test_client().post('/api/transaction', json={"action": "buy", "coinId": "bitcoin", "qty": 0.01})

        assert rv.status_code == 502
        assert store.get("FM10293").balance_usd == 2000.0


class TestMisc:

    def test_chat_fallback(self, client):
        rv = client.post('/api/chat', json={"message": "What is my balance?"})

        assert rv.status_code == 200
        assert rv.get_json() == {"success": True, "reply": "Your simulated balance is $2000.00."}

    def test_chat_message_must_be_string(self, client):
        rv = client.post('/api/chat', json={"message": 42})
        assert rv.status_code == 400

    def test_health(self, client):
        data = client.get('/api/health').get_json()
        assert data == {"success": True, "status": "ok", "environment": "development", "accounts": 1}

    def test_unknown_route_is_json(self, client):
        rv = client.get('/api/nope')

        assert rv.status_code == 404
        assert rv.get_json()["success"] is False

    def test_cors_header(self, client):
        rv = client.get('/api/health', headers={"Origin": "http://localhost:5173"})
        assert rv.headers.get("Access-Control-Allow-Origin") == "*"

    def test_unexpected_error_is_500(self, config, seeded_store):
        feed = StubFeed({}, error=RuntimeError("boom"))
        app = create_app(config=config, store=seeded_store, feed=feed)

        rv = app.test_client().get('/api/coins')

        assert rv.status_code == 500
        assert rv.get_json() == {"success": False, "error": "boom"}
