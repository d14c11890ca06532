# -*- coding: utf-8 -*-
"""
Tests for portfolio valuation.
"""
import pytest

from coinsim.core.models import MarketQuote
from coinsim.core.valuator import PortfolioValuator
from coinsim.utils.exceptions import ConfigurationError, PriceUnavailableError


def quotes(**prices):
    return {
        asset_id: MarketQuote(id=asset_id, current_price=price, price_change_percentage_24h=1.5)
        for asset_id, price in prices.items()
    }


def test_bitcoin_contribution():
    portfolio = PortfolioValuator().value({"bitcoin": 0.1}, quotes(bitcoin=50000.0))

    holding = portfolio.holdings["bitcoin"]
    assert holding.value == pytest.approx(5000.0)
    assert holding.price == 50000.0
    assert holding.change24h == 1.5
    assert portfolio.total_value == pytest.approx(5000.0)


def test_total_is_sum_of_values():
    holdings = {"bitcoin": 0.1, "ethereum": 1.0, "solana": 20.0}
    portfolio = PortfolioValuator().value(holdings, quotes(bitcoin=50000.0, ethereum=3000.0, solana=150.0))

    expected = 0.1 * 50000.0 + 1.0 * 3000.0 + 20.0 * 150.0
    assert portfolio.total_value == pytest.approx(expected)
    assert portfolio.total_value == pytest.approx(sum(h.value for h in portfolio.holdings.values()))


def test_zero_quantity_entries_included():
    portfolio = PortfolioValuator().value({"bitcoin": 0.0, "solana": 2.0}, quotes(bitcoin=50000.0, solana=100.0))

    assert portfolio.holdings["bitcoin"].value == 0.0
    assert portfolio.total_value == pytest.approx(200.0)


def test_missing_quote_valued_at_zero_by_default():
    portfolio = PortfolioValuator().value({"bitcoin": 0.1, "mystery": 3.0}, quotes(bitcoin=50000.0))

    mystery = portfolio.holdings["mystery"]
    assert mystery.price == 0.0
    assert mystery.value == 0.0
    assert mystery.change24h == 0.0
    assert portfolio.total_value == pytest.approx(5000.0)


def test_missing_quote_raises_under_error_policy():
    valuator = PortfolioValuator(missing_price_policy="error")

    with pytest.raises(PriceUnavailableError) as exc_info:
        valuator.value({"bitcoin": 0.1, "mystery": 3.0}, quotes(bitcoin=50000.0))
    assert exc_info.value.asset_id == "mystery"


def test_unknown_policy_rejected():
    with pytest.raises(ConfigurationError):
        PortfolioValuator(missing_price_policy="guess")


def test_empty_holdings():
    portfolio = PortfolioValuator().value({}, {})

    assert portfolio.total_value == 0.0
    assert portfolio.to_dict() == {"totalValue": 0.0, "breakdown": {}}


def test_to_dict_wire_shape():
    portfolio = PortfolioValuator().value({"bitcoin": 0.1}, quotes(bitcoin=50000.0))

    assert portfolio.to_dict()["breakdown"]["bitcoin"] == {
        "qty": 0.1,
        "price": 50000.0,
        "value": pytest.approx(5000.0),
        "change24h": 1.5,
    }


def test_inputs_not_mutated():
    holdings = {"bitcoin": 0.1}
    PortfolioValuator().value(holdings, quotes(bitcoin=50000.0))
    assert holdings == {"bitcoin": 0.1}
