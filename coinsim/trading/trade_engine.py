"""
Simulated trade execution for coinsim.

Applies a buy or sell against one account at a freshly fetched price.
Validation happens completely before the account is touched, so a
rejected trade never leaves a partial update behind.
"""

import logging
from typing import Dict, Iterable, Optional, Protocol

from ..core.models import (
    MarketQuote,
    TradeAction,
    TradeOutcome,
    TradeRequest,
    TradeResult,
)
from ..core.user_store import UserStore
from ..utils.exceptions import (
    InvalidActionError,
    InvalidAmountError,
    PriceUnavailableError,
)

logger = logging.getLogger("coinsim.trading.trade_engine")

BUY_FILLED = "Buy order filled"
SELL_FILLED = "Sell order filled"
INSUFFICIENT_FUNDS = "Insufficient funds in the simulated wallet."
INSUFFICIENT_HOLDINGS = "Insufficient quantity to sell."


class PriceFeed(Protocol):
    def fetch_quotes(self, ids: Iterable[str]) -> Dict[str, MarketQuote]:
        ...


def parse_action(action: Optional[str]) -> TradeAction:
    try:
        return TradeAction(action)
    except ValueError:
        raise InvalidActionError(action) from None


def trade_quantity(price: float, quantity: Optional[float] = None,
                   amount_usd: Optional[float] = None) -> float:
    """
    Quantity to trade: the explicit quantity if given, else amount / price.

    Raises:
        InvalidAmountError: If the resulting quantity is not positive
    """
    if quantity is not None:
        result = quantity
    elif amount_usd:
        result = amount_usd / price
    else:
        result = 0.0

    if result <= 0:
        raise InvalidAmountError(quantity=result, amount_usd=amount_usd)
    return result


class TradeEngine:
    """Validates and applies simulated trades against the account store."""

    def __init__(self, store: UserStore, feed: PriceFeed, default_user_id: Optional[str] = None):
        """
        Initialize trade engine.

        Args:
            store: Account store the trades are applied to
            feed: Anything with ``fetch_quotes(ids) -> {id: MarketQuote}``
            default_user_id: Account used when a request names no user
        """
        self.store = store
        self.feed = feed
        self.default_user_id = default_user_id

    def execute(self, request: TradeRequest) -> TradeResult:
        """
        Execute one simulated trade.

        The account lock is held from the first read of the balance until
        the update is written, price fetch included.

        Returns:
            Applied trade, or a rejection for insufficient funds/holdings

        Raises:
            AccountNotFoundError: Unknown user
            FeedUnavailableError: Price feed failed
            PriceUnavailableError: Feed has no price for the asset
            InvalidAmountError: Quantity/amount resolves to <= 0
            InvalidActionError: Action is neither buy nor sell
        """
        user_id = request.account_id(self.default_user_id)
        asset_id = request.asset_id

        with self.store.locked(user_id) as account:
            balance = account.balance_usd
            have = account.holdings.get(asset_id, 0.0)

            quote = self.feed.fetch_quotes([asset_id]).get(asset_id)
            if quote is None or not quote.has_price:
                raise PriceUnavailableError(asset_id)
            price = quote.current_price

            quantity = trade_quantity(price, quantity=request.quantity, amount_usd=request.amount_usd)
            action = parse_action(request.action)

            if action is TradeAction.BUY:
                cost = quantity * price
                if cost > balance:
                    logger.info(
                        f"BUY rejected for {user_id}: {quantity:.8f} {asset_id} costs ${cost:.2f}, "
                        f"balance ${balance:.2f}"
                    )
                    return self._rejected(TradeOutcome.INSUFFICIENT_FUNDS, action, asset_id,
                                          quantity, price, INSUFFICIENT_FUNDS)

                account.balance_usd = balance - cost
                account.holdings[asset_id] = have + quantity
                logger.info(
                    f"BUY: {user_id} {quantity:.8f} {asset_id} at ${price:.2f} "
                    f"(Cost: ${cost:.2f}, Balance: ${account.balance_usd:.2f})"
                )
                message = BUY_FILLED
            else:
                if quantity > have:
                    logger.info(
                        f"SELL rejected for {user_id}: {quantity:.8f} {asset_id} requested, "
                        f"{have:.8f} held"
                    )
                    return self._rejected(TradeOutcome.INSUFFICIENT_HOLDINGS, action, asset_id,
                                          quantity, price, INSUFFICIENT_HOLDINGS)

                proceeds = quantity * price
                account.holdings[asset_id] = have - quantity
                account.balance_usd = balance + proceeds
                logger.info(
                    f"SELL: {user_id} {quantity:.8f} {asset_id} at ${price:.2f} "
                    f"(Revenue: ${proceeds:.2f}, Balance: ${account.balance_usd:.2f})"
                )
                message = SELL_FILLED

            return TradeResult(
                outcome=TradeOutcome.OK,
                action=action,
                asset_id=asset_id,
                quantity=quantity,
                price=price,
                message=message,
                new_balance=account.balance_usd,
            )

    @staticmethod
    def _rejected(outcome, action, asset_id, quantity, price, message) -> TradeResult:
        return TradeResult(
            outcome=outcome,
            action=action,
            asset_id=asset_id,
            quantity=quantity,
            price=price,
            message=message,
        )
