"""
HTTP service for coinsim.

JSON endpoints over the price feed, the account store, the trade engine
and the chat backend. Every response carries ``success``; failures carry
``error`` (transport/validation, non-2xx) or ``status``/``message``
(rejected trades, HTTP 200).
"""

import logging
from dataclasses import dataclass
from typing import Optional

import pydantic
from flask import Blueprint, Flask, current_app, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from ..api.chat_proxy import ChatProxy
from ..api.coingecko_client import CoinGeckoClient, normalize_ids
from ..config.config import Config, load_config
from ..core.models import TradeRequest
from ..core.user_store import UserStore
from ..core.valuator import PortfolioValuator
from ..trading.trade_engine import TradeEngine
from ..utils.error_handler import error_context
from ..utils.exceptions import (
    AccountNotFoundError,
    APIError,
    CoinsimError,
    PriceUnavailableError,
    ValidationError,
)

logger = logging.getLogger(__name__)

api = Blueprint("api", __name__, url_prefix="/api")


@dataclass
class Services:
    """Objects shared by all requests of one app instance."""
    config: Config
    store: UserStore
    feed: CoinGeckoClient
    valuator: PortfolioValuator
    engine: TradeEngine
    chat: ChatProxy


def services() -> Services:
    return current_app.extensions["coinsim"]


def status_for(error: CoinsimError) -> int:
    if isinstance(error, AccountNotFoundError):
        return 404
    if isinstance(error, (ValidationError, PriceUnavailableError)):
        return 400
    if isinstance(error, APIError):
        return 502
    return 500


def error_response(message: str, status: int):
    return jsonify({"success": False, "error": message}), status


def json_body() -> dict:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object", field_name="body")
    return body


@api.route("/coins", methods=["GET"])
def coins():
    svc = services()
    ids = normalize_ids((request.args.get("ids") or "").split(","))
    quotes = svc.feed.fetch_quotes(ids or svc.config.feed.default_ids)
    return jsonify({
        "success": True,
        "data": {asset_id: quote.to_dict() for asset_id, quote in quotes.items()},
    })


@api.route("/profile", methods=["GET"], strict_slashes=False)
@api.route("/profile/<user_id>", methods=["GET"])
def profile(user_id: Optional[str] = None):
    svc = services()
    user_id = user_id or svc.config.ledger.default_user_id

    with error_context("profile", {"user_id": user_id}, logger):
        account = svc.store.get(user_id)
        quotes = svc.feed.fetch_quotes(account.holdings) if account.holdings else {}
        portfolio = svc.valuator.value(account.holdings, quotes)

    return jsonify({
        "success": True,
        "profile": account.profile(),
        "portfolio": portfolio.to_dict(),
    })


@api.route("/transaction", methods=["POST"])
def transaction():
    svc = services()
    trade = TradeRequest.model_validate(json_body())

    with error_context("transaction", {
        "user_id": trade.account_id(svc.config.ledger.default_user_id),
        "action": trade.action,
        "asset_id": trade.asset_id,
    }, logger):
        result = svc.engine.execute(trade)

    return jsonify(result.to_response())


@api.route("/chat", methods=["POST"])
def chat():
    body = json_body()
    message = body.get("message") or ""
    if not isinstance(message, str):
        raise ValidationError("message must be a string", field_name="message", actual_value=message)
    return jsonify({"success": True, "reply": services().chat.reply(message)})


@api.route("/health", methods=["GET"])
def health():
    svc = services()
    return jsonify({
        "success": True,
        "status": "ok",
        "environment": svc.config.environment.value,
        "accounts": len(svc.store),
    })


def handle_coinsim_error(error: CoinsimError):
    status = status_for(error)
    # Upstream API failures are logged by their clients
    if status >= 500 and not isinstance(error, APIError):
        logger.error(f"{error.__class__.__name__}: {error}")
    return error_response(error.message, status)


def handle_request_validation(error: pydantic.ValidationError):
    details = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in error.errors()
    )
    return error_response(f"Invalid request body: {details}", 400)


def handle_http_exception(error: HTTPException):
    return error_response(error.description or error.name, error.code or 500)


def handle_unexpected(error: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.path}")
    return error_response(str(error) or error.__class__.__name__, 500)


def create_app(config: Optional[Config] = None,
               store: Optional[UserStore] = None,
               feed=None,
               chat_proxy: Optional[ChatProxy] = None) -> Flask:
    """
    Build the Flask application.

    Args:
        config: Service configuration; loaded from the environment if omitted
        store: Account store; seeded with the demo account if omitted
        feed: Price feed; a CoinGecko client built from ``config.feed`` if omitted
        chat_proxy: Chat backend; built from ``config.chat`` if omitted

    Returns:
        Configured Flask app with the /api blueprint registered
    """
    config = config or load_config()
    store = store if store is not None else UserStore(
        serialize_mutations=config.ledger.serialize_mutations
    )
    feed = feed or CoinGeckoClient.from_config(config.feed)

    app = Flask(__name__)
    app.json.sort_keys = False
    CORS(app, origins=config.server.cors_origins)

    app.extensions["coinsim"] = Services(
        config=config,
        store=store,
        feed=feed,
        valuator=PortfolioValuator(config.ledger.missing_price_policy),
        engine=TradeEngine(store, feed, default_user_id=config.ledger.default_user_id),
        chat=chat_proxy or ChatProxy.from_config(config, store),
    )

    app.register_blueprint(api)
    app.register_error_handler(CoinsimError, handle_coinsim_error)
    app.register_error_handler(pydantic.ValidationError, handle_request_validation)
    app.register_error_handler(HTTPException, handle_http_exception)
    app.register_error_handler(Exception, handle_unexpected)

    logger.info(f"coinsim app created ({config.environment.value}, {len(store)} accounts)")
    return app


def run_server(config: Config, host: Optional[str] = None, port: Optional[int] = None):
    """Run the development server until interrupted."""
    app = create_app(config)
    host = host or config.server.host
    port = port or config.server.port
    logger.info(f"Backend running on {host}:{port}")
    app.run(host=host, port=port, debug=config.server.debug, threaded=True)
