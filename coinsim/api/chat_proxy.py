"""
Chat endpoint backend.

Passes messages through to the Google Generative Language API when an
API key is configured. Without a key it answers from simple rules so
the endpoint still works in a demo.
"""

import re
from typing import Any, Optional

import requests

from ..core.user_store import UserStore
from ..utils.exceptions import AccountNotFoundError, ChatProxyError
from ..utils.logging_config import LoggerMixin

BALANCE_PATTERN = re.compile(r"balance|tổng", re.IGNORECASE)

NOT_CONFIGURED_REPLY = (
    "The chat API is not configured (GEMINI_API_KEY is missing). "
    "You can ask: 'What is my balance?'"
)
NO_MODEL_REPLY = "Sorry, the model returned no response."


class ChatProxy(LoggerMixin):
    """Forwards chat messages to a generative-text model."""

    def __init__(self, store: UserStore, default_user_id: str,
                 api_key: Optional[str] = None,
                 model: str = "models/gemini-2.5-flash",
                 base_url: str = "https://generativelanguage.googleapis.com/v1",
                 timeout: float = 20.0):
        self.store = store
        self.default_user_id = default_user_id
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @classmethod
    def from_config(cls, config, store: UserStore) -> "ChatProxy":
        return cls(
            store=store,
            default_user_id=config.ledger.default_user_id,
            api_key=config.chat.api_key,
            model=config.chat.model,
            base_url=config.chat.base_url,
            timeout=config.chat.timeout,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/{self.model}:generateContent"

    def reply(self, message: str) -> str:
        """Answer a chat message, from the model when configured."""
        message = message or ""
        if not self.configured:
            return self.fallback_reply(message)
        return self._generate(message)

    def fallback_reply(self, message: str) -> str:
        if BALANCE_PATTERN.search(message):
            try:
                account = self.store.get(self.default_user_id)
            except AccountNotFoundError:
                self.logger.warning(f"Default user {self.default_user_id} missing for balance reply")
                return NOT_CONFIGURED_REPLY
            return f"Your simulated balance is ${account.balance_usd:.2f}."
        return NOT_CONFIGURED_REPLY

    def _generate(self, message: str) -> str:
        body = {"contents": [{"parts": [{"text": message}]}]}
        # Key goes in a header, never in the URL
        try:
            response = requests.post(
                self.endpoint,
                headers={"x-goog-api-key": self.api_key},
                json=body,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            self.logger.error(f"Generative API returned {status_code}")
            raise ChatProxyError(
                f"Generative API error {status_code}",
                status_code=status_code,
                endpoint=self.endpoint
            ) from e
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Generative API request failed ({e.__class__.__name__})")
            raise ChatProxyError("Generative API request failed", endpoint=self.endpoint) from e
        except ValueError as e:
            self.logger.error("Invalid JSON response from generative API")
            raise ChatProxyError("Invalid JSON response from generative API", endpoint=self.endpoint) from e

        return extract_reply(data) or NO_MODEL_REPLY


def extract_reply(data: Any) -> Optional[str]:
    """Pull ``candidates[0].content.parts[0].text`` out of a response body."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) and text else None
