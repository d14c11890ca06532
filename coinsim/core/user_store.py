"""
In-memory account store.

The store is created once by the service and handed to whoever needs it;
accounts live for the lifetime of the process and are lost on restart.
"""

import contextlib
import logging
import threading
from typing import Dict, Iterable, Iterator, List, Optional

from .models import Account
from ..utils.exceptions import AccountNotFoundError

logger = logging.getLogger(__name__)


def seed_accounts() -> List[Account]:
    """Demo accounts present at process start."""
    return [
        Account(
            user_id="FM10293",
            name="Minh Anh",
            balance_usd=2000.0,
            holdings={
                "bitcoin": 0.1,
                "ethereum": 1.0,
                "solana": 20.0,
            },
        ),
    ]


class UserStore:
    """
    Mapping from user id to :class:`Account` with one lock per account.

    With ``serialize_mutations=False`` the per-account lock is replaced by a
    no-op context, which reproduces the unguarded read-modify-write of a
    plain shared dict.
    """

    def __init__(self, accounts: Optional[Iterable[Account]] = None, serialize_mutations: bool = True):
        self.serialize_mutations = serialize_mutations
        self._accounts: Dict[str, Account] = {}
        self._locks: Dict[str, threading.RLock] = {}
        for account in (seed_accounts() if accounts is None else accounts):
            self.add(account)

    def add(self, account: Account):
        if account.user_id in self._accounts:
            raise ValueError(f"Duplicate account: {account.user_id}")
        self._accounts[account.user_id] = account
        self._locks[account.user_id] = threading.RLock()
        logger.debug(f"Account registered: {account.user_id}")

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._accounts

    def __len__(self) -> int:
        return len(self._accounts)

    def get(self, user_id: str) -> Account:
        """
        Return a snapshot of the account.

        Raises:
            AccountNotFoundError: If no account has this id
        """
        account = self._accounts.get(user_id)
        if account is None:
            raise AccountNotFoundError(user_id)
        with self._lock_for(user_id):
            return account.snapshot()

    @contextlib.contextmanager
    def locked(self, user_id: str) -> Iterator[Account]:
        """
        Yield the live account while holding its lock.

        Everything done inside the block is serialized with every other
        ``locked`` block for the same user.

        Raises:
            AccountNotFoundError: If no account has this id
        """
        account = self._accounts.get(user_id)
        if account is None:
            raise AccountNotFoundError(user_id)
        with self._lock_for(user_id):
            yield account

    def _lock_for(self, user_id: str):
        if not self.serialize_mutations:
            return contextlib.nullcontext()
        return self._locks[user_id]
