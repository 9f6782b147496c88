from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable, Dict, Optional

from .errors import InsufficientFunds

log = logging.getLogger(__name__)

# Called after the recipient has been credited. Returning False rejects the
# transfer; raising aborts it. Hooks may call back into a ledger.
ReceiveHook = Callable[[str, int], Optional[bool]]


class Treasury:
    """
    In-memory account balances (raw units).

    A transfer credits the recipient and then runs the recipient's receive
    hook, if one is registered. That hook is arbitrary external code: it
    runs before the caller of `transfer` regains control.
    """

    def __init__(self) -> None:
        self._balances: Dict[str, int] = defaultdict(int)
        self._hooks: Dict[str, ReceiveHook] = {}

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def deposit(self, account: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("Cannot deposit a negative amount.")
        self._balances[account] += amount

    def set_receive_hook(self, account: str, hook: ReceiveHook | None) -> None:
        if hook is None:
            self._hooks.pop(account, None)
        else:
            self._hooks[account] = hook

    def transfer(self, source: str, target: str, amount: int) -> bool:
        """
        Move `amount` from source to target. Returns False when the
        recipient's hook rejects the funds (balances are restored).
        """
        if amount < 0:
            raise ValueError("Cannot transfer a negative amount.")
        balance = self.balance_of(source)
        if balance < amount:
            raise InsufficientFunds(source, balance, amount)

        self._balances[source] -= amount
        self._balances[target] += amount

        hook = self._hooks.get(target)
        if hook is None:
            return True

        try:
            accepted = hook(source, amount)
        except BaseException:
            self._revert(source, target, amount)
            raise

        if accepted is False:
            log.debug("Transfer %s -> %s (%d) rejected by recipient", source, target, amount)
            self._revert(source, target, amount)
            return False
        return True

    def _revert(self, source: str, target: str, amount: int) -> None:
        self._balances[target] -= amount
        self._balances[source] += amount
