from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Tuple, Union

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntriesAdded:
    identities: Tuple[str, ...]


@dataclass(frozen=True)
class Refunded:
    identity: str


@dataclass(frozen=True)
class FeeAccountChanged:
    identity: str


Observation = Union[EntriesAdded, Refunded, FeeAccountChanged]
Subscriber = Callable[[Observation], None]


class EventBus:
    """Keeps every observation and forwards it to subscribers in order."""

    def __init__(self) -> None:
        self.history: List[Observation] = []
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        self._subscribers.remove(callback)

    def emit(self, event: Observation) -> None:
        self.history.append(event)
        log.debug("Event %s", event)
        # The ledger change is already committed; a failing subscriber
        # must not surface as a failed operation.
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                log.exception("Subscriber %r failed on %s", callback, event)
