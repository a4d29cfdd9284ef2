"""Minimal observer primitive with explicit subscription tokens."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Slot = Callable[[Any, T], None]


class Subscription:
    """Cancellation token returned by Signal.connect."""

    __slots__ = ("_signal", "_slot")

    def __init__(self, signal: Signal[Any], slot: Slot[Any]) -> None:
        self._signal: Signal[Any] | None = signal
        self._slot = slot

    @property
    def active(self) -> bool:
        return self._signal is not None

    def cancel(self) -> None:
        """Disconnect the slot. Safe to call more than once."""
        if self._signal is not None:
            self._signal._disconnect(self)
            self._signal = None


class Signal(Generic[T]):
    """A synchronous signal emitting (sender, args) to connected slots.

    Slots are called in connection order. A slot that raises is logged and
    the remaining slots still run.
    """

    def __init__(self, sender: Any = None) -> None:
        self._sender = sender
        self._subscriptions: list[Subscription] = []

    def connect(self, slot: Slot[T]) -> Subscription:
        subscription = Subscription(self, slot)
        self._subscriptions.append(subscription)
        return subscription

    def _disconnect(self, subscription: Subscription) -> None:
        try:
            self._subscriptions.remove(subscription)
        except ValueError:
            pass

    def emit(self, args: T) -> None:
        for subscription in list(self._subscriptions):
            try:
                subscription._slot(self._sender, args)
            except Exception:
                logger.exception(f"Signal slot {subscription._slot!r} raised")

    def disconnect_all(self) -> None:
        for subscription in list(self._subscriptions):
            subscription.cancel()

    def __len__(self) -> int:
        return len(self._subscriptions)
