"""Identifier helpers for gateway transactions and line items."""
from __future__ import annotations

import re
import threading
import time
from typing import Callable


_WHITESPACE_RUN = re.compile(r"\s+")


def slugify_item_name(name: str) -> str:
    """Lower-case slug for a line item: whitespace runs collapse to one dash."""
    return _WHITESPACE_RUN.sub("-", name.strip()).lower()


class TransactionIdGenerator:
    """Builds `<order id>-<epoch millis>` identifiers.

    The gateway treats transaction identifiers as unique keys, so two calls
    with the same client order id must never collide, even when they land in
    the same millisecond. Timestamps are therefore kept strictly increasing
    per generator instance. Thread-safe; share one instance per process.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._last_ms = 0

    def next_timestamp(self) -> int:
        with self._lock:
            now_ms = int(self._clock() * 1000)
            if now_ms <= self._last_ms:
                now_ms = self._last_ms + 1
            self._last_ms = now_ms
            return now_ms

    def __call__(self, order_id: str) -> str:
        return f"{order_id}-{self.next_timestamp()}"


def split_transaction_id(transaction_id: str) -> str:
    """Recover the client order id from `<order id>-<millis>`.

    Identifiers without a numeric suffix are returned unchanged.
    """
    head, sep, tail = transaction_id.rpartition("-")
    if sep and head and tail.isdigit():
        return head
    return transaction_id
