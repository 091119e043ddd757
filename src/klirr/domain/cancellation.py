"""Cooperative cancellation between pipeline steps."""

import threading

from klirr.domain.errors import Cancelled


class CancellationToken:
    """Flag checked between pipeline steps and between FX fetches.

    In-flight HTTP requests are not interrupted; they complete or time out.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, step: str) -> None:
        if self._event.is_set():
            raise Cancelled(f"Cancelled before {step}")
