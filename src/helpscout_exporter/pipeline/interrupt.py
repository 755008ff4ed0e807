"""Cooperative handling of termination signals during an export."""

from __future__ import annotations

import logging
import signal
from types import FrameType
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class InterruptHandler:
    """Record termination signals so the exporter can stop at a safe point.

    The signal handler itself only sets a flag. The exporter polls
    ``requested`` between page fetches and performs the finalizing flush from
    normal control flow, so a signal never lands in the middle of a write.
    """

    def __init__(self, signals: tuple[signal.Signals, ...] = DEFAULT_SIGNALS) -> None:
        self._signals = signals
        self._previous: dict[signal.Signals, Any] = {}
        self._received: signal.Signals | None = None

    @property
    def requested(self) -> bool:
        return self._received is not None

    @property
    def signal_name(self) -> str | None:
        return self._received.name if self._received is not None else None

    def check(self) -> bool:
        """Return True if a termination signal is pending."""
        return self.requested

    def request(self, signum: int) -> None:
        """Mark an interrupt as pending, as if ``signum`` had been delivered."""
        if self._received is None:
            self._received = signal.Signals(signum)

    def install(self) -> None:
        """Register the handler for every configured signal."""
        for sig in self._signals:
            self._previous[sig] = signal.signal(sig, self._handle)

    def restore(self) -> None:
        """Reinstate whatever handlers were registered before ``install``."""
        for sig, previous in self._previous.items():
            signal.signal(sig, previous)
        self._previous.clear()

    def _handle(self, signum: int, frame: FrameType | None) -> None:
        self.request(signum)

    def __enter__(self) -> InterruptHandler:
        self.install()
        return self

    def __exit__(self, *args: object) -> None:
        self.restore()
