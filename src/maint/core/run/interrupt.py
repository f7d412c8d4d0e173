"""
Cancellation signals for an automation run.

The run checks for cancellation between items: the item in flight is
finished, no new item is started, and the partial report is returned.

Two signal sources are provided:

- CancellationToken: programmatic, for schedulers and tests
- InterruptHandler: SIGINT/SIGTERM, for the CLI. A second signal
  force-exits with status 130.
"""

from __future__ import annotations

import logging
import signal
import sys
import threading
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class Cancellation(Protocol):
    @property
    def cancelled(self) -> bool: ...


class CancellationToken:
    """Thread-safe cancellation flag."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class InterruptHandler:
    """
    Turns SIGINT/SIGTERM into a cooperative cancellation.

    Usage:
        >>> handler = InterruptHandler()
        >>> handler.register()
        >>> try:
        ...     run_automation(..., cancellation=handler)
        ... finally:
        ...     handler.unregister()
    """

    def __init__(self) -> None:
        self._interrupted = False
        self._original_sigint: Any = None
        self._original_sigterm: Any = None

    @property
    def cancelled(self) -> bool:
        return self._interrupted

    def register(self) -> None:
        self._original_sigint = signal.signal(signal.SIGINT, self._handle_signal)
        self._original_sigterm = signal.signal(signal.SIGTERM, self._handle_signal)

    def unregister(self) -> None:
        if self._original_sigint is not None:
            signal.signal(signal.SIGINT, self._original_sigint)
            self._original_sigint = None
        if self._original_sigterm is not None:
            signal.signal(signal.SIGTERM, self._original_sigterm)
            self._original_sigterm = None

    def _handle_signal(self, signum: int, frame: object) -> None:
        if self._interrupted:
            sys.stderr.write("\n[Force exiting...]\n")
            sys.stderr.flush()
            raise SystemExit(130)

        self._interrupted = True
        logger.info(f"Received signal {signum}, stopping after the current item")
        sys.stderr.write("\n[Interrupt received. Finishing current work item...]\n")
        sys.stderr.flush()
