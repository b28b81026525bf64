"""Cooperative cancellation shared by every step of a cleanup run."""

import threading

from .error_handling import OperationCanceledError


class CancellationToken:
    """One-shot cancellation trigger.

    The token is set at most once per run, typically from a SIGINT handler,
    and polled by the cleaner before each top-level folder, each page fetch
    and each child item.
    """

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self.reason = None

    def cancel(self, reason: str = "Operation canceled by user.") -> bool:
        """Trigger the token.

        Returns:
            True if this call cancelled the token, False if it was already cancelled.
        """
        with self._lock:
            if self._event.is_set():
                return False
            self.reason = reason
            self._event.set()
            return True

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise OperationCanceledError if the token has been triggered."""
        if self._event.is_set():
            raise OperationCanceledError(self.reason or "Operation canceled.")
