"""
Cooperative cancellation for key lookups.

A CancellationToken is a thread-safe flag. Work checks it at well defined
points and raises OperationCancelledError when cancellation was requested.
"""
import asyncio
import threading
from typing import Optional


class OperationCancelledError(asyncio.CancelledError):
    """Raised when an operation observes a cancelled token."""


class CancellationToken:
    """Thread-safe cancellation flag shared between a caller and the work it starts."""

    def __init__(self) -> None:
        self._event = threading.Event()

    @classmethod
    def none(cls) -> "CancellationToken":
        """A fresh token nobody holds a reference to, so it is never cancelled."""
        return cls()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancellation_requested(self) -> bool:
        return self._event.is_set()

    def raise_if_cancellation_requested(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError("Operation was cancelled")

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancellation_requested})"


def ensure_token(token: Optional[CancellationToken]) -> CancellationToken:
    return token if token is not None else CancellationToken.none()
