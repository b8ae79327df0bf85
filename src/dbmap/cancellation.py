"""
Cooperative cancellation for executor calls.

A token is checked at every suspension point of a call: before the
connection is opened, before the statement runs, and before each row fetch
of a stream. Callbacks registered on the token run when it is cancelled,
which lets a running statement be interrupted from another thread. A token
with a timeout fires itself when the deadline passes.
"""
import logging
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from dbmap.exceptions import OperationCancelled

__all__ = ['CancellationToken', 'cancellable', 'raise_if_cancelled']

logger = logging.getLogger(__name__)


class CancellationToken:
    """Signal shared between the caller and one or more executor calls.

    Args:
        timeout: Optional number of seconds after which the token cancels
            itself, interrupting any statement registered on it.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []
        self._deadline = None
        self._timer: threading.Timer | None = None
        if timeout is not None:
            self._deadline = time.monotonic() + timeout
            self._timer = threading.Timer(timeout, self.cancel)
            self._timer.daemon = True
            self._timer.start()

    def __repr__(self) -> str:
        return f'CancellationToken(cancelled={self.cancelled})'

    @property
    def cancelled(self) -> bool:
        """True once cancel() was called or the timeout elapsed."""
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self.cancel()
            return True
        return False

    def cancel(self) -> None:
        """Fire the token and run registered callbacks once.
        """
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
        logger.debug(f'Cancellation requested, notifying {len(callbacks)} callback(s)')
        for callback in callbacks:
            callback()

    def close(self) -> None:
        """Stop the timeout timer without firing the token."""
        with self._lock:
            timer, self._timer = self._timer, None
            self._deadline = None
        if timer is not None:
            timer.cancel()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the token fires. Returns False if `timeout` elapsed first."""
        return self._event.wait(timeout)

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelled if the token has fired.
        """
        if self.cancelled:
            raise OperationCancelled('Operation was cancelled')

    @contextmanager
    def register(self, callback: Callable[[], None]) -> Iterator[None]:
        """Run `callback` if the token fires while the block is active.

        If the token has already fired the callback runs immediately.
        """
        with self._lock:
            fired = self._event.is_set()
            if not fired:
                self._callbacks.append(callback)
        if fired:
            callback()
        try:
            yield
        finally:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)


def raise_if_cancelled(cancel: CancellationToken | None) -> None:
    """Check an optional token."""
    if cancel is not None:
        cancel.raise_if_cancelled()


@contextmanager
def cancellable(cancel: CancellationToken | None,
                interrupt: Callable[[], None]) -> Iterator[None]:
    """Run a blocking driver call as a suspension point of `cancel`.

    The token is checked before the block, and `interrupt` is called if it
    fires while the block runs. A driver error raised because of that
    interruption is reported as OperationCancelled. A driver call that
    completed keeps its result; the next suspension point reports the
    cancellation.
    """
    if cancel is None:
        yield
        return
    cancel.raise_if_cancelled()
    try:
        with cancel.register(interrupt):
            yield
    except OperationCancelled:
        raise
    except Exception as err:
        if cancel.cancelled:
            raise OperationCancelled('Operation was cancelled') from err
        raise
