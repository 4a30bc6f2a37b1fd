"""Cancellation token threaded through a sync run."""

import threading


class SyncCancelledError(BaseException):
    """The sync run was cancelled before it finished.

    Like asyncio.CancelledError this is not an Exception subclass, so the
    engine's per-task ``except Exception`` handlers do not record it.
    """

    pass


class CancelToken:
    """Signal shared by every blocking call of one sync run.

    The engine, the central API client and the plugins call
    `raise_if_cancelled()` before each network or disk round trip, so a
    cancel from another thread stops the run at the next call boundary.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """Whether cancellation was requested."""
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise SyncCancelledError if cancellation was requested."""
        if self._event.is_set():
            raise SyncCancelledError("Sync cancelled")
