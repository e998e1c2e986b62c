"""Session-scoped collection of live subscription handles."""
import logging
import threading
from typing import Protocol, TypeVar

logger = logging.getLogger(__name__)


class Cancellable(Protocol):
    def cancel(self) -> None: ...


H = TypeVar("H", bound=Cancellable)


class SubscriptionRegistry:
    """Holds every cancellation handle a user session opened.

    ``release_all()`` must run before the identity is cleared so no listener
    can fire against a session that is no longer authenticated.
    """

    def __init__(self):
        self._handles: list[Cancellable] = []
        self._lock = threading.Lock()

    def register(self, handle: H) -> H:
        with self._lock:
            self._handles.append(handle)
        return handle

    def release_all(self) -> int:
        """Cancel and forget every handle. Safe to call repeatedly."""
        with self._lock:
            handles, self._handles = self._handles, []
        for handle in handles:
            try:
                handle.cancel()
            except Exception:
                logger.exception("Failed to cancel subscription %r", handle)
        if handles:
            logger.info("Released %d live subscription(s)", len(handles))
        return len(handles)

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)

    def __enter__(self) -> "SubscriptionRegistry":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release_all()
