"""
Reconcile context management for the SPI operator.

Every reconcile runs inside a ReconcileContext. The context carries the
deadline and the cancellation signal handed to every call into the cluster
API, the token storage and the service providers, and is kept in thread-local
storage so logging can stamp the resource being reconciled on each record.
"""

import threading
import time
import uuid
from contextlib import contextmanager
from typing import Any, Generator, Optional

from ..exceptions import ReconcileCancelledError, clear_correlation_id, set_correlation_id


class ReconcileContext:
    """Deadline and cancellation of a single reconcile."""

    _thread_local = threading.local()

    def __init__(
        self,
        controller: str,
        request: Any,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.controller = controller
        self.request = request
        self.reconcile_id = str(uuid.uuid4())
        self.deadline = time.monotonic() + timeout if timeout else None
        self.cancel_event = cancel_event or threading.Event()

    @classmethod
    def background(cls, controller: str = "background") -> "ReconcileContext":
        """Context without deadline, used outside of reconciles (watches, setup)."""
        return cls(controller, request=None)

    def remaining(self) -> Optional[float]:
        """Seconds left until the deadline, None when there is no deadline."""
        if self.deadline is None:
            return None
        return max(self.deadline - time.monotonic(), 0.0)

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set() or self.expired

    def cancel(self) -> None:
        self.cancel_event.set()

    def check(self, operation: Optional[str] = None) -> None:
        """
        Raise if the reconcile must not go on.

        Args:
            operation: What was about to happen, recorded on the error

        Raises:
            ReconcileCancelledError: If the deadline passed or shutdown started
        """
        if self.cancel_event.is_set():
            raise ReconcileCancelledError(
                "Reconcile cancelled by shutdown",
                operation=operation,
                controller=self.controller,
                request=str(self.request),
            )
        if self.expired:
            raise ReconcileCancelledError(
                "Reconcile deadline exceeded",
                operation=operation,
                controller=self.controller,
                request=str(self.request),
            )

    @classmethod
    def get_current(cls) -> Optional["ReconcileContext"]:
        return getattr(cls._thread_local, "context", None)

    @classmethod
    def _set_current(cls, ctx: "ReconcileContext") -> None:
        cls._thread_local.context = ctx

    @classmethod
    def _clear_current(cls) -> None:
        if hasattr(cls._thread_local, "context"):
            delattr(cls._thread_local, "context")


@contextmanager
def reconcile_scope(ctx: ReconcileContext) -> Generator[ReconcileContext, None, None]:
    """
    Make ctx the current reconcile of this thread.

    The reconcile id doubles as the correlation id of every error raised
    inside the scope.
    """
    previous = ReconcileContext.get_current()
    ReconcileContext._set_current(ctx)
    set_correlation_id(ctx.reconcile_id)
    try:
        yield ctx
    finally:
        if previous is not None:
            ReconcileContext._set_current(previous)
            set_correlation_id(previous.reconcile_id)
        else:
            ReconcileContext._clear_current()
            clear_correlation_id()
