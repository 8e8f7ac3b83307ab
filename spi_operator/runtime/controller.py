"""
Controller: a reconciler, its work queue and the worker threads draining it.
"""

import threading
from typing import List, Optional

from ..config import ControllerConfig, get_config
from ..constants import Timeouts
from ..context.operation_context import OperationHandler
from ..context.reconcile_context import ReconcileContext, reconcile_scope
from ..enums import ErrorKind
from ..exceptions import BaseError, classify_error
from ..utils.logger import get_logger
from .reconciler import ReconcileResult, Reconciler, Request
from .workqueue import WorkQueue


class Controller:
    """
    Runs a reconciler for the requests put on its queue.

    Outcome of a reconcile:
    - infrastructure error: requeued with backoff
    - content or configuration error: logged, not retried
    - result.requeue_after: requeued after the delay
    - result.requeue: requeued with backoff
    - otherwise the backoff of the request is reset
    """

    def __init__(
        self,
        reconciler: Reconciler,
        name: Optional[str] = None,
        controller_config: Optional[ControllerConfig] = None,
        workers: Optional[int] = None,
    ):
        self.reconciler = reconciler
        self.name = name or reconciler.name
        self.config = controller_config or get_config().controller
        self.workers = workers or self.config.max_concurrent_reconciles
        self.queue = WorkQueue(
            self.name,
            backoff_base=self.config.retry_backoff_base,
            backoff_max=self.config.retry_backoff_max,
        )
        self.stop_event = threading.Event()
        self.logger = get_logger()
        self.operation_handler = OperationHandler(self.logger)
        self._threads: List[threading.Thread] = []

    def enqueue(self, request: Request) -> None:
        self.queue.add(request)

    def process_next(self, timeout: Optional[float] = None) -> bool:
        """
        Reconcile the next request of the queue.

        Returns:
            False if no request arrived within timeout or the queue is shut down
        """
        request = self.queue.get(timeout)
        if request is None:
            return False
        try:
            self._reconcile(request)
        finally:
            self.queue.done(request)
        return True

    def _reconcile(self, request: Request) -> None:
        ctx = ReconcileContext(
            self.name,
            request,
            timeout=self.config.reconcile_timeout_seconds,
            cancel_event=self.stop_event,
        )
        with reconcile_scope(ctx):
            try:
                with self.operation_handler.operation(f"{self.name}.reconcile", resource=str(request)):
                    result = self.reconciler.reconcile(ctx, request)
            except Exception as e:
                self._handle_error(request, e)
                return
        self._handle_result(request, result)

    def _handle_error(self, request: Request, error: Exception) -> None:
        kind = classify_error(error)
        extra = {
            "controller": self.name,
            "request": str(request),
            "error_kind": kind.value,
            "error_type": type(error).__name__,
        }
        if isinstance(error, BaseError):
            extra["error_id"] = error.error_id

        if kind == ErrorKind.INFRASTRUCTURE:
            delay = self.queue.add_rate_limited(request)
            self.logger.warning(
                f"Reconcile failed, retrying in {delay}s: {error}",
                extra={**extra, "retries": self.queue.num_requeues(request)},
            )
        else:
            self.queue.forget(request)
            self.logger.error(f"Reconcile failed, not retrying: {error}", extra=extra)

    def _handle_result(self, request: Request, result: Optional[ReconcileResult]) -> None:
        if result is None:
            result = ReconcileResult.done()

        if result.requeue_after is not None:
            self.queue.forget(request)
            self.queue.add_after(request, result.requeue_after)
        elif result.requeue:
            self.queue.add_rate_limited(request)
        else:
            self.queue.forget(request)

    def _worker(self) -> None:
        while not self.stop_event.is_set():
            self.process_next(timeout=0.5)

    def start(self) -> None:
        self.logger.info(
            "Starting controller", extra={"controller": self.name, "workers": self.workers}
        )
        for i in range(self.workers):
            thread = threading.Thread(
                target=self._worker, name=f"{self.name}-worker-{i}", daemon=True
            )
            thread.start()
            self._threads.append(thread)

    def stop(self, timeout: float = Timeouts.SHUTDOWN_GRACE_PERIOD) -> None:
        self.stop_event.set()
        self.queue.shutdown()
        for thread in self._threads:
            thread.join(timeout)
        self._threads.clear()
        self.logger.info("Stopped controller", extra={"controller": self.name})
