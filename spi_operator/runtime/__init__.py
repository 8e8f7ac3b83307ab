"""Controller runtime: work queue, controllers and their manager."""

from .controller import Controller
from .manager import ControllerManager, own_request
from .reconciler import ReconcileResult, Reconciler, Request
from .workqueue import WorkQueue

__all__ = [
    "Controller",
    "ControllerManager",
    "own_request",
    "ReconcileResult",
    "Reconciler",
    "Request",
    "WorkQueue",
]
