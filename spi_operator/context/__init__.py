"""Context management for reconciles and operations."""

from .operation_context import OperationContext, OperationHandler
from .reconcile_context import ReconcileContext, reconcile_scope

__all__ = ["OperationContext", "OperationHandler", "ReconcileContext", "reconcile_scope"]
