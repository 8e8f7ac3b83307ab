"""
Types shared by reconcilers and the controller runtime.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from ..context.reconcile_context import ReconcileContext


@dataclass(frozen=True, order=True)
class Request:
    """Identity of the object a reconcile is about."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


class ReconcileResult(BaseModel):
    """
    What the controller should do with the request after a successful reconcile.
    """

    requeue: bool = Field(default=False, description="Requeue with backoff")
    requeue_after: Optional[float] = Field(
        default=None, ge=0, description="Requeue after this many seconds"
    )

    @classmethod
    def done(cls) -> "ReconcileResult":
        return cls()

    @classmethod
    def retry(cls) -> "ReconcileResult":
        """Requeue with the backoff of the work queue."""
        return cls(requeue=True)

    @classmethod
    def after(cls, seconds: float) -> "ReconcileResult":
        return cls(requeue_after=seconds)


class Reconciler(ABC):
    """
    Brings the cluster in line with one object.

    reconcile is called with the identity of the object only and must fetch
    the current state itself. It must be idempotent: the same inputs yield the
    same writes. Raising an error classified as infrastructure requeues the
    request with backoff.
    """

    name: str = "reconciler"

    @abstractmethod
    def reconcile(self, ctx: "ReconcileContext", request: Request) -> ReconcileResult:
        pass
