"""
Contract of the access to the cluster API used by the controllers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, Generic, List, Optional, Type, TypeVar

from ..constants import WatchEventType
from ..exceptions import ResourceNotFoundError
from ..schemas.common import KubernetesObject

if TYPE_CHECKING:
    import threading

    from ..context.reconcile_context import ReconcileContext

T = TypeVar("T", bound=KubernetesObject)


@dataclass
class WatchEvent(Generic[T]):
    type: WatchEventType
    object: T


WatchCallback = Callable[[WatchEvent], None]


class ResourceClient(ABC):
    """
    Typed access to cluster objects.

    Objects are exchanged as KubernetesObject models; the model class decides
    which resource type a call addresses. Every call made during a reconcile
    takes the ReconcileContext so it is bounded by the reconcile deadline.

    Failures are raised as ResourceNotFoundError, ResourceConflictError or
    KubernetesApiError.
    """

    @abstractmethod
    def get(self, ctx: "ReconcileContext", model: Type[T], namespace: str, name: str) -> T:
        pass

    @abstractmethod
    def list(
        self,
        ctx: "ReconcileContext",
        model: Type[T],
        namespace: Optional[str] = None,
        labels: Optional[Dict[str, str]] = None,
    ) -> List[T]:
        """List objects, in all namespaces when namespace is empty."""
        pass

    @abstractmethod
    def create(self, ctx: "ReconcileContext", obj: T) -> T:
        pass

    @abstractmethod
    def update(self, ctx: "ReconcileContext", obj: T) -> T:
        """Replace spec and metadata. Fails with a conflict on a stale resourceVersion."""
        pass

    @abstractmethod
    def update_status(self, ctx: "ReconcileContext", obj: T) -> T:
        """Replace the status subresource."""
        pass

    @abstractmethod
    def delete(self, ctx: "ReconcileContext", model: Type[T], namespace: str, name: str) -> None:
        pass

    @abstractmethod
    def watch(
        self,
        model: Type[T],
        namespace: Optional[str],
        on_event: WatchCallback,
        stop_event: "threading.Event",
    ) -> None:
        """
        Deliver events of the resource type to on_event until stop_event is set.

        Existing objects are delivered as ADDED first.
        """
        pass

    def find(
        self, ctx: "ReconcileContext", model: Type[T], namespace: str, name: str
    ) -> Optional[T]:
        """Like get, but None when the object does not exist."""
        try:
            return self.get(ctx, model, namespace, name)
        except ResourceNotFoundError:
            return None
