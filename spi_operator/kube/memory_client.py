"""
In-memory ResourceClient with the semantics of the cluster API the
controllers rely on: generateName, uid and resourceVersion bookkeeping,
optimistic concurrency, finalizer-gated deletion, label selectors,
owner-reference cascade and watch events.

Used by the test suite and for local development without a cluster.
"""

import copy
import random
import threading
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple, Type

from ..constants import WatchEventType
from ..exceptions import conflict, not_found
from ..schemas.common import KubernetesObject, ResourceKind
from .client import ResourceClient, T, WatchCallback, WatchEvent

if TYPE_CHECKING:
    from ..context.reconcile_context import ReconcileContext

_NAME_SUFFIX_ALPHABET = "bcdfghjklmnpqrstvwxz2456789"

ObjectKey = Tuple[str, str]
PendingEvent = Tuple[ResourceKind, WatchEventType, Dict[str, Any]]


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _copy(data: Dict[str, Any]) -> Dict[str, Any]:
    return copy.deepcopy(data)


class InMemoryResourceClient(ResourceClient):
    def __init__(self):
        self._objects: Dict[ResourceKind, Dict[ObjectKey, Dict[str, Any]]] = defaultdict(dict)
        self._models: Dict[ResourceKind, Type[KubernetesObject]] = {}
        self._listeners: Dict[ResourceKind, List[Tuple[Optional[str], WatchCallback]]] = defaultdict(list)
        self._lock = threading.RLock()
        self._resource_version = 0

    # ==================== HELPERS ====================

    def _next_version(self) -> str:
        self._resource_version += 1
        return str(self._resource_version)

    @staticmethod
    def _generate_name(prefix: str) -> str:
        suffix = "".join(random.choice(_NAME_SUFFIX_ALPHABET) for _ in range(5))
        return f"{prefix}{suffix}"

    @staticmethod
    def _matches(data: Dict[str, Any], labels: Optional[Dict[str, str]]) -> bool:
        if not labels:
            return True
        actual = data.get("metadata", {}).get("labels") or {}
        return all(actual.get(k) == v for k, v in labels.items())

    def _stored(self, model: Type[T], namespace: str, name: str) -> Dict[str, Any]:
        data = self._objects[model.resource_kind].get((namespace or "", name))
        if data is None:
            raise not_found(model.resource_kind.kind, namespace=namespace, name=name)
        return data

    def _check_version(self, obj: KubernetesObject, stored: Dict[str, Any]) -> None:
        expected = obj.metadata.resource_version
        actual = stored["metadata"].get("resourceVersion")
        if expected and expected != actual:
            raise conflict(
                obj.resource_kind.kind,
                f"resourceVersion {expected} is stale, current is {actual}",
                namespace=obj.namespace,
                name=obj.name,
            )

    def _remove(self, rk: ResourceKind, key: ObjectKey, events: List[PendingEvent]) -> None:
        """Remove an object and, recursively, everything it owns."""
        data = self._objects[rk].pop(key, None)
        if data is None:
            return
        events.append((rk, WatchEventType.DELETED, _copy(data)))

        uid = data["metadata"].get("uid")
        for other_rk, objects in list(self._objects.items()):
            for other_key, other in list(objects.items()):
                owners = other.get("metadata", {}).get("ownerReferences") or []
                if any(ref.get("uid") == uid for ref in owners):
                    self._delete_locked(other_rk, other_key, events)

    def _delete_locked(self, rk: ResourceKind, key: ObjectKey, events: List[PendingEvent]) -> None:
        data = self._objects[rk].get(key)
        if data is None:
            return
        meta = data["metadata"]
        if meta.get("finalizers"):
            if not meta.get("deletionTimestamp"):
                meta["deletionTimestamp"] = _now()
                meta["resourceVersion"] = self._next_version()
                events.append((rk, WatchEventType.MODIFIED, _copy(data)))
            return
        self._remove(rk, key, events)

    def _dispatch(self, events: List[PendingEvent]) -> None:
        for rk, event_type, data in events:
            model = self._models.get(rk)
            if model is None:
                continue
            namespace = data.get("metadata", {}).get("namespace") or ""
            with self._lock:
                listeners = list(self._listeners[rk])
            for listener_namespace, callback in listeners:
                if listener_namespace and listener_namespace != namespace:
                    continue
                callback(WatchEvent(type=event_type, object=model.from_k8s(_copy(data))))

    def _register(self, model: Type[KubernetesObject]) -> None:
        self._models.setdefault(model.resource_kind, model)

    # ==================== OPERATIONS ====================

    def get(self, ctx: "ReconcileContext", model: Type[T], namespace: str, name: str) -> T:
        if ctx is not None:
            ctx.check(f"get {model.resource_kind.kind}")
        with self._lock:
            return model.from_k8s(_copy(self._stored(model, namespace, name)))

    def list(
        self,
        ctx: "ReconcileContext",
        model: Type[T],
        namespace: Optional[str] = None,
        labels: Optional[Dict[str, str]] = None,
    ) -> List[T]:
        if ctx is not None:
            ctx.check(f"list {model.resource_kind.kind}")
        with self._lock:
            return [
                model.from_k8s(_copy(data))
                for (ns, _), data in sorted(self._objects[model.resource_kind].items())
                if (not namespace or ns == namespace) and self._matches(data, labels)
            ]

    def create(self, ctx: "ReconcileContext", obj: T) -> T:
        if ctx is not None:
            ctx.check(f"create {obj.resource_kind.kind}")
        model = type(obj)
        rk = model.resource_kind
        events: List[PendingEvent] = []

        with self._lock:
            self._register(model)
            data = obj.to_k8s()
            meta = data.setdefault("metadata", {})
            namespace = meta.get("namespace") or ""

            if not meta.get("name"):
                if not meta.get("generateName"):
                    raise conflict(rk.kind, "name or generateName is required", namespace=namespace)
                while True:
                    candidate = self._generate_name(meta["generateName"])
                    if (namespace, candidate) not in self._objects[rk]:
                        break
                meta["name"] = candidate

            key = (namespace, meta["name"])
            if key in self._objects[rk]:
                raise conflict(rk.kind, "already exists", namespace=namespace, name=meta["name"])

            meta["uid"] = str(uuid.uuid4())
            meta["resourceVersion"] = self._next_version()
            meta["creationTimestamp"] = _now()
            meta.pop("deletionTimestamp", None)

            self._objects[rk][key] = data
            events.append((rk, WatchEventType.ADDED, _copy(data)))
            result = model.from_k8s(_copy(data))

        self._dispatch(events)
        return result

    def update(self, ctx: "ReconcileContext", obj: T) -> T:
        if ctx is not None:
            ctx.check(f"update {obj.resource_kind.kind}")
        model = type(obj)
        rk = model.resource_kind
        events: List[PendingEvent] = []

        with self._lock:
            stored = self._stored(model, obj.namespace, obj.name)
            self._check_version(obj, stored)

            data = obj.to_k8s()
            meta = data.setdefault("metadata", {})
            stored_meta = stored["metadata"]
            for preserved in ("uid", "creationTimestamp", "deletionTimestamp"):
                if preserved in stored_meta:
                    meta[preserved] = stored_meta[preserved]
                else:
                    meta.pop(preserved, None)
            if "status" in stored:
                data["status"] = stored["status"]
            else:
                data.pop("status", None)
            meta["resourceVersion"] = self._next_version()

            key = (obj.namespace, obj.name)
            self._objects[rk][key] = data
            if meta.get("deletionTimestamp") and not meta.get("finalizers"):
                self._remove(rk, key, events)
            else:
                events.append((rk, WatchEventType.MODIFIED, _copy(data)))
            result = model.from_k8s(_copy(data))

        self._dispatch(events)
        return result

    def update_status(self, ctx: "ReconcileContext", obj: T) -> T:
        if ctx is not None:
            ctx.check(f"update status {obj.resource_kind.kind}")
        model = type(obj)
        rk = model.resource_kind

        with self._lock:
            stored = self._stored(model, obj.namespace, obj.name)
            self._check_version(obj, stored)

            data = _copy(stored)
            status = obj.to_k8s().get("status")
            if status is None:
                data.pop("status", None)
            else:
                data["status"] = status
            data["metadata"]["resourceVersion"] = self._next_version()

            self._objects[rk][(obj.namespace, obj.name)] = data
            result = model.from_k8s(_copy(data))

        self._dispatch([(rk, WatchEventType.MODIFIED, _copy(data))])
        return result

    def delete(self, ctx: "ReconcileContext", model: Type[T], namespace: str, name: str) -> None:
        if ctx is not None:
            ctx.check(f"delete {model.resource_kind.kind}")
        events: List[PendingEvent] = []
        with self._lock:
            self._stored(model, namespace, name)
            self._delete_locked(model.resource_kind, (namespace or "", name), events)
        self._dispatch(events)

    def watch(
        self,
        model: Type[T],
        namespace: Optional[str],
        on_event: WatchCallback,
        stop_event: threading.Event,
    ) -> None:
        rk = model.resource_kind
        entry = (namespace, on_event)
        with self._lock:
            self._register(model)
            existing = [
                data
                for (ns, _), data in sorted(self._objects[rk].items())
                if not namespace or ns == namespace
            ]
            self._listeners[rk].append(entry)

        try:
            for data in existing:
                on_event(WatchEvent(type=WatchEventType.ADDED, object=model.from_k8s(_copy(data))))
            stop_event.wait()
        finally:
            with self._lock:
                self._listeners[rk].remove(entry)

