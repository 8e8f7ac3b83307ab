"""
ResourceClient backed by the official kubernetes client.
"""

import threading
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Type

from kubernetes import client, config, watch
from kubernetes.client.exceptions import ApiException
from pydantic import ValidationError
from urllib3.exceptions import HTTPError

from ..config import KubernetesConfig, get_config
from ..constants import WatchEventType
from ..exceptions import KubernetesApiError, conflict, not_found
from ..schemas.common import KubernetesObject
from ..utils.logger import get_logger
from .client import ResourceClient, T, WatchCallback, WatchEvent

if TYPE_CHECKING:
    from ..context.reconcile_context import ReconcileContext


def load_api_client(kube_config: KubernetesConfig) -> client.ApiClient:
    """
    Build an ApiClient from in-cluster configuration or a kubeconfig file.

    With in_cluster unset, in-cluster configuration is tried first.
    """
    if kube_config.in_cluster:
        config.load_incluster_config()
    elif kube_config.in_cluster is False or kube_config.kubeconfig:
        config.load_kube_config(config_file=kube_config.kubeconfig)
    else:
        try:
            config.load_incluster_config()
        except config.ConfigException:
            config.load_kube_config()
    return client.ApiClient()


def selector(labels: Optional[Dict[str, str]]) -> Optional[str]:
    if not labels:
        return None
    return ",".join(f"{k}={v}" for k, v in sorted(labels.items()))


class KubernetesResourceClient(ResourceClient):
    """
    Custom resources go through CustomObjectsApi, Secrets through CoreV1Api.
    """

    def __init__(
        self,
        api_client: Optional[client.ApiClient] = None,
        kube_config: Optional[KubernetesConfig] = None,
    ):
        self.config = kube_config or get_config().kubernetes
        self.api_client = api_client or load_api_client(self.config)
        self.custom_api = client.CustomObjectsApi(self.api_client)
        self.core_api = client.CoreV1Api(self.api_client)
        self.logger = get_logger()

    # ==================== HELPERS ====================

    def _timeout(self, ctx: Optional["ReconcileContext"]) -> float:
        timeout = float(self.config.request_timeout_seconds)
        if ctx is not None:
            remaining = ctx.remaining()
            if remaining is not None:
                timeout = min(timeout, remaining)
        return timeout

    def _to_dict(self, obj: Any) -> Dict[str, Any]:
        if isinstance(obj, dict):
            return obj
        return self.api_client.sanitize_for_serialization(obj)

    def _call(
        self,
        ctx: Optional["ReconcileContext"],
        operation: str,
        model: Type[KubernetesObject],
        namespace: Optional[str],
        name: Optional[str],
        func: Callable[..., Any],
        *args,
        **kwargs,
    ) -> Any:
        if ctx is not None:
            ctx.check(f"{operation} {model.resource_kind.kind}")
        try:
            return func(*args, _request_timeout=self._timeout(ctx), **kwargs)
        except ApiException as e:
            kind = model.resource_kind.kind
            if e.status == 404:
                raise not_found(kind, cause=e, namespace=namespace, name=name) from e
            if e.status == 409:
                raise conflict(kind, e.reason or "conflict", cause=e, namespace=namespace, name=name) from e
            raise KubernetesApiError(
                f"{operation} of {kind} failed with status {e.status}: {e.reason}",
                cause=e,
                status=e.status,
                namespace=namespace,
                name=name,
            ) from e
        except HTTPError as e:
            raise KubernetesApiError(
                f"{operation} of {model.resource_kind.kind} failed: {e}",
                cause=e,
                namespace=namespace,
                name=name,
            ) from e

    @staticmethod
    def _is_core(model: Type[KubernetesObject]) -> bool:
        return model.resource_kind.group == ""

    # ==================== OPERATIONS ====================

    def get(self, ctx: "ReconcileContext", model: Type[T], namespace: str, name: str) -> T:
        rk = model.resource_kind
        if self._is_core(model):
            raw = self._call(
                ctx, "get", model, namespace, name, self.core_api.read_namespaced_secret, name, namespace
            )
        else:
            raw = self._call(
                ctx,
                "get",
                model,
                namespace,
                name,
                self.custom_api.get_namespaced_custom_object,
                rk.group,
                rk.version,
                namespace,
                rk.plural,
                name,
            )
        return model.from_k8s(self._to_dict(raw))

    def list(
        self,
        ctx: "ReconcileContext",
        model: Type[T],
        namespace: Optional[str] = None,
        labels: Optional[Dict[str, str]] = None,
    ) -> List[T]:
        rk = model.resource_kind
        label_selector = selector(labels)
        kwargs: Dict[str, Any] = {}
        if label_selector:
            kwargs["label_selector"] = label_selector

        if self._is_core(model):
            if namespace:
                raw = self._call(
                    ctx, "list", model, namespace, None,
                    self.core_api.list_namespaced_secret, namespace, **kwargs,
                )
            else:
                raw = self._call(
                    ctx, "list", model, None, None,
                    self.core_api.list_secret_for_all_namespaces, **kwargs,
                )
        elif namespace:
            raw = self._call(
                ctx, "list", model, namespace, None,
                self.custom_api.list_namespaced_custom_object,
                rk.group, rk.version, namespace, rk.plural, **kwargs,
            )
        else:
            raw = self._call(
                ctx, "list", model, None, None,
                self.custom_api.list_cluster_custom_object,
                rk.group, rk.version, rk.plural, **kwargs,
            )

        items = self._to_dict(raw).get("items") or []
        return [model.from_k8s(item) for item in items]

    def create(self, ctx: "ReconcileContext", obj: T) -> T:
        model = type(obj)
        rk = model.resource_kind
        namespace = obj.namespace
        if self._is_core(model):
            raw = self._call(
                ctx, "create", model, namespace, obj.name,
                self.core_api.create_namespaced_secret, namespace, obj.to_k8s(),
            )
        else:
            raw = self._call(
                ctx, "create", model, namespace, obj.name,
                self.custom_api.create_namespaced_custom_object,
                rk.group, rk.version, namespace, rk.plural, obj.to_k8s(),
            )
        return model.from_k8s(self._to_dict(raw))

    def update(self, ctx: "ReconcileContext", obj: T) -> T:
        model = type(obj)
        rk = model.resource_kind
        if self._is_core(model):
            raw = self._call(
                ctx, "update", model, obj.namespace, obj.name,
                self.core_api.replace_namespaced_secret, obj.name, obj.namespace, obj.to_k8s(),
            )
        else:
            raw = self._call(
                ctx, "update", model, obj.namespace, obj.name,
                self.custom_api.replace_namespaced_custom_object,
                rk.group, rk.version, obj.namespace, rk.plural, obj.name, obj.to_k8s(),
            )
        return model.from_k8s(self._to_dict(raw))

    def update_status(self, ctx: "ReconcileContext", obj: T) -> T:
        model = type(obj)
        rk = model.resource_kind
        raw = self._call(
            ctx, "update status", model, obj.namespace, obj.name,
            self.custom_api.replace_namespaced_custom_object_status,
            rk.group, rk.version, obj.namespace, rk.plural, obj.name, obj.to_k8s(),
        )
        return model.from_k8s(self._to_dict(raw))

    def delete(self, ctx: "ReconcileContext", model: Type[T], namespace: str, name: str) -> None:
        rk = model.resource_kind
        if self._is_core(model):
            self._call(
                ctx, "delete", model, namespace, name,
                self.core_api.delete_namespaced_secret, name, namespace,
            )
        else:
            self._call(
                ctx, "delete", model, namespace, name,
                self.custom_api.delete_namespaced_custom_object,
                rk.group, rk.version, namespace, rk.plural, name,
            )

    # ==================== WATCH ====================

    def _list_func(self, model: Type[KubernetesObject], namespace: Optional[str]):
        rk = model.resource_kind
        if self._is_core(model):
            if namespace:
                return self.core_api.list_namespaced_secret, (namespace,)
            return self.core_api.list_secret_for_all_namespaces, ()
        if namespace:
            return self.custom_api.list_namespaced_custom_object, (
                rk.group, rk.version, namespace, rk.plural,
            )
        return self.custom_api.list_cluster_custom_object, (rk.group, rk.version, rk.plural)

    def watch(
        self,
        model: Type[T],
        namespace: Optional[str],
        on_event: WatchCallback,
        stop_event: threading.Event,
    ) -> None:
        func, args = self._list_func(model, namespace)
        kind = model.resource_kind.kind
        resource_version: Optional[str] = None

        while not stop_event.is_set():
            w = watch.Watch()
            kwargs: Dict[str, Any] = {"timeout_seconds": self.config.watch_timeout_seconds}
            if resource_version:
                kwargs["resource_version"] = resource_version
            try:
                for event in w.stream(func, *args, **kwargs):
                    if stop_event.is_set():
                        w.stop()
                        break

                    event_type = event.get("type")
                    raw = self._to_dict(event.get("object"))
                    if event_type == "ERROR":
                        # 410 Gone: our resourceVersion is too old, relist
                        if raw.get("code") == 410:
                            resource_version = None
                            w.stop()
                            break
                        self.logger.warning("Watch error event", extra={"kind": kind, "event": raw})
                        continue
                    if event_type not in WatchEventType.__members__:
                        continue

                    resource_version = raw.get("metadata", {}).get("resourceVersion") or resource_version
                    try:
                        obj = model.from_k8s(raw)
                    except ValidationError as e:
                        self.logger.error(
                            "Skipping object that does not parse",
                            extra={
                                "kind": kind,
                                "object": raw.get("metadata", {}).get("name"),
                                "errors": e.error_count(),
                                "error": str(e),
                            },
                        )
                        continue
                    on_event(WatchEvent(type=WatchEventType(event_type), object=obj))

            except ApiException as e:
                if e.status == 410:
                    resource_version = None
                    continue
                self.logger.warning(
                    "Watch failed, restarting",
                    extra={"kind": kind, "status": e.status, "reason": e.reason},
                )
                stop_event.wait(1)
            except HTTPError as e:
                self.logger.warning("Watch connection lost, restarting", extra={"kind": kind, "error": str(e)})
                stop_event.wait(1)
            except Exception as e:
                self.logger.exception(
                    "Watch failed unexpectedly, restarting",
                    extra={"kind": kind, "error_type": type(e).__name__},
                )
                stop_event.wait(1)
