"""
ControllerManager: watches, event fan-out and periodic resync.
"""

import signal
import threading
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Type

from ..config import get_config
from ..constants import Timeouts
from ..context.reconcile_context import ReconcileContext
from ..kube.client import ResourceClient, WatchEvent
from ..schemas.common import KubernetesObject
from ..utils.logger import get_logger
from .controller import Controller
from .reconciler import Request

EventMapper = Callable[[WatchEvent], Iterable[Request]]


def own_request(event: WatchEvent) -> List[Request]:
    """Map an event to the request of the object itself."""
    return [Request(namespace=event.object.namespace, name=event.object.name)]


@dataclass
class _Route:
    controller: Controller
    mapper: EventMapper


class ControllerManager:
    """
    Runs a set of controllers against a ResourceClient.

    Every watched resource type gets one watch thread. Its events are routed
    to the controllers registered for the type, each through its own mapping
    from event to requests. Primary resources are also listed periodically so
    missed events and out-of-band changes are eventually reconciled.
    """

    def __init__(
        self,
        client: ResourceClient,
        namespace: Optional[str] = None,
        resync_period: Optional[float] = None,
    ):
        app_config = get_config()
        self.client = client
        self.namespace = namespace if namespace is not None else app_config.kubernetes.namespace
        self.resync_period = (
            resync_period
            if resync_period is not None
            else app_config.controller.resync_period_seconds
        )
        self.controllers: List[Controller] = []
        self.routes: Dict[Type[KubernetesObject], List[_Route]] = defaultdict(list)
        self.primaries: List[tuple] = []
        self.stop_event = threading.Event()
        self.logger = get_logger()
        self._threads: List[threading.Thread] = []

    def add_controller(self, controller: Controller, primary: Type[KubernetesObject]) -> None:
        """Register a controller reconciling objects of the primary type."""
        if controller not in self.controllers:
            self.controllers.append(controller)
        self.primaries.append((primary, controller))
        self.watch(primary, controller, own_request)

    def watch(
        self,
        model: Type[KubernetesObject],
        controller: Controller,
        mapper: EventMapper,
    ) -> None:
        """Route events of model to controller through mapper."""
        self.routes[model].append(_Route(controller=controller, mapper=mapper))

    def dispatch(self, model: Type[KubernetesObject], event: WatchEvent) -> None:
        for route in self.routes.get(model, []):
            try:
                for request in route.mapper(event):
                    route.controller.enqueue(request)
            except Exception as e:
                self.logger.warning(
                    f"Failed to map {event.type.value} event of {event.object}: {e}",
                    extra={"controller": route.controller.name},
                )

    def resync(self) -> None:
        """Enqueue every primary object."""
        ctx = ReconcileContext.background("resync")
        for model, controller in self.primaries:
            try:
                objects = self.client.list(ctx, model, self.namespace or None)
            except Exception as e:
                self.logger.warning(
                    f"Resync of {model.resource_kind.kind} failed: {e}",
                    extra={"controller": controller.name},
                )
                continue
            for obj in objects:
                controller.enqueue(Request(namespace=obj.namespace, name=obj.name))

    def _watch_loop(self, model: Type[KubernetesObject]) -> None:
        self.client.watch(
            model,
            self.namespace or None,
            lambda event: self.dispatch(model, event),
            self.stop_event,
        )

    def _resync_loop(self) -> None:
        while not self.stop_event.wait(self.resync_period):
            self.resync()

    def start(self) -> None:
        self.stop_event.clear()
        for controller in self.controllers:
            controller.start()

        for model in self.routes:
            thread = threading.Thread(
                target=self._watch_loop,
                args=(model,),
                name=f"watch-{model.resource_kind.plural}",
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)

        if self.resync_period > 0:
            thread = threading.Thread(target=self._resync_loop, name="resync", daemon=True)
            thread.start()
            self._threads.append(thread)

        self.logger.info(
            "Controller manager started",
            extra={
                "namespace": self.namespace or "*",
                "controllers": ",".join(c.name for c in self.controllers),
                "resync_period": self.resync_period,
            },
        )

    def stop(self, timeout: float = Timeouts.SHUTDOWN_GRACE_PERIOD) -> None:
        self.stop_event.set()
        for controller in self.controllers:
            controller.stop(timeout)
        for thread in self._threads:
            thread.join(timeout)
        self._threads.clear()
        self.logger.info("Controller manager stopped")

    def run(self) -> None:
        """Start and block until SIGINT or SIGTERM."""

        def _shutdown(signum, frame):
            self.logger.info(f"Received signal {signum}, shutting down")
            self.stop_event.set()

        signal.signal(signal.SIGINT, _shutdown)
        signal.signal(signal.SIGTERM, _shutdown)

        self.start()
        try:
            self.stop_event.wait()
        finally:
            self.stop()
