"""
Wiring of the reconcilers into controllers and a manager.
"""

from dataclasses import dataclass
from typing import List, Optional

from ..config import AppConfig, get_config
from ..constants import LINKED_ACCESS_TOKEN_LABEL
from ..context.reconcile_context import ReconcileContext
from ..kube.client import ResourceClient, WatchEvent
from ..oauth.url import OAuthUrlBuilder
from ..runtime.controller import Controller
from ..runtime.manager import ControllerManager
from ..runtime.reconciler import Request
from ..schemas.access_token_schemas import AccessToken
from ..schemas.binding_schemas import AccessTokenBinding
from ..schemas.data_update_schemas import AccessTokenDataUpdate
from ..serviceprovider.registry import ServiceProviderRegistry
from ..tokenstorage.interface import TokenStorage
from .access_token_controller import AccessTokenReconciler
from .binding_controller import AccessTokenBindingReconciler
from .data_update_controller import AccessTokenDataUpdateReconciler


@dataclass
class Controllers:
    manager: ControllerManager
    access_tokens: Controller
    bindings: Controller
    data_updates: Controller


def linked_binding_requests(client: ResourceClient):
    """Token events make the bindings linked to the token reconcile."""

    def mapper(event: WatchEvent) -> List[Request]:
        token = event.object
        bindings = client.list(
            ReconcileContext.background("token-to-bindings"),
            AccessTokenBinding,
            token.namespace,
            labels={LINKED_ACCESS_TOKEN_LABEL: token.name},
        )
        return [Request(namespace=b.namespace, name=b.name) for b in bindings]

    return mapper


def linked_token_request(event: WatchEvent) -> List[Request]:
    """Binding events make the linked token reconcile, unblocking its deletion."""
    linked = event.object.metadata.labels.get(LINKED_ACCESS_TOKEN_LABEL)
    if not linked:
        return []
    return [Request(namespace=event.object.namespace, name=linked)]


def setup_controllers(
    client: ResourceClient,
    storage: TokenStorage,
    registry: ServiceProviderRegistry,
    oauth_urls: Optional[OAuthUrlBuilder] = None,
    app_config: Optional[AppConfig] = None,
    namespace: Optional[str] = None,
) -> Controllers:
    """
    Build the three controllers and a manager routing watch events to them.
    """
    app_config = app_config or get_config()

    access_tokens = Controller(
        AccessTokenReconciler(client, storage, registry, oauth_urls),
        controller_config=app_config.controller,
    )
    bindings = Controller(
        AccessTokenBindingReconciler(client, storage, registry, app_config.features),
        controller_config=app_config.controller,
    )
    data_updates = Controller(
        AccessTokenDataUpdateReconciler(client, access_tokens.enqueue),
        controller_config=app_config.controller,
    )

    manager = ControllerManager(
        client,
        namespace=namespace,
        resync_period=app_config.controller.resync_period_seconds,
    )
    manager.add_controller(access_tokens, AccessToken)
    manager.add_controller(bindings, AccessTokenBinding)
    manager.watch(AccessToken, bindings, linked_binding_requests(client))
    manager.watch(AccessTokenBinding, access_tokens, linked_token_request)
    manager.add_controller(data_updates, AccessTokenDataUpdate)

    return Controllers(
        manager=manager,
        access_tokens=access_tokens,
        bindings=bindings,
        data_updates=data_updates,
    )
