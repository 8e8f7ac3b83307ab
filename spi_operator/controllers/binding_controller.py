"""
Reconciler of SPIAccessTokenBinding objects.

A binding is resolved to exactly one SPIAccessToken, recorded in the
linked-access-token label. The label is what the token reconciler looks at
to hold back deletion of tokens still in use. A linked token stays linked
while it is being deleted, only a token that is gone is replaced.
"""

from typing import Optional

from ..config import FeatureFlags, get_config
from ..constants import LINKED_ACCESS_TOKEN_LABEL
from ..context.reconcile_context import ReconcileContext
from ..enums import AccessTokenPhase, BindingErrorReason, BindingPhase
from ..kube.client import ResourceClient
from ..runtime.reconciler import ReconcileResult, Reconciler, Request
from ..schemas.access_token_schemas import AccessToken, AccessTokenSpec
from ..schemas.binding_schemas import (
    AccessTokenBinding,
    AccessTokenBindingStatus,
    SyncedObjectRef,
)
from ..schemas.common import ObjectMeta
from ..serviceprovider.interface import ServiceProvider
from ..serviceprovider.registry import ServiceProviderRegistry
from ..tokenstorage.interface import TokenStorage
from ..utils.logger import get_logger
from .base import provider_call, write_status
from .secret_syncer import SecretSyncer


class AccessTokenBindingReconciler(Reconciler):
    name = "spiaccesstokenbinding"

    def __init__(
        self,
        client: ResourceClient,
        storage: TokenStorage,
        registry: ServiceProviderRegistry,
        features: Optional[FeatureFlags] = None,
    ):
        self.client = client
        self.storage = storage
        self.registry = registry
        self.features = features or get_config().features
        self.syncer = SecretSyncer(client)
        self.logger = get_logger()

    def reconcile(self, ctx: ReconcileContext, request: Request) -> ReconcileResult:
        binding = self.client.find(ctx, AccessTokenBinding, request.namespace, request.name)
        if binding is None or binding.is_deleting:
            return ReconcileResult.done()

        provider = self.registry.for_url(binding.spec.repo_url)
        if provider is None:
            write_status(
                ctx,
                self.client,
                binding,
                AccessTokenBindingStatus(
                    phase=BindingPhase.ERROR,
                    error_reason=BindingErrorReason.UNKNOWN_SERVICE_PROVIDER,
                    error_message=(
                        f"no service provider is registered for url '{binding.spec.repo_url}'"
                    ),
                ),
            )
            return ReconcileResult.done()

        token = self._resolve_token(ctx, binding, provider)

        if binding.metadata.labels.get(LINKED_ACCESS_TOKEN_LABEL) != token.name:
            ctx.check(f"link {binding}")
            binding.metadata.labels[LINKED_ACCESS_TOKEN_LABEL] = token.name
            binding = self.client.update(ctx, binding)
            self.logger.info(
                "Linked binding to token", extra={"binding": str(binding), "token": token.name}
            )

        status = self._compute_status(ctx, binding, token, provider)
        write_status(ctx, self.client, binding, status)
        return ReconcileResult.done()

    def _resolve_token(
        self, ctx: ReconcileContext, binding: AccessTokenBinding, provider: ServiceProvider
    ) -> AccessToken:
        linked = binding.metadata.labels.get(LINKED_ACCESS_TOKEN_LABEL)
        if linked:
            token = self.client.find(ctx, AccessToken, binding.namespace, linked)
            if token is not None:
                return token
            self.logger.info(
                "Linked token is gone, looking up a new one",
                extra={"binding": str(binding), "token": linked},
            )

        with provider_call("look up token", provider.base_url):
            token = provider.lookup_token(ctx, binding)
        if token is not None:
            return token

        ctx.check(f"create token for {binding}")
        token = self.client.create(
            ctx,
            AccessToken(
                metadata=ObjectMeta(
                    generate_name=f"{binding.name}-token-", namespace=binding.namespace
                ),
                spec=AccessTokenSpec(
                    service_provider_url=provider.base_url,
                    permissions=binding.spec.permissions.model_copy(deep=True),
                ),
            ),
        )
        self.logger.info(
            "Created token for binding", extra={"binding": str(binding), "token": token.name}
        )
        return token

    def _compute_status(
        self,
        ctx: ReconcileContext,
        binding: AccessTokenBinding,
        token: AccessToken,
        provider: ServiceProvider,
    ) -> AccessTokenBindingStatus:
        phase = token.status.phase

        if phase in (AccessTokenPhase.INVALID, AccessTokenPhase.ERROR):
            return AccessTokenBindingStatus(
                phase=BindingPhase.ERROR,
                error_reason=BindingErrorReason.LINKED_TOKEN,
                error_message=token.status.error_message,
                linked_access_token_name=token.name,
            )

        if phase == AccessTokenPhase.READY:
            token_data = self.storage.get(ctx, token)
            if token_data is not None:
                synced = binding.status.synced_object_ref
                if binding.spec.secret is not None and self.features.enable_token_injection:
                    mapping = provider.map_token(token, token_data)
                    secret = self.syncer.sync(ctx, binding, mapping)
                    synced = SyncedObjectRef(name=secret.name)
                return AccessTokenBindingStatus(
                    phase=BindingPhase.INJECTED,
                    linked_access_token_name=token.name,
                    synced_object_ref=synced,
                )

        return AccessTokenBindingStatus(
            phase=BindingPhase.AWAITING_DATA,
            linked_access_token_name=token.name,
            oauth_url=token.status.oauth_url,
            synced_object_ref=binding.status.synced_object_ref,
        )
