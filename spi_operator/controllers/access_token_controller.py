"""
Reconciler of SPIAccessToken objects.

The phase of a token is derived again on every reconcile from its spec, the
token data in the token storage and the verdict of the service provider:

    unknown provider            -> Error   (UnknownServiceProvider)
    no token data               -> AwaitingTokenData
    permissions not satisfiable -> Invalid (UnsupportedPermissions)
    provider rejects the token  -> Invalid (MetadataFailure)
    otherwise                   -> Ready

Deletion is held back by two finalizers lifted independently: one while
bindings are linked to the token, one until the token data is removed from
the storage.
"""

from typing import Optional

from ..constants import LINKED_ACCESS_TOKEN_LABEL, Finalizer
from ..context.reconcile_context import ReconcileContext
from ..enums import AccessTokenErrorReason, AccessTokenPhase, ErrorKind
from ..exceptions import classify_error
from ..kube.client import ResourceClient
from ..oauth.url import OAuthUrlBuilder
from ..runtime.reconciler import ReconcileResult, Reconciler, Request
from ..schemas.access_token_schemas import AccessToken, AccessTokenStatus
from ..schemas.binding_schemas import AccessTokenBinding
from ..serviceprovider.interface import ServiceProvider
from ..serviceprovider.registry import ServiceProviderRegistry
from ..tokenstorage.interface import TokenStorage
from ..utils.logger import get_logger
from .base import provider_call, write_status


class AccessTokenReconciler(Reconciler):
    name = "spiaccesstoken"

    def __init__(
        self,
        client: ResourceClient,
        storage: TokenStorage,
        registry: ServiceProviderRegistry,
        oauth_urls: Optional[OAuthUrlBuilder] = None,
    ):
        self.client = client
        self.storage = storage
        self.registry = registry
        self.oauth_urls = oauth_urls
        self.logger = get_logger()

    def reconcile(self, ctx: ReconcileContext, request: Request) -> ReconcileResult:
        token = self.client.find(ctx, AccessToken, request.namespace, request.name)
        if token is None:
            return ReconcileResult.done()

        if not token.is_deleting and not (
            token.has_finalizer(Finalizer.LINKED_BINDINGS.value)
            or token.has_finalizer(Finalizer.TOKEN_STORAGE.value)
        ):
            token.add_finalizer(Finalizer.LINKED_BINDINGS.value)
            token.add_finalizer(Finalizer.TOKEN_STORAGE.value)
            token = self.client.update(ctx, token)

        if token.is_deleting:
            return self._finalize(ctx, token)

        status = self._compute_status(ctx, token)
        write_status(ctx, self.client, token, status)
        return ReconcileResult.done()

    # ==================== DELETION ====================

    def _finalize(self, ctx: ReconcileContext, token: AccessToken) -> ReconcileResult:
        changed = False
        blocked = False
        storage_error: Optional[Exception] = None

        if token.has_finalizer(Finalizer.LINKED_BINDINGS.value):
            bindings = self.client.list(
                ctx,
                AccessTokenBinding,
                token.namespace,
                labels={LINKED_ACCESS_TOKEN_LABEL: token.name},
            )
            if bindings:
                blocked = True
                self.logger.info(
                    "Deletion blocked by linked bindings",
                    extra={"token": str(token), "bindings": ",".join(b.name for b in bindings)},
                )
            else:
                changed |= token.remove_finalizer(Finalizer.LINKED_BINDINGS.value)

        if token.has_finalizer(Finalizer.TOKEN_STORAGE.value):
            try:
                self.storage.delete(ctx, token)
            except Exception as e:
                storage_error = e
            else:
                changed |= token.remove_finalizer(Finalizer.TOKEN_STORAGE.value)

        if changed:
            ctx.check(f"remove finalizers of {token}")
            self.client.update(ctx, token)

        if storage_error is not None:
            raise storage_error
        if blocked:
            return ReconcileResult.retry()
        return ReconcileResult.done()

    # ==================== PHASE ====================

    def _compute_status(self, ctx: ReconcileContext, token: AccessToken) -> AccessTokenStatus:
        provider = self.registry.for_url(token.spec.service_provider_url)
        if provider is None:
            return AccessTokenStatus(
                phase=AccessTokenPhase.ERROR,
                error_reason=AccessTokenErrorReason.UNKNOWN_SERVICE_PROVIDER,
                error_message=(
                    f"no service provider is registered for url "
                    f"'{token.spec.service_provider_url}'"
                ),
            )

        token_data = self.storage.get(ctx, token)
        if token_data is None:
            return self._awaiting_data(token, provider)

        with provider_call("validate token", provider.base_url):
            validation = provider.validate(ctx, token_data, token.spec.permissions)
        if not validation.ok:
            return AccessTokenStatus(
                phase=AccessTokenPhase.INVALID,
                error_reason=AccessTokenErrorReason.UNSUPPORTED_PERMISSIONS,
                error_message=validation.message(),
            )

        try:
            metadata = provider.persist_metadata(ctx, token, token_data)
        except Exception as e:
            if classify_error(e) != ErrorKind.CONTENT:
                raise
            return AccessTokenStatus(
                phase=AccessTokenPhase.INVALID,
                error_reason=AccessTokenErrorReason.METADATA_FAILURE,
                error_message=str(e),
            )

        if metadata is None:
            return self._awaiting_data(token, provider)

        return AccessTokenStatus(phase=AccessTokenPhase.READY, token_metadata=metadata)

    def _awaiting_data(self, token: AccessToken, provider: ServiceProvider) -> AccessTokenStatus:
        oauth_url = None
        if self.oauth_urls is not None:
            oauth_url = self.oauth_urls.build(token, provider, token.status.oauth_url)
        return AccessTokenStatus(phase=AccessTokenPhase.AWAITING_DATA, oauth_url=oauth_url)
