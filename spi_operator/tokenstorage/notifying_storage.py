"""
Token storage decorator announcing writes to the operator.

Writes to the token storage are invisible to the watches of the operator.
Anything that changes token data outside of a reconcile (an OAuth callback, a
manual upload) wraps its storage in NotifyingTokenStorage so every write is
followed by an SPIAccessTokenDataUpdate naming the affected token.
"""

from typing import TYPE_CHECKING, Optional

from ..schemas.access_token_schemas import AccessToken
from ..schemas.common import ObjectMeta
from ..schemas.data_update_schemas import AccessTokenDataUpdate, AccessTokenDataUpdateSpec
from ..schemas.token_schemas import Token
from ..utils.logger import get_logger
from .interface import TokenStorage

if TYPE_CHECKING:
    from ..context.reconcile_context import ReconcileContext
    from ..kube.client import ResourceClient


class NotifyingTokenStorage(TokenStorage):
    def __init__(self, storage: TokenStorage, client: "ResourceClient"):
        self.storage = storage
        self.client = client
        self.logger = get_logger()

    def store(self, ctx: "ReconcileContext", owner: AccessToken, token: Token) -> None:
        self.storage.store(ctx, owner, token)
        self._notify(ctx, owner)

    def get(self, ctx: "ReconcileContext", owner: AccessToken) -> Optional[Token]:
        return self.storage.get(ctx, owner)

    def delete(self, ctx: "ReconcileContext", owner: AccessToken) -> None:
        self.storage.delete(ctx, owner)
        self._notify(ctx, owner)

    def _notify(self, ctx: "ReconcileContext", owner: AccessToken) -> AccessTokenDataUpdate:
        update = AccessTokenDataUpdate(
            metadata=ObjectMeta(generate_name=f"{owner.name}-update-", namespace=owner.namespace),
            spec=AccessTokenDataUpdateSpec(token_name=owner.name),
        )
        created = self.client.create(ctx, update)
        self.logger.debug(
            "Announced token data change",
            extra={"token": str(owner), "data_update": created.name},
        )
        return created
