"""
Reconciler of SPIAccessTokenDataUpdate objects.

Each data update makes the named token reconcile once, then disappears.
"""

from typing import Callable

from ..context.reconcile_context import ReconcileContext
from ..exceptions import ResourceNotFoundError
from ..kube.client import ResourceClient
from ..runtime.reconciler import ReconcileResult, Reconciler, Request
from ..schemas.data_update_schemas import AccessTokenDataUpdate
from ..utils.logger import get_logger


class AccessTokenDataUpdateReconciler(Reconciler):
    name = "spiaccesstokendataupdate"

    def __init__(self, client: ResourceClient, notify_token: Callable[[Request], None]):
        self.client = client
        self.notify_token = notify_token
        self.logger = get_logger()

    def reconcile(self, ctx: ReconcileContext, request: Request) -> ReconcileResult:
        update = self.client.find(ctx, AccessTokenDataUpdate, request.namespace, request.name)
        if update is None:
            return ReconcileResult.done()

        self.notify_token(Request(namespace=update.namespace, name=update.spec.token_name))

        try:
            self.client.delete(ctx, AccessTokenDataUpdate, update.namespace, update.name)
        except ResourceNotFoundError:
            self.logger.debug("Data update already consumed", extra={"data_update": str(update)})

        return ReconcileResult.done()
