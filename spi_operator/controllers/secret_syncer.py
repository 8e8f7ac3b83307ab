"""
Writes the token data of a binding into the Secret the binding declares.
"""

import base64
from typing import TYPE_CHECKING, Dict

from ..constants import SYNCED_BY_BINDING_LABEL
from ..kube.client import ResourceClient
from ..schemas.binding_schemas import AccessTokenBinding
from ..schemas.common import ObjectMeta
from ..schemas.secret_schema import Secret
from ..schemas.token_schemas import TokenFieldMapping
from ..utils.logger import get_logger

if TYPE_CHECKING:
    from ..context.reconcile_context import ReconcileContext


def _encode(data: Dict[str, str]) -> Dict[str, str]:
    return {key: base64.b64encode(value.encode("utf-8")).decode("ascii") for key, value in data.items()}


class SecretSyncer:
    """
    Creates or updates the Secret of a binding.

    The Secret is owned by the binding, deleting the binding deletes it.
    """

    def __init__(self, client: ResourceClient):
        self.client = client
        self.logger = get_logger()

    def sync(
        self, ctx: "ReconcileContext", binding: AccessTokenBinding, mapping: TokenFieldMapping
    ) -> Secret:
        spec = binding.spec.secret
        if spec is None:
            raise ValueError(f"{binding} declares no secret")

        data = _encode(mapping.to_secret_data(spec.fields, spec.type))
        labels = {**spec.labels, SYNCED_BY_BINDING_LABEL: binding.name}
        owner = binding.owner_reference()

        existing = self.client.find(ctx, Secret, binding.namespace, spec.name)

        if existing is not None and existing.type != spec.type:
            # the type of a Secret is immutable
            self.client.delete(ctx, Secret, binding.namespace, spec.name)
            existing = None

        if existing is None:
            secret = Secret(
                metadata=ObjectMeta(
                    name=spec.name,
                    namespace=binding.namespace,
                    labels=labels,
                    owner_references=[owner],
                ),
                type=spec.type,
                data=data,
            )
            created = self.client.create(ctx, secret)
            self.logger.info(
                "Created secret with token data",
                extra={"binding": str(binding), "secret": spec.name},
            )
            return created

        owned = any(ref.uid == owner.uid for ref in existing.metadata.owner_references)
        labelled = all(existing.metadata.labels.get(k) == v for k, v in labels.items())
        if existing.data == data and owned and labelled:
            return existing

        existing.data = data
        existing.string_data = {}
        existing.metadata.labels.update(labels)
        if not owned:
            existing.metadata.owner_references.append(owner)
        updated = self.client.update(ctx, existing)
        self.logger.info(
            "Updated secret with token data",
            extra={"binding": str(binding), "secret": spec.name},
        )
        return updated
