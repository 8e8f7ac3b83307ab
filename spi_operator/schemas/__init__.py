"""Pydantic models of the resources handled by the operator."""

from .access_token_schemas import (
    ACCESS_TOKEN_KIND,
    AccessToken,
    AccessTokenSpec,
    AccessTokenStatus,
    Permission,
    Permissions,
    TokenMetadata,
)
from .binding_schemas import (
    BINDING_KIND,
    AccessTokenBinding,
    AccessTokenBindingSpec,
    AccessTokenBindingStatus,
    SecretSpec,
    SyncedObjectRef,
)
from .common import KubeModel, KubernetesObject, ObjectMeta, OwnerReference, ResourceKind
from .data_update_schemas import DATA_UPDATE_KIND, AccessTokenDataUpdate, AccessTokenDataUpdateSpec
from .secret_schema import SECRET_KIND, Secret
from .token_schemas import Token, TokenFieldMapping

__all__ = [
    "ACCESS_TOKEN_KIND",
    "AccessToken",
    "AccessTokenSpec",
    "AccessTokenStatus",
    "Permission",
    "Permissions",
    "TokenMetadata",
    "BINDING_KIND",
    "AccessTokenBinding",
    "AccessTokenBindingSpec",
    "AccessTokenBindingStatus",
    "SecretSpec",
    "SyncedObjectRef",
    "KubeModel",
    "KubernetesObject",
    "ObjectMeta",
    "OwnerReference",
    "ResourceKind",
    "DATA_UPDATE_KIND",
    "AccessTokenDataUpdate",
    "AccessTokenDataUpdateSpec",
    "SECRET_KIND",
    "Secret",
    "Token",
    "TokenFieldMapping",
]
