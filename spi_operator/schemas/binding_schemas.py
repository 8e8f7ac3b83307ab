"""
Models of the SPIAccessTokenBinding resource.
"""

from typing import Dict, Optional

from pydantic import Field

from ..constants import (
    API_GROUP,
    API_VERSION,
    KIND_ACCESS_TOKEN_BINDING,
    PLURAL_ACCESS_TOKEN_BINDINGS,
)
from ..enums import BindingErrorReason, BindingPhase
from .access_token_schemas import Permissions
from .common import KubeModel, KubernetesObject, ResourceKind

BINDING_KIND = ResourceKind(
    group=API_GROUP,
    version=API_VERSION,
    plural=PLURAL_ACCESS_TOKEN_BINDINGS,
    kind=KIND_ACCESS_TOKEN_BINDING,
)


class SecretSpec(KubeModel):
    """The Secret that receives the token data of a bound SPIAccessToken."""

    name: str
    type: str = "Opaque"
    labels: Dict[str, str] = Field(default_factory=dict)
    # token field name (e.g. "token", "serviceProviderUserName") -> key in the Secret
    fields: Dict[str, str] = Field(default_factory=dict)


class AccessTokenBindingSpec(KubeModel):
    repo_url: str = ""
    permissions: Permissions = Field(default_factory=Permissions)
    secret: Optional[SecretSpec] = None


class SyncedObjectRef(KubeModel):
    name: str
    kind: str = "Secret"
    api_version: str = "v1"


class AccessTokenBindingStatus(KubeModel):
    phase: Optional[BindingPhase] = None
    error_reason: Optional[BindingErrorReason] = None
    error_message: Optional[str] = None
    linked_access_token_name: Optional[str] = None
    oauth_url: Optional[str] = Field(default=None, alias="oAuthUrl")
    synced_object_ref: Optional[SyncedObjectRef] = None


class AccessTokenBinding(KubernetesObject):
    """SPIAccessTokenBinding: a workload's request for a credential."""

    resource_kind = BINDING_KIND

    spec: AccessTokenBindingSpec = Field(default_factory=AccessTokenBindingSpec)
    status: AccessTokenBindingStatus = Field(default_factory=AccessTokenBindingStatus)
