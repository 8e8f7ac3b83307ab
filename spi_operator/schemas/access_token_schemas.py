"""
Models of the SPIAccessToken resource.
"""

import base64
from typing import List, Optional

from pydantic import Field, field_serializer, field_validator

from ..constants import (
    API_GROUP,
    API_VERSION,
    KIND_ACCESS_TOKEN,
    PLURAL_ACCESS_TOKENS,
)
from ..enums import AccessTokenErrorReason, AccessTokenPhase
from .common import KubeModel, KubernetesObject, ResourceKind

ACCESS_TOKEN_KIND = ResourceKind(
    group=API_GROUP,
    version=API_VERSION,
    plural=PLURAL_ACCESS_TOKENS,
    kind=KIND_ACCESS_TOKEN,
)


class Permission(KubeModel):
    """A single permission requested on an area of the service provider."""

    type: str
    area: str


class Permissions(KubeModel):
    required: List[Permission] = Field(default_factory=list)
    additional_scopes: List[str] = Field(default_factory=list)


class TokenMetadata(KubeModel):
    """What the service provider reported about a validated token."""

    username: str = ""
    user_id: str = ""
    scopes: List[str] = Field(default_factory=list)
    service_provider_state: Optional[bytes] = None

    @field_validator("service_provider_state", mode="before")
    @classmethod
    def decode_state(cls, v):
        """The cluster API transports byte fields base64 encoded."""
        if isinstance(v, str):
            return base64.b64decode(v)
        return v

    @field_serializer("service_provider_state", when_used="json-unless-none")
    def encode_state(self, v: bytes) -> str:
        return base64.b64encode(v).decode("ascii")


class AccessTokenSpec(KubeModel):
    service_provider_url: str = ""
    permissions: Permissions = Field(default_factory=Permissions)


class AccessTokenStatus(KubeModel):
    phase: Optional[AccessTokenPhase] = None
    error_reason: Optional[AccessTokenErrorReason] = None
    error_message: Optional[str] = None
    token_metadata: Optional[TokenMetadata] = None
    oauth_url: Optional[str] = Field(default=None, alias="oAuthUrl")


class AccessToken(KubernetesObject):
    """SPIAccessToken: the cluster-side record of a credential."""

    resource_kind = ACCESS_TOKEN_KIND

    spec: AccessTokenSpec = Field(default_factory=AccessTokenSpec)
    status: AccessTokenStatus = Field(default_factory=AccessTokenStatus)
