"""
Models of the SPIAccessTokenDataUpdate resource.

A data update is created by whoever writes to the token storage outside of
the operator. It is consumed once: the named SPIAccessToken is reconciled and
the data update is deleted.
"""

from pydantic import Field

from ..constants import (
    API_GROUP,
    API_VERSION,
    KIND_ACCESS_TOKEN_DATA_UPDATE,
    PLURAL_ACCESS_TOKEN_DATA_UPDATES,
)
from .common import KubeModel, KubernetesObject, ResourceKind

DATA_UPDATE_KIND = ResourceKind(
    group=API_GROUP,
    version=API_VERSION,
    plural=PLURAL_ACCESS_TOKEN_DATA_UPDATES,
    kind=KIND_ACCESS_TOKEN_DATA_UPDATE,
)


class AccessTokenDataUpdateSpec(KubeModel):
    token_name: str = Field(..., min_length=1)


class AccessTokenDataUpdate(KubernetesObject):
    resource_kind = DATA_UPDATE_KIND

    spec: AccessTokenDataUpdateSpec
