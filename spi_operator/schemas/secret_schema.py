"""
Model of core/v1 Secret, the target of token injection.
"""

from typing import Dict, Optional

from pydantic import Field

from .common import KubernetesObject, ResourceKind

SECRET_KIND = ResourceKind(group="", version="v1", plural="secrets", kind="Secret")


class Secret(KubernetesObject):
    resource_kind = SECRET_KIND

    type: str = "Opaque"
    data: Dict[str, str] = Field(default_factory=dict, repr=False)
    string_data: Dict[str, str] = Field(default_factory=dict, repr=False)
    immutable: Optional[bool] = None
