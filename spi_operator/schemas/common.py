"""
Shared pydantic models for cluster objects.

All resource models use camelCase aliases so they can be fed the dicts
returned by the cluster API directly and dumped back into them. Unknown
fields are kept so replace-style updates never drop data the operator does
not model.
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T", bound="KubernetesObject")


class KubeModel(BaseModel):
    """Base for every model exchanged with the cluster API."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


@dataclass(frozen=True)
class ResourceKind:
    """Coordinates of a resource type in the cluster API."""

    group: str
    version: str
    plural: str
    kind: str
    namespaced: bool = True

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version


class OwnerReference(KubeModel):
    api_version: str
    kind: str
    name: str
    uid: str
    controller: Optional[bool] = None
    block_owner_deletion: Optional[bool] = None


class ObjectMeta(KubeModel):
    name: Optional[str] = None
    namespace: Optional[str] = None
    generate_name: Optional[str] = None
    uid: Optional[str] = None
    resource_version: Optional[str] = None
    creation_timestamp: Optional[str] = None
    deletion_timestamp: Optional[str] = None
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)
    finalizers: List[str] = Field(default_factory=list)
    owner_references: List[OwnerReference] = Field(default_factory=list)


class KubernetesObject(KubeModel):
    """A typed cluster object, bound to its ResourceKind."""

    resource_kind: ClassVar[ResourceKind]

    api_version: str = ""
    kind: str = ""
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)

    def model_post_init(self, __context: Any) -> None:
        if not self.api_version:
            self.api_version = self.resource_kind.api_version
        if not self.kind:
            self.kind = self.resource_kind.kind

    @classmethod
    def from_k8s(cls: Type[T], data: Dict[str, Any]) -> T:
        """Build the model from an object dict returned by the cluster API."""
        return cls.model_validate(data)

    def to_k8s(self) -> Dict[str, Any]:
        """Dump into the dict the cluster API accepts."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @property
    def name(self) -> str:
        return self.metadata.name or ""

    @property
    def namespace(self) -> str:
        return self.metadata.namespace or ""

    @property
    def is_deleting(self) -> bool:
        return self.metadata.deletion_timestamp is not None

    def has_finalizer(self, finalizer: str) -> bool:
        return finalizer in self.metadata.finalizers

    def add_finalizer(self, finalizer: str) -> bool:
        """Add finalizer, returns whether the object changed."""
        if finalizer in self.metadata.finalizers:
            return False
        self.metadata.finalizers.append(finalizer)
        return True

    def remove_finalizer(self, finalizer: str) -> bool:
        """Remove finalizer, returns whether the object changed."""
        if finalizer not in self.metadata.finalizers:
            return False
        self.metadata.finalizers = [f for f in self.metadata.finalizers if f != finalizer]
        return True

    def owner_reference(self, controller: bool = True) -> OwnerReference:
        """Reference to this object for use in dependents' ownerReferences."""
        return OwnerReference(
            api_version=self.api_version,
            kind=self.kind,
            name=self.name,
            uid=self.metadata.uid or "",
            controller=controller,
            block_owner_deletion=True,
        )

    def __str__(self) -> str:
        return f"{self.kind}({self.namespace}/{self.name})"
