"""Access to the cluster API."""

from .client import ResourceClient, WatchEvent
from .kubernetes_client import KubernetesResourceClient, load_api_client
from .memory_client import InMemoryResourceClient

__all__ = [
    "ResourceClient",
    "WatchEvent",
    "KubernetesResourceClient",
    "load_api_client",
    "InMemoryResourceClient",
]
