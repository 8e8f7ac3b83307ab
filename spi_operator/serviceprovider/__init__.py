"""Service provider contract, shared helpers and registry."""

from .interface import ServiceProvider, ValidationResult
from .registry import ServiceProviderRegistry
from .scopes import default_map_token, get_all_scopes

__all__ = [
    "ServiceProvider",
    "ValidationResult",
    "ServiceProviderRegistry",
    "default_map_token",
    "get_all_scopes",
]
