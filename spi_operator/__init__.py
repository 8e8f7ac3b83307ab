"""
SPI operator: brokers access tokens of service providers for cluster workloads.
"""

__version__ = "0.1.0"

from .config import AppConfig, get_config, reset_config, set_config
from .enums import AccessTokenPhase, BindingPhase, ErrorKind, ServiceProviderType
from .exceptions import (
    BaseError,
    ConfigurationError,
    ServiceProviderError,
    TokenStorageError,
    UnknownServiceProviderError,
    classify_error,
)

__all__ = [
    "__version__",
    "AppConfig",
    "get_config",
    "reset_config",
    "set_config",
    "AccessTokenPhase",
    "BindingPhase",
    "ErrorKind",
    "ServiceProviderType",
    "BaseError",
    "ConfigurationError",
    "ServiceProviderError",
    "TokenStorageError",
    "UnknownServiceProviderError",
    "classify_error",
]
