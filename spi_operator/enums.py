"""
Enums used across the spi_operator package.

This module contains enum definitions that are used by multiple modules
to avoid circular import issues.
"""

import enum


class ErrorKind(str, enum.Enum):
    """Classification of failures that decides between status and retry."""

    INFRASTRUCTURE = "infrastructure"
    CONTENT = "content"
    CONFIGURATION = "configuration"


class AccessTokenPhase(str, enum.Enum):
    """Lifecycle phases of an SPIAccessToken."""

    AWAITING_DATA = "AwaitingTokenData"
    READY = "Ready"
    INVALID = "Invalid"
    ERROR = "Error"


class AccessTokenErrorReason(str, enum.Enum):
    """Reasons reported alongside the Invalid and Error phases."""

    METADATA_FAILURE = "MetadataFailure"
    UNSUPPORTED_PERMISSIONS = "UnsupportedPermissions"
    UNKNOWN_SERVICE_PROVIDER = "UnknownServiceProvider"


class BindingPhase(str, enum.Enum):
    """Lifecycle phases of an SPIAccessTokenBinding."""

    AWAITING_DATA = "AwaitingTokenData"
    INJECTED = "Injected"
    ERROR = "Error"


class BindingErrorReason(str, enum.Enum):
    """Reasons reported alongside the binding Error phase."""

    UNKNOWN_SERVICE_PROVIDER = "UnknownServiceProvider"
    LINKED_TOKEN = "LinkedToken"


class ServiceProviderType(str, enum.Enum):
    """Known service provider types."""

    GITHUB = "GitHub"
    QUAY = "Quay"
