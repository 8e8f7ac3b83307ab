"""
Constants and enums for the SPI operator.

This module centralizes the magic strings used on the wire (API group, kinds,
finalizers, labels) and the environment variable names read by the
configuration layer.
"""

from enum import Enum

API_GROUP = "appstudio.redhat.com"
API_VERSION = "v1beta1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

KIND_ACCESS_TOKEN = "SPIAccessToken"
KIND_ACCESS_TOKEN_BINDING = "SPIAccessTokenBinding"
KIND_ACCESS_TOKEN_DATA_UPDATE = "SPIAccessTokenDataUpdate"

PLURAL_ACCESS_TOKENS = "spiaccesstokens"
PLURAL_ACCESS_TOKEN_BINDINGS = "spiaccesstokenbindings"
PLURAL_ACCESS_TOKEN_DATA_UPDATES = "spiaccesstokendataupdates"


class Finalizer(str, Enum):
    """Finalizers attached to SPIAccessToken objects."""

    LINKED_BINDINGS = "spi.appstudio.redhat.com/linked-bindings"
    TOKEN_STORAGE = "spi.appstudio.redhat.com/token-storage"


# Label on a binding carrying the name of the SPIAccessToken it resolved to
LINKED_ACCESS_TOKEN_LABEL = "spi.appstudio.redhat.com/linked-access-token"

# Label put on secrets created from bindings
SYNCED_BY_BINDING_LABEL = "spi.appstudio.redhat.com/binding"


class LogLevel(str, Enum):
    """Standard logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EnvironmentVariable(str, Enum):
    """Standard environment variable names."""

    AZURE_STORAGE_CONNECTION = "AzureWebJobsStorage"
    APP_ENV = "APP_ENV"
    LOG_LEVEL = "LOG_LEVEL"
    DEBUG = "DEBUG"
    WATCH_NAMESPACE = "SPI_WATCH_NAMESPACE"
    KUBECONFIG = "KUBECONFIG"
    IN_CLUSTER = "SPI_IN_CLUSTER"
    MAX_CONCURRENT_RECONCILES = "SPI_MAX_CONCURRENT_RECONCILES"
    RESYNC_PERIOD_SECONDS = "SPI_RESYNC_PERIOD_SECONDS"
    RECONCILE_TIMEOUT_SECONDS = "SPI_RECONCILE_TIMEOUT_SECONDS"
    OAUTH_BASE_URL = "SPI_OAUTH_BASE_URL"
    SHARED_SECRET = "SPI_SHARED_SECRET"
    TOKEN_STORAGE = "SPI_TOKEN_STORAGE"
    SERVICE_PROVIDERS = "SPI_SERVICE_PROVIDERS"
    LOGS_QUEUE_NAME = "SPI_LOGS_QUEUE_NAME"
    ENABLE_LOGS_QUEUE = "SPI_ENABLE_LOGS_QUEUE"
    ENABLE_TOKEN_INJECTION = "SPI_ENABLE_TOKEN_INJECTION"


class LogContextKey(str, Enum):
    """Standard keys for logging context."""

    OPERATION_ID = "operation_id"
    CORRELATION_ID = "correlation_id"
    CONTROLLER = "controller"
    RESOURCE = "resource"
    RECONCILE_ID = "reconcile_id"
    DURATION_MS = "duration_ms"
    STATUS = "status"
    ERROR_CODE = "error_code"


class WatchEventType(str, Enum):
    """Event types delivered by resource watches."""

    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"


# Time-related constants (in seconds)
class Timeouts:
    """Timeout values in seconds."""

    KUBERNETES_REQUEST = 30
    RECONCILE = 30
    WATCH = 300
    SHUTDOWN_GRACE_PERIOD = 30
