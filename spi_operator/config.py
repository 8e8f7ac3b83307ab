"""
Centralized configuration management for the SPI operator.

This module provides a unified configuration system with support for:
- Environment variables
- Feature flags
- Controller runtime tuning
- Validation using Pydantic
"""

import os
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import EnvironmentVariable, LogLevel, Timeouts


def _env_int(name: EnvironmentVariable, default: int) -> int:
    return int(os.getenv(name.value, str(default)))


def _env_flag(name: EnvironmentVariable, default: bool) -> bool:
    return os.getenv(name.value, str(default)).lower() == "true"


def _env_list(name: EnvironmentVariable) -> List[str]:
    raw = os.getenv(name.value, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


class ControllerConfig(BaseModel):
    """Tuning of the reconcile loops."""

    model_config = ConfigDict(validate_default=True)

    max_concurrent_reconciles: int = Field(
        default_factory=lambda: _env_int(EnvironmentVariable.MAX_CONCURRENT_RECONCILES, 4),
        ge=1,
        description="Worker threads per controller",
    )
    resync_period_seconds: int = Field(
        default_factory=lambda: _env_int(EnvironmentVariable.RESYNC_PERIOD_SECONDS, 600),
        ge=0,
        description="Period of the full resync, 0 disables it",
    )
    reconcile_timeout_seconds: int = Field(
        default_factory=lambda: _env_int(
            EnvironmentVariable.RECONCILE_TIMEOUT_SECONDS, Timeouts.RECONCILE
        ),
        gt=0,
        description="Deadline of a single reconcile",
    )
    retry_backoff_base: int = Field(default=1, description="Base for exponential backoff (seconds)")
    retry_backoff_max: int = Field(default=300, description="Maximum backoff time (seconds)")


class KubernetesConfig(BaseModel):
    """Cluster connection configuration."""

    namespace: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.WATCH_NAMESPACE.value, ""),
        description="Namespace to watch, empty for all namespaces",
    )
    kubeconfig: Optional[str] = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.KUBECONFIG.value),
        description="Path to a kubeconfig file used outside the cluster",
    )
    in_cluster: Optional[bool] = Field(
        default_factory=lambda: (
            None
            if os.getenv(EnvironmentVariable.IN_CLUSTER.value) is None
            else os.getenv(EnvironmentVariable.IN_CLUSTER.value, "").lower() == "true"
        ),
        description="Force in-cluster configuration, autodetected when unset",
    )
    request_timeout_seconds: int = Field(
        default=Timeouts.KUBERNETES_REQUEST, description="Timeout of a single API request"
    )
    watch_timeout_seconds: int = Field(
        default=Timeouts.WATCH, description="Server-side timeout of a watch request"
    )


class OAuthConfig(BaseModel):
    """Configuration of the OAuth flow initiation."""

    model_config = ConfigDict(validate_default=True)

    base_url: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.OAUTH_BASE_URL.value, ""),
        description="Base URL of the OAuth service",
    )
    state_signing_key: Optional[str] = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.SHARED_SECRET.value),
        description="Key shared with the OAuth service to sign the state",
    )

    @field_validator("base_url")
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so paths can be appended."""
        return v.rstrip("/")

    @property
    def enabled(self) -> bool:
        return bool(self.base_url and self.state_signing_key)


class ExtensionsConfig(BaseModel):
    """Dotted 'module:factory' paths of the pluggable collaborators."""

    token_storage: Optional[str] = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.TOKEN_STORAGE.value),
        description="Factory returning the TokenStorage",
    )
    service_providers: List[str] = Field(
        default_factory=lambda: _env_list(EnvironmentVariable.SERVICE_PROVIDERS),
        description="Factories returning ServiceProvider instances",
    )


class QueueConfig(BaseModel):
    """Queue configuration for Azure Storage Queues."""

    connection_string: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.AZURE_STORAGE_CONNECTION.value, ""),
        description="Azure Storage connection string",
    )
    logs_queue_name: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.LOGS_QUEUE_NAME.value, "logs-queue"),
        description="Logs queue name",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(validate_default=True, validate_assignment=True)

    level: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.LOG_LEVEL.value, LogLevel.INFO.value),
        description="Logging level",
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format string",
    )

    @field_validator("level")
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {level.value for level in LogLevel}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class FeatureFlags(BaseModel):
    """Feature flags for controlling operator behavior."""

    enable_logs_queue: bool = Field(
        default_factory=lambda: _env_flag(EnvironmentVariable.ENABLE_LOGS_QUEUE, False),
        description="Ship logs to the Azure Storage logs queue",
    )
    enable_token_injection: bool = Field(
        default_factory=lambda: _env_flag(EnvironmentVariable.ENABLE_TOKEN_INJECTION, True),
        description="Write token data into secrets declared by bindings",
    )


class AppConfig(BaseModel):
    """Main application configuration."""

    environment: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.APP_ENV.value, "production"),
        description="Application environment",
    )
    debug: bool = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.DEBUG.value, "false").lower()
        == "true",
        description="Debug mode",
    )

    # Sub-configurations
    controller: ControllerConfig = Field(
        default_factory=ControllerConfig, description="Controller configuration"
    )
    kubernetes: KubernetesConfig = Field(
        default_factory=KubernetesConfig, description="Kubernetes configuration"
    )
    oauth: OAuthConfig = Field(default_factory=OAuthConfig, description="OAuth configuration")
    extensions: ExtensionsConfig = Field(
        default_factory=ExtensionsConfig, description="Pluggable collaborators"
    )
    queue: QueueConfig = Field(default_factory=QueueConfig, description="Queue configuration")
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    features: FeatureFlags = Field(default_factory=FeatureFlags, description="Feature flags")

    # Custom configuration handed to extension factories
    custom: Dict[str, Any] = Field(default_factory=dict, description="Custom configuration values")

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create configuration from environment variables."""
        return cls()

    def get_custom(self, key: str, default: Any = None) -> Any:
        """Get a custom configuration value."""
        return self.custom.get(key, default)

    def set_custom(self, key: str, value: Any) -> None:
        """Set a custom configuration value."""
        self.custom[key] = value


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def set_config(config: AppConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global configuration instance."""
    global _config
    _config = None
