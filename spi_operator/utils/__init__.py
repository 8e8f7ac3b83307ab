"""Utility modules for the SPI operator."""

from .backoff import calculate_exponential_backoff
from .json_utils import dumps
from .logger import (
    AzureQueueHandler,
    ContextAwareLogger,
    ReconcileContextFilter,
    configure_logging,
    get_logger,
)

__all__ = [
    "calculate_exponential_backoff",
    "dumps",
    "AzureQueueHandler",
    "ContextAwareLogger",
    "ReconcileContextFilter",
    "configure_logging",
    "get_logger",
]
