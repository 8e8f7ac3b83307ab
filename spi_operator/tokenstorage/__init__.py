"""Token storage contract and implementations."""

from .interface import TokenStorage
from .memory_storage import MemoryTokenStorage
from .notifying_storage import NotifyingTokenStorage

__all__ = ["TokenStorage", "MemoryTokenStorage", "NotifyingTokenStorage"]
