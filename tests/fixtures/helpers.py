"""Small helpers shared by the tests."""

import time
from typing import Callable

from spi_operator.runtime.reconciler import Request

SIGNING_KEY = "test-signing-key-of-sufficient-length-for-hs256"
OAUTH_BASE_URL = "https://spi-oauth.example.com"


def request_for(obj) -> Request:
    return Request(namespace=obj.namespace, name=obj.name)


def wait_for(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.02) -> bool:
    """Poll predicate until it holds or timeout passes."""
    end = time.monotonic() + timeout
    while time.monotonic() < end:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


def memory_storage_factory(app_config=None):
    """Extension factory used by the start-up tests."""
    from spi_operator.tokenstorage.memory_storage import MemoryTokenStorage

    return MemoryTokenStorage()


def not_an_extension(app_config=None):
    return object()
