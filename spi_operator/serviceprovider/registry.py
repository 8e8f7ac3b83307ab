"""
Registry resolving URLs to service providers.
"""

import threading
from typing import List, Optional

from ..exceptions import UnknownServiceProviderError
from ..utils.logger import get_logger
from .interface import ServiceProvider


class ServiceProviderRegistry:
    """
    Ordered collection of the service providers configured at start-up.

    The first provider that matches a URL wins.
    """

    def __init__(self, providers: Optional[List[ServiceProvider]] = None):
        self._providers: List[ServiceProvider] = list(providers or [])
        self._lock = threading.Lock()
        self.logger = get_logger()

    def register(self, provider: ServiceProvider) -> None:
        with self._lock:
            self._providers.append(provider)
        self.logger.info(
            "Registered service provider",
            extra={"provider_type": provider.provider_type.value, "base_url": provider.base_url},
        )

    @property
    def providers(self) -> List[ServiceProvider]:
        with self._lock:
            return list(self._providers)

    def for_url(self, url: str) -> Optional[ServiceProvider]:
        """Provider serving url, None if there is none."""
        if not url:
            return None
        for provider in self.providers:
            if provider.matches(url):
                return provider
        return None

    def require_for_url(self, url: str) -> ServiceProvider:
        """
        Provider serving url.

        Raises:
            UnknownServiceProviderError: If no registered provider matches
        """
        provider = self.for_url(url)
        if provider is None:
            raise UnknownServiceProviderError(url)
        return provider

    def __len__(self) -> int:
        return len(self.providers)
