"""
Shared fixtures.

Every test gets fresh in-memory collaborators: a cluster client, a token
storage and a stub service provider. Nothing is shared between tests.
"""

import os
from unittest.mock import patch

import pytest

from spi_operator.config import AppConfig, reset_config, set_config
from spi_operator.context.reconcile_context import ReconcileContext
from spi_operator.controllers.access_token_controller import AccessTokenReconciler
from spi_operator.controllers.binding_controller import AccessTokenBindingReconciler
from spi_operator.kube.memory_client import InMemoryResourceClient
from spi_operator.oauth.state import OAuthStateCodec
from spi_operator.oauth.url import OAuthUrlBuilder
from spi_operator.serviceprovider.registry import ServiceProviderRegistry
from spi_operator.tokenstorage.memory_storage import MemoryTokenStorage
from spi_operator.utils.logger import reset_logging
from tests.fixtures.helpers import OAUTH_BASE_URL, SIGNING_KEY
from tests.fixtures.service_providers import StubServiceProvider


@pytest.fixture(autouse=True)
def app_config():
    """Configuration independent of the environment of the test run."""
    with patch.dict(os.environ, {}, clear=True):
        config = AppConfig()
    set_config(config)
    yield config
    reset_config()
    reset_logging()


@pytest.fixture
def client() -> InMemoryResourceClient:
    return InMemoryResourceClient()


@pytest.fixture
def storage() -> MemoryTokenStorage:
    return MemoryTokenStorage()


@pytest.fixture
def provider() -> StubServiceProvider:
    return StubServiceProvider()


@pytest.fixture
def registry(provider) -> ServiceProviderRegistry:
    return ServiceProviderRegistry([provider])


@pytest.fixture
def ctx() -> ReconcileContext:
    return ReconcileContext("test", request=None, timeout=30)


@pytest.fixture
def codec() -> OAuthStateCodec:
    return OAuthStateCodec(SIGNING_KEY)


@pytest.fixture
def oauth_urls(codec) -> OAuthUrlBuilder:
    return OAuthUrlBuilder(OAUTH_BASE_URL, codec)


@pytest.fixture
def token_reconciler(client, storage, registry, oauth_urls) -> AccessTokenReconciler:
    return AccessTokenReconciler(client, storage, registry, oauth_urls)


@pytest.fixture
def binding_reconciler(client, storage, registry, app_config) -> AccessTokenBindingReconciler:
    return AccessTokenBindingReconciler(client, storage, registry, app_config.features)
