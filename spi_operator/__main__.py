"""
Entry point: python -m spi_operator
"""

import argparse
import sys
from typing import List, Optional

from .config import AppConfig, get_config
from .constants import LogLevel
from .controllers.setup import setup_controllers
from .exceptions import BaseError, ConfigurationError
from .kube.kubernetes_client import KubernetesResourceClient
from .oauth.state import OAuthStateCodec
from .oauth.url import OAuthUrlBuilder
from .serviceprovider.interface import ServiceProvider
from .serviceprovider.registry import ServiceProviderRegistry
from .tokenstorage.interface import TokenStorage
from .tokenstorage.memory_storage import MemoryTokenStorage
from .utils.extensions import build_extension
from .utils.logger import configure_logging, get_logger


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="spi-operator",
        description="Reconciles SPIAccessToken, SPIAccessTokenBinding and SPIAccessTokenDataUpdate objects",
    )
    parser.add_argument("--namespace", help="Namespace to watch, all namespaces when omitted")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=[level.value for level in LogLevel],
        help="Logging level",
    )
    parser.add_argument("--kubeconfig", help="Path to a kubeconfig file")
    return parser.parse_args(argv)


def load_token_storage(app_config: AppConfig) -> TokenStorage:
    path = app_config.extensions.token_storage
    if path:
        storage = build_extension(path, app_config)
        if not isinstance(storage, TokenStorage):
            raise ConfigurationError(f"'{path}' did not return a TokenStorage", path=path)
        return storage

    if app_config.is_development:
        get_logger().warning("No token storage configured, token data is kept in memory")
        return MemoryTokenStorage()

    raise ConfigurationError("no token storage configured, set SPI_TOKEN_STORAGE")


def load_service_providers(app_config: AppConfig) -> ServiceProviderRegistry:
    registry = ServiceProviderRegistry()
    for path in app_config.extensions.service_providers:
        built = build_extension(path, app_config)
        providers = built if isinstance(built, (list, tuple)) else [built]
        for provider in providers:
            if not isinstance(provider, ServiceProvider):
                raise ConfigurationError(f"'{path}' did not return a ServiceProvider", path=path)
            registry.register(provider)

    if not len(registry):
        get_logger().warning("No service providers configured, every token will end in Error")
    return registry


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    app_config = get_config()

    if args.namespace is not None:
        app_config.kubernetes.namespace = args.namespace
    if args.kubeconfig:
        app_config.kubernetes.kubeconfig = args.kubeconfig
    if args.log_level:
        app_config.logging.level = args.log_level

    logger = configure_logging("spi-operator")

    try:
        storage = load_token_storage(app_config)
        registry = load_service_providers(app_config)
        client = KubernetesResourceClient(kube_config=app_config.kubernetes)

        oauth_urls = None
        if app_config.oauth.enabled:
            oauth_urls = OAuthUrlBuilder(
                app_config.oauth.base_url, OAuthStateCodec(app_config.oauth.state_signing_key)
            )
        else:
            logger.warning("OAuth base URL or signing key not configured, no OAuth URLs published")

        controllers = setup_controllers(client, storage, registry, oauth_urls, app_config)
    except BaseError as e:
        logger.error(f"Operator failed to start: {e.message}", extra={"error_id": e.error_id})
        return 1

    controllers.manager.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
