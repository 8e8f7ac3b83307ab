"""
Tests of the provider-independent scope and token mapping helpers and of the
service provider registry.
"""

import pytest

from spi_operator.enums import ServiceProviderType
from spi_operator.exceptions import UnknownServiceProviderError
from spi_operator.schemas.access_token_schemas import (
    AccessToken,
    AccessTokenSpec,
    AccessTokenStatus,
    Permission,
    Permissions,
    TokenMetadata,
)
from spi_operator.schemas.common import ObjectMeta
from spi_operator.schemas.token_schemas import Token
from spi_operator.serviceprovider.interface import ValidationResult
from spi_operator.serviceprovider.registry import ServiceProviderRegistry
from spi_operator.serviceprovider.scopes import default_map_token, get_all_scopes
from tests.fixtures.service_providers import StubServiceProvider


class TestGetAllScopes:
    def test_scopes_are_deduplicated(self):
        permissions = Permissions(
            required=[Permission(type="a", area="b"), Permission(type="a", area="c")],
            additional_scopes=["a", "b", "d", "e"],
        )

        scopes = get_all_scopes(lambda p: [p.type, p.area], permissions)

        assert scopes == {"a", "b", "c", "d", "e"}

    def test_no_permissions(self):
        assert get_all_scopes(lambda p: [p.type], Permissions()) == set()

    def test_provider_uses_its_translation(self):
        provider = StubServiceProvider(translate=lambda p: [f"{p.type}-{p.area}"])

        scopes = provider.get_all_scopes(
            Permissions(required=[Permission(type="r", area="repo")], additional_scopes=["x"])
        )

        assert scopes == {"r-repo", "x"}


class TestDefaultMapToken:
    def test_empty_token(self):
        mapping = default_map_token(AccessToken(), None)

        assert mapping.token == ""
        assert mapping.name == ""
        assert mapping.scopes == []
        assert mapping.user_id == ""
        assert mapping.service_provider_url == ""
        assert mapping.service_provider_user_name == ""
        assert mapping.service_provider_user_id == ""
        assert mapping.expired_after == 0

    def test_full_token(self):
        token = AccessToken(
            metadata=ObjectMeta(name="objectname"),
            spec=AccessTokenSpec(service_provider_url="service://provider"),
            status=AccessTokenStatus(
                token_metadata=TokenMetadata(username="username", user_id="42", scopes=["a", "b", "c"])
            ),
        )
        data = Token(username="realusername", access_token="access token", expiry=15)

        mapping = default_map_token(token, data)

        assert mapping.token == "access token"
        assert mapping.name == "objectname"
        assert mapping.scopes == ["a", "b", "c"]
        assert mapping.user_id == ""
        assert mapping.service_provider_url == "service://provider"
        assert mapping.service_provider_user_name == "username"
        assert mapping.service_provider_user_id == "42"
        assert mapping.expired_after == 15


class TestValidationResult:
    def test_ok_without_findings(self):
        assert ValidationResult().ok

    def test_message_joins_findings(self):
        result = ValidationResult([ValueError("no repo scope"), ValueError("no webhook scope")])

        assert not result.ok
        assert result.message() == "no repo scope; no webhook scope"


class TestServiceProviderRegistry:
    def test_first_match_wins(self):
        first = StubServiceProvider(base_url="https://github.com")
        second = StubServiceProvider(base_url="https://github.com/org")
        registry = ServiceProviderRegistry([first, second])

        assert registry.for_url("https://github.com/org/repo") is first

    def test_no_match(self):
        registry = ServiceProviderRegistry([StubServiceProvider(base_url="https://github.com")])

        assert registry.for_url("https://quay.io/repo") is None
        assert registry.for_url("") is None

    def test_require_raises_configuration_error(self):
        registry = ServiceProviderRegistry()

        with pytest.raises(UnknownServiceProviderError):
            registry.require_for_url("https://quay.io/repo")

    def test_register(self):
        registry = ServiceProviderRegistry()
        quay = StubServiceProvider(base_url="https://quay.io", provider_type=ServiceProviderType.QUAY)

        registry.register(quay)

        assert len(registry) == 1
        assert registry.require_for_url("https://quay.io/org/image") is quay

    def test_provider_without_base_url_matches_nothing(self):
        assert not StubServiceProvider(base_url="").matches("https://github.com")
