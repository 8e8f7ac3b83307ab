"""
Factory Boy factories for the resource models.

The factories build unsaved models; create them through a ResourceClient
to get server-assigned fields (uid, resourceVersion).
"""

import factory

from spi_operator.schemas.access_token_schemas import (
    AccessToken,
    AccessTokenSpec,
    Permission,
    Permissions,
    TokenMetadata,
)
from spi_operator.schemas.binding_schemas import AccessTokenBinding, AccessTokenBindingSpec, SecretSpec
from spi_operator.schemas.common import ObjectMeta
from spi_operator.schemas.data_update_schemas import AccessTokenDataUpdate, AccessTokenDataUpdateSpec
from spi_operator.schemas.token_schemas import Token

TEST_PROVIDER_URL = "test-provider://"
TEST_NAMESPACE = "default"

# ==================== SPEC FACTORIES ====================


class PermissionFactory(factory.Factory):
    class Meta:
        model = Permission

    type = "rw"
    area = "repository"


class PermissionsFactory(factory.Factory):
    class Meta:
        model = Permissions

    required = factory.LazyFunction(lambda: [PermissionFactory()])
    additional_scopes = factory.LazyFunction(list)


class TokenMetadataFactory(factory.Factory):
    class Meta:
        model = TokenMetadata

    username = "alois"
    user_id = "42"
    scopes = factory.LazyFunction(list)


# ==================== RESOURCE FACTORIES ====================


class ObjectMetaFactory(factory.Factory):
    class Meta:
        model = ObjectMeta

    name = factory.Sequence(lambda n: f"object-{n}")
    namespace = TEST_NAMESPACE


class AccessTokenSpecFactory(factory.Factory):
    class Meta:
        model = AccessTokenSpec

    service_provider_url = TEST_PROVIDER_URL
    permissions = factory.SubFactory(PermissionsFactory)


class AccessTokenFactory(factory.Factory):
    """SPIAccessToken pointing at the test provider."""

    class Meta:
        model = AccessToken

    metadata = factory.SubFactory(
        ObjectMetaFactory, name=factory.Sequence(lambda n: f"test-token-{n}")
    )
    spec = factory.SubFactory(AccessTokenSpecFactory)


class AccessTokenBindingSpecFactory(factory.Factory):
    class Meta:
        model = AccessTokenBindingSpec

    repo_url = factory.Sequence(lambda n: f"{TEST_PROVIDER_URL}org/repo-{n}")
    permissions = factory.SubFactory(PermissionsFactory)
    secret = None


class AccessTokenBindingFactory(factory.Factory):
    class Meta:
        model = AccessTokenBinding

    metadata = factory.SubFactory(
        ObjectMetaFactory, name=factory.Sequence(lambda n: f"test-binding-{n}")
    )
    spec = factory.SubFactory(AccessTokenBindingSpecFactory)


class SecretSpecFactory(factory.Factory):
    class Meta:
        model = SecretSpec

    name = factory.Sequence(lambda n: f"injected-secret-{n}")


class AccessTokenDataUpdateFactory(factory.Factory):
    class Meta:
        model = AccessTokenDataUpdate

    metadata = factory.SubFactory(
        ObjectMetaFactory, name=factory.Sequence(lambda n: f"test-update-{n}")
    )
    spec = factory.LazyAttribute(lambda o: AccessTokenDataUpdateSpec(token_name=o.token_name))

    class Params:
        token_name = "test-token"


# ==================== TOKEN DATA FACTORIES ====================


class TokenFactory(factory.Factory):
    """Token data as held by the token storage."""

    class Meta:
        model = Token

    access_token = factory.Faker("sha1")
    token_type = "bearer"
    username = factory.Faker("user_name")
    expiry = 3600
