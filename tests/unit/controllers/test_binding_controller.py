"""
Tests of the SPIAccessTokenBinding reconciler and the Secret it maintains.
"""

import base64

import pytest

from spi_operator.config import FeatureFlags
from spi_operator.constants import LINKED_ACCESS_TOKEN_LABEL, SYNCED_BY_BINDING_LABEL
from spi_operator.controllers.binding_controller import AccessTokenBindingReconciler
from spi_operator.enums import AccessTokenPhase, BindingErrorReason, BindingPhase, ErrorKind
from spi_operator.exceptions import ExternalServiceError, ServiceProviderError, classify_error
from spi_operator.schemas.access_token_schemas import AccessToken
from spi_operator.schemas.binding_schemas import AccessTokenBinding
from spi_operator.schemas.secret_schema import Secret
from tests.fixtures.factories import (
    TEST_PROVIDER_URL,
    AccessTokenBindingFactory,
    AccessTokenBindingSpecFactory,
    AccessTokenFactory,
    ObjectMetaFactory,
    SecretSpecFactory,
    TokenFactory,
)
from tests.fixtures.helpers import request_for


def fetch(client, ctx, binding) -> AccessTokenBinding:
    return client.get(ctx, AccessTokenBinding, binding.namespace, binding.name)


def decode(secret: Secret, key: str) -> str:
    return base64.b64decode(secret.data[key]).decode("utf-8")


def ready_token(client, ctx, storage, token_reconciler, **token_kwargs):
    token = client.create(ctx, AccessTokenFactory(**token_kwargs))
    storage.store(ctx, token, TokenFactory(access_token="access token", expiry=15))
    token_reconciler.reconcile(ctx, request_for(token))
    token = client.get(ctx, AccessToken, token.namespace, token.name)
    assert token.status.phase == AccessTokenPhase.READY
    return token


class TestTokenResolution:
    def test_unknown_provider(self, client, ctx, binding_reconciler, provider):
        binding = client.create(
            ctx,
            AccessTokenBindingFactory(spec=AccessTokenBindingSpecFactory(repo_url="unknown://repo")),
        )

        binding_reconciler.reconcile(ctx, request_for(binding))

        stored = fetch(client, ctx, binding)
        assert stored.status.phase == BindingPhase.ERROR
        assert stored.status.error_reason == BindingErrorReason.UNKNOWN_SERVICE_PROVIDER
        assert provider.calls["lookup_token"] == 0
        assert client.list(ctx, AccessToken, "default") == []

    def test_lookup_miss_creates_token(self, client, ctx, binding_reconciler):
        """Without a matching token a new one is created and linked."""
        binding = client.create(ctx, AccessTokenBindingFactory())

        binding_reconciler.reconcile(ctx, request_for(binding))

        tokens = client.list(ctx, AccessToken, binding.namespace)
        assert len(tokens) == 1
        token = tokens[0]
        assert token.name.startswith(f"{binding.name}-token-")
        assert token.spec.service_provider_url == TEST_PROVIDER_URL
        assert token.spec.permissions == binding.spec.permissions

        stored = fetch(client, ctx, binding)
        assert stored.metadata.labels[LINKED_ACCESS_TOKEN_LABEL] == token.name
        assert stored.status.phase == BindingPhase.AWAITING_DATA
        assert stored.status.linked_access_token_name == token.name

    def test_lookup_hit_links_existing_token(self, client, ctx, binding_reconciler, provider):
        token = client.create(ctx, AccessTokenFactory())
        provider.lookup_impl = lambda ctx, binding: token
        binding = client.create(ctx, AccessTokenBindingFactory())

        binding_reconciler.reconcile(ctx, request_for(binding))

        assert fetch(client, ctx, binding).metadata.labels[LINKED_ACCESS_TOKEN_LABEL] == token.name
        assert len(client.list(ctx, AccessToken, "default")) == 1

    def test_existing_link_skips_lookup(self, client, ctx, binding_reconciler, provider):
        token = client.create(ctx, AccessTokenFactory())
        binding = client.create(
            ctx,
            AccessTokenBindingFactory(
                metadata=ObjectMetaFactory(labels={LINKED_ACCESS_TOKEN_LABEL: token.name})
            ),
        )

        binding_reconciler.reconcile(ctx, request_for(binding))

        assert provider.calls["lookup_token"] == 0
        assert fetch(client, ctx, binding).status.linked_access_token_name == token.name

    def test_deleting_token_stays_linked(self, client, ctx, binding_reconciler, provider):
        token = AccessTokenFactory()
        token.add_finalizer("example.com/hold")
        token = client.create(ctx, token)
        client.delete(ctx, AccessToken, token.namespace, token.name)
        binding = client.create(
            ctx,
            AccessTokenBindingFactory(
                metadata=ObjectMetaFactory(labels={LINKED_ACCESS_TOKEN_LABEL: token.name})
            ),
        )

        binding_reconciler.reconcile(ctx, request_for(binding))

        assert provider.calls["lookup_token"] == 0
        assert fetch(client, ctx, binding).metadata.labels[LINKED_ACCESS_TOKEN_LABEL] == token.name

    def test_stale_link_is_replaced(self, client, ctx, binding_reconciler, provider):
        binding = client.create(
            ctx,
            AccessTokenBindingFactory(
                metadata=ObjectMetaFactory(labels={LINKED_ACCESS_TOKEN_LABEL: "deleted-token"})
            ),
        )

        binding_reconciler.reconcile(ctx, request_for(binding))

        assert provider.calls["lookup_token"] == 1
        linked = fetch(client, ctx, binding).metadata.labels[LINKED_ACCESS_TOKEN_LABEL]
        assert linked != "deleted-token"
        assert client.find(ctx, AccessToken, binding.namespace, linked) is not None

    def test_lookup_failure_is_retried_without_creating_a_token(self, client, ctx, binding_reconciler, provider):
        def forbidden(ctx, binding):
            raise ServiceProviderError(403, "rate limited")

        provider.lookup_impl = forbidden
        binding = client.create(ctx, AccessTokenBindingFactory())

        with pytest.raises(ExternalServiceError) as exc_info:
            binding_reconciler.reconcile(ctx, request_for(binding))

        assert classify_error(exc_info.value) == ErrorKind.INFRASTRUCTURE
        assert client.list(ctx, AccessToken, binding.namespace) == []
        assert LINKED_ACCESS_TOKEN_LABEL not in fetch(client, ctx, binding).metadata.labels


class TestStatus:
    def test_awaiting_data_copies_oauth_url(self, client, ctx, binding_reconciler, token_reconciler, provider):
        token = client.create(ctx, AccessTokenFactory())
        token_reconciler.reconcile(ctx, request_for(token))
        token = client.get(ctx, AccessToken, token.namespace, token.name)
        provider.lookup_impl = lambda ctx, binding: token
        binding = client.create(ctx, AccessTokenBindingFactory())

        binding_reconciler.reconcile(ctx, request_for(binding))

        stored = fetch(client, ctx, binding)
        assert stored.status.phase == BindingPhase.AWAITING_DATA
        assert stored.status.oauth_url == token.status.oauth_url

    def test_invalid_token_is_reported(self, client, ctx, storage, binding_reconciler, token_reconciler, provider):
        def rejected(ctx, token, data):
            raise ServiceProviderError(401, "the token is invalid")

        provider.persist_metadata_impl = rejected
        token = client.create(ctx, AccessTokenFactory())
        storage.store(ctx, token, TokenFactory())
        token_reconciler.reconcile(ctx, request_for(token))
        token = client.get(ctx, AccessToken, token.namespace, token.name)
        provider.lookup_impl = lambda ctx, binding: token
        binding = client.create(ctx, AccessTokenBindingFactory())

        binding_reconciler.reconcile(ctx, request_for(binding))

        stored = fetch(client, ctx, binding)
        assert stored.status.phase == BindingPhase.ERROR
        assert stored.status.error_reason == BindingErrorReason.LINKED_TOKEN
        assert stored.status.error_message == token.status.error_message

    def test_ready_token_without_secret_is_injected(self, client, ctx, storage, binding_reconciler, token_reconciler, provider):
        token = ready_token(client, ctx, storage, token_reconciler)
        provider.lookup_impl = lambda ctx, binding: token
        binding = client.create(ctx, AccessTokenBindingFactory())

        binding_reconciler.reconcile(ctx, request_for(binding))

        stored = fetch(client, ctx, binding)
        assert stored.status.phase == BindingPhase.INJECTED
        assert stored.status.synced_object_ref is None
        assert client.list(ctx, Secret, binding.namespace) == []


class TestSecretInjection:
    def test_secret_created_with_token_fields(self, client, ctx, storage, binding_reconciler, token_reconciler, provider):
        token = ready_token(client, ctx, storage, token_reconciler)
        provider.lookup_impl = lambda ctx, binding: token
        binding = client.create(
            ctx,
            AccessTokenBindingFactory(
                spec=AccessTokenBindingSpecFactory(secret=SecretSpecFactory(name="repo-creds"))
            ),
        )

        binding_reconciler.reconcile(ctx, request_for(binding))

        stored = fetch(client, ctx, binding)
        assert stored.status.phase == BindingPhase.INJECTED
        assert stored.status.synced_object_ref.name == "repo-creds"

        secret = client.get(ctx, Secret, binding.namespace, "repo-creds")
        assert decode(secret, "token") == "access token"
        assert decode(secret, "name") == token.name
        assert decode(secret, "serviceProviderUserName") == "alois"
        assert decode(secret, "serviceProviderUserId") == "42"
        assert decode(secret, "expiredAfter") == "15"
        assert "userId" not in secret.data
        assert secret.metadata.labels[SYNCED_BY_BINDING_LABEL] == binding.name
        assert secret.metadata.owner_references[0].uid == stored.metadata.uid

    def test_secret_field_renames_and_basic_auth(self, client, ctx, storage, binding_reconciler, token_reconciler, provider):
        token = ready_token(client, ctx, storage, token_reconciler)
        provider.lookup_impl = lambda ctx, binding: token
        binding = client.create(
            ctx,
            AccessTokenBindingFactory(
                spec=AccessTokenBindingSpecFactory(
                    secret=SecretSpecFactory(
                        name="basic",
                        type="kubernetes.io/basic-auth",
                        fields={"serviceProviderUrl": "url"},
                    )
                )
            ),
        )

        binding_reconciler.reconcile(ctx, request_for(binding))

        secret = client.get(ctx, Secret, binding.namespace, "basic")
        assert secret.type == "kubernetes.io/basic-auth"
        assert set(secret.data) == {"url", "username", "password"}
        assert decode(secret, "password") == "access token"
        assert decode(secret, "url") == TEST_PROVIDER_URL

    def test_second_reconcile_does_not_rewrite_secret(self, client, ctx, storage, binding_reconciler, token_reconciler, provider):
        token = ready_token(client, ctx, storage, token_reconciler)
        provider.lookup_impl = lambda ctx, binding: token
        binding = client.create(
            ctx,
            AccessTokenBindingFactory(
                spec=AccessTokenBindingSpecFactory(secret=SecretSpecFactory(name="stable"))
            ),
        )
        binding_reconciler.reconcile(ctx, request_for(binding))
        first = client.get(ctx, Secret, binding.namespace, "stable")

        binding_reconciler.reconcile(ctx, request_for(binding))

        second = client.get(ctx, Secret, binding.namespace, "stable")
        assert second.metadata.resource_version == first.metadata.resource_version

    def test_new_token_data_updates_secret(self, client, ctx, storage, binding_reconciler, token_reconciler, provider):
        token = ready_token(client, ctx, storage, token_reconciler)
        provider.lookup_impl = lambda ctx, binding: token
        binding = client.create(
            ctx,
            AccessTokenBindingFactory(
                spec=AccessTokenBindingSpecFactory(secret=SecretSpecFactory(name="rotated"))
            ),
        )
        binding_reconciler.reconcile(ctx, request_for(binding))

        storage.store(ctx, token, TokenFactory(access_token="rotated token"))
        binding_reconciler.reconcile(ctx, request_for(binding))

        assert decode(client.get(ctx, Secret, binding.namespace, "rotated"), "token") == "rotated token"

    def test_injection_disabled(self, client, ctx, storage, registry, token_reconciler, provider):
        reconciler = AccessTokenBindingReconciler(
            client, storage, registry, FeatureFlags(enable_token_injection=False)
        )
        token = ready_token(client, ctx, storage, token_reconciler)
        provider.lookup_impl = lambda ctx, binding: token
        binding = client.create(
            ctx,
            AccessTokenBindingFactory(
                spec=AccessTokenBindingSpecFactory(secret=SecretSpecFactory(name="unused"))
            ),
        )

        reconciler.reconcile(ctx, request_for(binding))

        assert fetch(client, ctx, binding).status.phase == BindingPhase.INJECTED
        assert client.find(ctx, Secret, binding.namespace, "unused") is None

    def test_deleting_binding_removes_secret(self, client, ctx, storage, binding_reconciler, token_reconciler, provider):
        token = ready_token(client, ctx, storage, token_reconciler)
        provider.lookup_impl = lambda ctx, binding: token
        binding = client.create(
            ctx,
            AccessTokenBindingFactory(
                spec=AccessTokenBindingSpecFactory(secret=SecretSpecFactory(name="owned"))
            ),
        )
        binding_reconciler.reconcile(ctx, request_for(binding))

        client.delete(ctx, AccessTokenBinding, binding.namespace, binding.name)

        assert client.find(ctx, Secret, binding.namespace, "owned") is None
        assert client.find(ctx, AccessToken, token.namespace, token.name) is not None
