"""
Tests of the anonymous OAuth state codec and the OAuth URL builder.
"""

from urllib.parse import parse_qs, urlparse

import jwt
import pytest

from spi_operator.enums import ServiceProviderType
from spi_operator.exceptions import ConfigurationError, OAuthStateError
from spi_operator.oauth.state import AnonymousOAuthState, OAuthStateCodec
from tests.fixtures.factories import AccessTokenFactory, PermissionFactory, PermissionsFactory
from tests.fixtures.helpers import OAUTH_BASE_URL, SIGNING_KEY


def make_state(**overrides) -> AnonymousOAuthState:
    values = dict(
        token_name="token",
        token_namespace="default",
        issued_at=1_700_000_000,
        scopes=["repo", "user"],
        service_provider_type=ServiceProviderType.GITHUB,
        service_provider_url="https://github.com",
    )
    values.update(overrides)
    return AnonymousOAuthState(**values)


def state_of(url: str) -> str:
    return parse_qs(urlparse(url).query)["state"][0]


class TestIssuance:
    def test_state_from_the_future_is_rejected(self):
        state = make_state(issued_at=2_000)

        with pytest.raises(OAuthStateError, match="request from the future"):
            state.validate_issuance(now=1_000)

    def test_state_from_the_past_is_accepted(self):
        make_state(issued_at=1_000).validate_issuance(now=2_000)

    def test_state_issued_now_is_accepted(self):
        make_state(issued_at=1_000).validate_issuance(now=1_000)


class TestCodec:
    def test_round_trip(self, codec):
        state = make_state()

        assert codec.decode(codec.encode(state)) == state

    def test_encoding_is_deterministic(self, codec):
        assert codec.encode(make_state()) == codec.encode(make_state())

    def test_claims_use_wire_names(self, codec):
        claims = jwt.decode(codec.encode(make_state()), options={"verify_signature": False})

        assert claims["tokenName"] == "token"
        assert claims["tokenNamespace"] == "default"
        assert claims["serviceProviderType"] == "GitHub"
        assert claims["issuedAt"] == 1_700_000_000

    def test_unset_issued_at_is_omitted(self, codec):
        claims = jwt.decode(codec.encode(make_state(issued_at=0)), options={"verify_signature": False})

        assert "issuedAt" not in claims

    def test_tampered_state_is_rejected(self, codec):
        encoded = codec.encode(make_state())
        header, payload, signature = encoded.split(".")
        forged = codec.encode(make_state(token_name="someone-elses-token")).split(".")[1]

        with pytest.raises(OAuthStateError):
            codec.decode(".".join([header, forged, signature]))

    def test_other_key_is_rejected(self, codec):
        encoded = OAuthStateCodec("another-key-of-sufficient-length-for-hs256").encode(make_state())

        with pytest.raises(OAuthStateError):
            codec.decode(encoded)

    def test_garbage_is_rejected(self, codec):
        with pytest.raises(OAuthStateError):
            codec.decode("not-a-state")

    def test_missing_claims_are_rejected(self, codec):
        encoded = jwt.encode({"tokenName": "token"}, SIGNING_KEY, algorithm="HS256")

        with pytest.raises(OAuthStateError, match="malformed"):
            codec.decode(encoded)

    def test_parse_anonymous_validates_issuance(self, codec):
        encoded = codec.encode(make_state(issued_at=2_000))

        assert codec.parse_anonymous(encoded, now=3_000).token_name == "token"
        with pytest.raises(OAuthStateError):
            codec.parse_anonymous(encoded, now=1_000)

    def test_empty_signing_key(self):
        with pytest.raises(ConfigurationError):
            OAuthStateCodec("")


class TestOAuthUrlBuilder:
    def test_url_layout(self, oauth_urls, provider, codec):
        token = AccessTokenFactory()

        url = oauth_urls.build(token, provider)

        assert url.startswith(f"{OAUTH_BASE_URL}/github/authenticate?state=")
        state = codec.decode(state_of(url))
        assert state.token_name == token.name
        assert state.token_namespace == token.namespace
        assert state.scopes == ["repository:rw"]
        assert state.issued_at > 0

    def test_same_request_keeps_url(self, oauth_urls, provider):
        token = AccessTokenFactory()
        url = oauth_urls.build(token, provider)

        assert oauth_urls.build(token, provider, current=url) == url

    def test_changed_scopes_rewrite_url(self, oauth_urls, provider, codec):
        token = AccessTokenFactory()
        url = oauth_urls.build(token, provider)
        token.spec.permissions = PermissionsFactory(
            required=[PermissionFactory(type="r", area="webhook")]
        )

        rebuilt = oauth_urls.build(token, provider, current=url)

        assert rebuilt != url
        assert codec.decode(state_of(rebuilt)).scopes == ["webhook:r"]

    def test_foreign_url_is_replaced(self, oauth_urls, provider):
        token = AccessTokenFactory()

        url = oauth_urls.build(token, provider, current="https://elsewhere.example.com/?state=x")

        assert url.startswith(OAUTH_BASE_URL)

    def test_unreadable_state_is_replaced(self, oauth_urls, provider):
        token = AccessTokenFactory()
        current = f"{OAUTH_BASE_URL}/github/authenticate?state=garbage"

        assert oauth_urls.build(token, provider, current=current) != current
