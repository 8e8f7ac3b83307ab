"""
OAuth URLs published on tokens awaiting data.
"""

import time
from typing import Optional
from urllib.parse import parse_qs, quote, urlparse

from ..exceptions import OAuthStateError
from ..schemas.access_token_schemas import AccessToken
from .state import AnonymousOAuthState, OAuthStateCodec


class OAuthUrlBuilder:
    """
    Builds <base>/<provider type>/authenticate?state=<state> URLs.

    A URL already published for the same token, scopes and provider is kept
    as is, so reconciling a token twice does not rewrite its status just
    because time passed.
    """

    def __init__(self, base_url: str, codec: OAuthStateCodec):
        self.base_url = base_url.rstrip("/")
        self.codec = codec

    def _prefix(self, provider) -> str:
        return f"{self.base_url}/{provider.provider_type.value.lower()}/authenticate"

    def state_for(self, token: AccessToken, provider, now: Optional[int] = None) -> AnonymousOAuthState:
        return AnonymousOAuthState(
            token_name=token.name,
            token_namespace=token.namespace,
            issued_at=int(time.time()) if now is None else now,
            scopes=sorted(provider.get_all_scopes(token.spec.permissions)),
            service_provider_type=provider.provider_type,
            service_provider_url=token.spec.service_provider_url,
        )

    def current_state(self, url: Optional[str], provider) -> Optional[AnonymousOAuthState]:
        """State of a previously published URL, None if it is not ours or unreadable."""
        if not url or not url.startswith(self._prefix(provider) + "?"):
            return None
        values = parse_qs(urlparse(url).query).get("state")
        if not values:
            return None
        try:
            return self.codec.decode(values[0])
        except OAuthStateError:
            return None

    def build(self, token: AccessToken, provider, current: Optional[str] = None) -> str:
        state = self.state_for(token, provider)
        existing = self.current_state(current, provider)
        if existing is not None and existing.same_request(state):
            return current
        return f"{self._prefix(provider)}?state={quote(self.codec.encode(state), safe='')}"
