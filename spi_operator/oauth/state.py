"""
Codec of the anonymous OAuth state.

The operator publishes an OAuth URL on every SPIAccessToken awaiting data.
The URL points to the OAuth service and carries the anonymous state: which
token the flow is for and which scopes it needs. The state is a JWT signed
with a key shared with the OAuth service.
"""

import time
from typing import Any, Dict, List, Optional

import jwt
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from ..enums import ServiceProviderType
from ..exceptions import ConfigurationError, OAuthStateError

SIGNING_ALGORITHM = "HS256"


class AnonymousOAuthState(BaseModel):
    """
    State put on the OAuth URL before the identity of the user is known.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    token_name: str
    token_namespace: str
    # unix seconds, 0 means unset
    issued_at: int = 0
    scopes: List[str] = Field(default_factory=list)
    service_provider_type: ServiceProviderType
    service_provider_url: str

    def validate_issuance(self, now: Optional[int] = None) -> None:
        """
        Reject states issued after now.

        Old states are not rejected here.

        Raises:
            OAuthStateError: If the state claims to be issued in the future
        """
        if now is None:
            now = int(time.time())
        if now < self.issued_at:
            raise OAuthStateError(
                "request from the future", issued_at=self.issued_at, now=now
            )

    def claims(self) -> Dict[str, Any]:
        claims = self.model_dump(mode="json", by_alias=True)
        if not self.issued_at:
            del claims["issuedAt"]
        return claims

    def same_request(self, other: "AnonymousOAuthState") -> bool:
        """Whether both states start the same flow, ignoring when they were issued."""
        return self.model_dump(exclude={"issued_at"}) == other.model_dump(exclude={"issued_at"})


class OAuthStateCodec:
    """Signs and verifies anonymous OAuth states."""

    def __init__(self, signing_key: str):
        if not signing_key:
            raise ConfigurationError("OAuth state signing key must not be empty")
        self._signing_key = signing_key

    def encode(self, state: AnonymousOAuthState) -> str:
        """Encode the state, identical states give identical strings."""
        return jwt.encode(state.claims(), self._signing_key, algorithm=SIGNING_ALGORITHM)

    def decode(self, encoded: str) -> AnonymousOAuthState:
        """
        Verify and decode a state.

        Raises:
            OAuthStateError: If the state is malformed, tampered or signed with another key
        """
        try:
            claims = jwt.decode(encoded, self._signing_key, algorithms=[SIGNING_ALGORITHM])
        except jwt.InvalidTokenError as e:
            raise OAuthStateError(f"invalid OAuth state: {e}", cause=e) from e

        try:
            return AnonymousOAuthState.model_validate(claims)
        except PydanticValidationError as e:
            raise OAuthStateError(f"malformed OAuth state: {e}", cause=e) from e

    def parse_anonymous(self, encoded: str, now: Optional[int] = None) -> AnonymousOAuthState:
        """Decode and validate a state."""
        state = self.decode(encoded)
        state.validate_issuance(now)
        return state
