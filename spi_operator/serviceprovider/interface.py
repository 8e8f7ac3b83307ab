"""
The capability set every service provider implements.

Concrete providers live outside the operator and are plugged in at start-up
through the service provider registry.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Set

from ..enums import ServiceProviderType
from ..schemas.access_token_schemas import AccessToken, Permission, Permissions, TokenMetadata
from ..schemas.binding_schemas import AccessTokenBinding
from ..schemas.token_schemas import Token, TokenFieldMapping
from .scopes import default_map_token, get_all_scopes

if TYPE_CHECKING:
    from ..context.reconcile_context import ReconcileContext


@dataclass
class ValidationResult:
    """
    Outcome of validating token data against the requested permissions.

    Every entry of scope_validation is a human readable reason why a
    permission cannot be satisfied. Infrastructure failures are raised
    instead of reported here.
    """

    scope_validation: List[Exception] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.scope_validation

    def message(self) -> str:
        return "; ".join(str(e) for e in self.scope_validation)


class ServiceProvider(ABC):
    """
    A service provider the operator can broker tokens for.

    Every method receives the ReconcileContext of the calling reconcile and
    must give up once ctx.remaining() runs out. Failures of the provider's API
    are raised as ServiceProviderError carrying the status code of the
    response.
    """

    def __init__(self, provider_type: ServiceProviderType, base_url: str):
        self.provider_type = provider_type
        self.base_url = base_url

    def matches(self, url: str) -> bool:
        """Whether this provider serves the given repository or provider URL."""
        return bool(self.base_url) and url.startswith(self.base_url)

    @abstractmethod
    def translate_to_scopes(self, permission: Permission) -> List[str]:
        """Translate one permission into the provider's scopes."""
        pass

    @abstractmethod
    def validate(
        self, ctx: "ReconcileContext", token_data: Token, permissions: Permissions
    ) -> ValidationResult:
        """Check the token data can satisfy the permissions."""
        pass

    @abstractmethod
    def lookup_token(
        self, ctx: "ReconcileContext", binding: AccessTokenBinding
    ) -> Optional[AccessToken]:
        """
        Find an existing SPIAccessToken that satisfies the binding.

        Returns:
            The token, or None if a new one has to be created
        """
        pass

    @abstractmethod
    def persist_metadata(
        self, ctx: "ReconcileContext", token: AccessToken, token_data: Token
    ) -> Optional[TokenMetadata]:
        """
        Fetch what the provider knows about the token's owner.

        Returns:
            Metadata to record on the token, None if there is nothing to record
        """
        pass

    def get_all_scopes(self, permissions: Permissions) -> Set[str]:
        return get_all_scopes(self.translate_to_scopes, permissions)

    def map_token(self, token: AccessToken, token_data: Optional[Token]) -> TokenFieldMapping:
        return default_map_token(token, token_data)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(type={self.provider_type.value}, base_url={self.base_url})"
