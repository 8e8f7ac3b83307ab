"""
Contract of the external storage holding token data.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

from ..schemas.access_token_schemas import AccessToken
from ..schemas.token_schemas import Token

if TYPE_CHECKING:
    from ..context.reconcile_context import ReconcileContext


class TokenStorage(ABC):
    """
    Storage of token data, addressed by the owning SPIAccessToken.

    Implementations raise TokenStorageError on failures of the storage. A
    missing record is not a failure: get returns None.
    """

    @abstractmethod
    def store(self, ctx: "ReconcileContext", owner: AccessToken, token: Token) -> None:
        """Create or overwrite the token data of owner."""
        pass

    @abstractmethod
    def get(self, ctx: "ReconcileContext", owner: AccessToken) -> Optional[Token]:
        """Token data of owner, None when there is none."""
        pass

    @abstractmethod
    def delete(self, ctx: "ReconcileContext", owner: AccessToken) -> None:
        """Remove the token data of owner. Deleting absent data succeeds."""
        pass
