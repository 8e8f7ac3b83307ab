"""
In-process token storage.
"""

import threading
from typing import TYPE_CHECKING, Dict, Optional, Tuple

from ..schemas.access_token_schemas import AccessToken
from ..schemas.token_schemas import Token
from .interface import TokenStorage

if TYPE_CHECKING:
    from ..context.reconcile_context import ReconcileContext


class MemoryTokenStorage(TokenStorage):
    """
    Thread-safe token storage kept in a dict.

    Data is lost on restart, so this is only suitable for tests and local
    development.
    """

    def __init__(self):
        self._data: Dict[Tuple[str, str], Token] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(owner: AccessToken) -> Tuple[str, str]:
        return owner.namespace, owner.name

    def store(self, ctx: "ReconcileContext", owner: AccessToken, token: Token) -> None:
        with self._lock:
            self._data[self._key(owner)] = token.model_copy(deep=True)

    def get(self, ctx: "ReconcileContext", owner: AccessToken) -> Optional[Token]:
        with self._lock:
            token = self._data.get(self._key(owner))
            return token.model_copy(deep=True) if token is not None else None

    def delete(self, ctx: "ReconcileContext", owner: AccessToken) -> None:
        with self._lock:
            self._data.pop(self._key(owner), None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
