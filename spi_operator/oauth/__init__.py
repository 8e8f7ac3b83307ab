"""Anonymous OAuth state handling."""

from .state import AnonymousOAuthState, OAuthStateCodec
from .url import OAuthUrlBuilder

__all__ = ["AnonymousOAuthState", "OAuthStateCodec", "OAuthUrlBuilder"]
