"""
Provider-independent helpers shared by all service providers.
"""

from typing import Callable, Iterable, Optional, Set

from ..schemas.access_token_schemas import AccessToken, Permission, Permissions
from ..schemas.token_schemas import Token, TokenFieldMapping

ScopeTranslator = Callable[[Permission], Iterable[str]]


def get_all_scopes(translate: ScopeTranslator, permissions: Permissions) -> Set[str]:
    """
    Collect every scope the permissions require.

    Args:
        translate: Provider specific translation of one permission into scopes
        permissions: Required permissions plus verbatim additional scopes

    Returns:
        Deduplicated set of scopes
    """
    scopes: Set[str] = set()
    for permission in permissions.required:
        scopes.update(translate(permission))
    scopes.update(permissions.additional_scopes)
    return scopes


def default_map_token(token: AccessToken, token_data: Optional[Token]) -> TokenFieldMapping:
    """
    Flatten a token and its data into the fields injected into Secrets.

    user_id is left empty, the identity on the provider is carried by
    service_provider_user_id. expired_after is the raw expiry of the token
    data, 0 when there is none.
    """
    metadata = token.status.token_metadata

    return TokenFieldMapping(
        token=token_data.access_token if token_data else "",
        name=token.name,
        service_provider_url=token.spec.service_provider_url,
        service_provider_user_name=metadata.username if metadata else "",
        service_provider_user_id=metadata.user_id if metadata else "",
        user_id="",
        expired_after=token_data.expiry if token_data else 0,
        scopes=list(metadata.scopes) if metadata else [],
    )
