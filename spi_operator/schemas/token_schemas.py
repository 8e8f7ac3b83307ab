"""
The secret record held by the token storage and the flattened form of it
injected into Secrets.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Token(BaseModel):
    """Token data as kept by the token storage, never stored in the cluster."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    access_token: str = Field(default="", repr=False)
    token_type: Optional[str] = None
    refresh_token: Optional[str] = Field(default=None, repr=False)
    username: str = ""
    # seconds the token is valid for, 0 when unknown
    expiry: int = Field(default=0, ge=0)


class TokenFieldMapping(BaseModel):
    """Flattened token data that bindings inject into Secrets."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    token: str = Field(default="", repr=False)
    name: str = ""
    service_provider_url: str = ""
    service_provider_user_name: str = ""
    service_provider_user_id: str = ""
    user_id: str = ""
    expired_after: int = 0
    scopes: List[str] = Field(default_factory=list)

    def to_secret_data(
        self, fields: Optional[Dict[str, str]] = None, secret_type: str = "Opaque"
    ) -> Dict[str, str]:
        """
        Render the mapping as Secret stringData.

        Args:
            fields: Optional renames, camelCase field name -> Secret key. When
                given only the listed fields are written.
            secret_type: Type of the target Secret. basic-auth secrets always
                receive the username/password keys.

        Returns:
            Secret key -> string value, empty values omitted
        """
        values = {
            key: value
            for key, value in self.model_dump(by_alias=True).items()
            if value not in ("", None, [])
        }
        values["expiredAfter"] = self.expired_after
        if "scopes" in values:
            values["scopes"] = ",".join(self.scopes)

        if fields:
            data = {
                secret_key: str(values[field]) for field, secret_key in fields.items() if field in values
            }
        else:
            data = {key: str(value) for key, value in values.items()}

        if secret_type == "kubernetes.io/basic-auth":
            data["username"] = self.service_provider_user_name
            data["password"] = self.token

        return data
