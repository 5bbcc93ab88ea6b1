"""API response types for the Twitch OAuth2 endpoints.

Pydantic models for the token issuance and token introspection payloads.
Tokens are immutable: a refresh produces a new instance.
"""

import time

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _split_scopes(value: object) -> object:
    # The token endpoint returns a list, older responses a space separated string
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    return value


class AccessToken(BaseModel):
    """OAuth access token as issued by the token endpoint.

    ``obtained_at`` is the epoch time the token was received and, together
    with ``expires_in``, determines the expiry. A token without
    ``expires_in`` never reports itself as expired.
    """

    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None
    scope: list[str] = Field(default_factory=list)
    obtained_at: float = Field(default_factory=time.time)

    @field_validator("scope", mode="before")
    @classmethod
    def normalize_scope(cls, value: object) -> object:
        return _split_scopes(value)

    @property
    def expiry_date(self) -> float | None:
        """Epoch seconds at which the token expires, or None if unknown."""
        if self.expires_in is None:
            return None
        return self.obtained_at + self.expires_in

    @property
    def is_expired(self) -> bool:
        """Whether the token is past its expiry date."""
        expiry = self.expiry_date
        return expiry is not None and time.time() >= expiry


class TokenInfo(BaseModel):
    """Token introspection result from the ``validate`` endpoint."""

    client_id: str
    login: str | None = None
    user_id: str | None = None
    scopes: list[str] = Field(default_factory=list)
    expires_in: int | None = None

    @field_validator("scopes", mode="before")
    @classmethod
    def normalize_scopes(cls, value: object) -> object:
        return _split_scopes(value)
