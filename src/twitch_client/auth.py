"""Credential providers.

A closed set of provider variants sharing the ``AuthProvider`` capability:

- ``StaticAuthProvider``: a fixed token (or just a client ID).
- ``RefreshableAuthProvider``: a static token plus a refresh token.
- ``ClientCredentialsAuthProvider``: app tokens from the client secret.

Providers only consume tokens issued by the OAuth endpoints; running the
authorization flows is left to the application. Refreshes are not
deduplicated: two threads hitting an expired token may both refresh.
"""

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import ClassVar, Literal, Protocol, TypeAlias

import structlog

from .api import static
from .api.transport import Transport
from .api.types import AccessToken
from .errors import ConfigError, MissingScopeError

logger = structlog.get_logger(__name__)

TokenType: TypeAlias = Literal["user", "app"]


class AuthProvider(Protocol):
    """Capability consumed by the client to authenticate calls."""

    supports_refresh: ClassVar[bool]

    @property
    def client_id(self) -> str: ...

    @property
    def token_type(self) -> TokenType: ...

    def get_access_token(self, scopes: Sequence[str] | None = None) -> AccessToken | None:
        """Return a token carrying ``scopes``, or None if there is no token."""
        ...

    def refresh(self) -> AccessToken:
        """Obtain a new token; only called when ``supports_refresh`` is set."""
        ...


class StaticAuthProvider:
    """Provider for a fixed access token.

    Without an access token it supplies only the client ID, which makes the
    client fall back to unauthenticated calls.
    """

    supports_refresh: ClassVar[bool] = False

    def __init__(
        self,
        client_id: str,
        access_token: str | AccessToken | None = None,
        scopes: Sequence[str] | None = None,
        token_type: TokenType = "user",
        transport: Transport | None = None,
    ):
        """Initialize the provider.

        Args:
            client_id: The client ID of the application.
            access_token: The token to supply.
            scopes: The scopes the token has. If None, they are looked up
                through token introspection the first time scopes are
                requested.
            token_type: Whether the token is a user or an app token.
            transport: Transport used for the scope lookup.
        """
        if not client_id:
            msg = "client_id cannot be empty"
            raise ConfigError(msg)

        self._client_id = client_id
        self._token_type = token_type
        self._transport = transport
        self._scopes = list(scopes) if scopes is not None else None
        if isinstance(access_token, str):
            access_token = AccessToken(access_token=access_token, scope=self._scopes or [])
        self._access_token = access_token

    @property
    def client_id(self) -> str:
        return self._client_id

    @property
    def token_type(self) -> TokenType:
        return self._token_type

    @property
    def current_scopes(self) -> list[str] | None:
        return self._scopes

    def get_access_token(self, scopes: Sequence[str] | None = None) -> AccessToken | None:
        """Return the token after checking it carries the requested scopes.

        Raises:
            MissingScopeError: If a requested scope is not granted.
            InvalidTokenError: If the scope lookup rejects the token.
        """
        token = self._access_token
        if token is None:
            return None

        if scopes:
            if self._scopes is None:
                info = static.get_token_info(
                    token.access_token,
                    self._client_id,
                    self._transport,
                )
                self._scopes = info.scopes
                logger.debug("Learned token scopes", scopes=self._scopes)
            missing = [scope for scope in scopes if scope not in self._scopes]
            if missing:
                msg = (
                    f"Scope {', '.join(missing)} requested but the given token "
                    f"only has {', '.join(self._scopes) or 'no scopes'}"
                )
                raise MissingScopeError(msg)

        return token

    def refresh(self) -> AccessToken:
        msg = "StaticAuthProvider can not refresh tokens"
        raise ConfigError(msg)

    def set_access_token(self, token: AccessToken) -> None:
        """Replace the supplied token."""
        self._access_token = token
        if token.scope:
            self._scopes = list(token.scope)


@dataclass(frozen=True)
class RefreshConfig:
    """Configuration for refreshing an expired user token.

    ``expiry`` is the epoch time at which the current token expires, if
    known. ``on_refresh`` is called with every new token, e.g. to persist it.
    """

    client_secret: str
    refresh_token: str
    expiry: float | None = None
    on_refresh: Callable[[AccessToken], None] | None = None


class RefreshableAuthProvider:
    """Provider that refreshes the token of a static provider."""

    supports_refresh: ClassVar[bool] = True

    def __init__(
        self,
        child: StaticAuthProvider,
        config: RefreshConfig,
        transport: Transport | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._child = child
        self._client_secret = config.client_secret
        self._refresh_token = config.refresh_token
        self._expiry = config.expiry
        self._on_refresh = config.on_refresh
        self._transport = transport
        self._clock = clock

    @property
    def client_id(self) -> str:
        return self._child.client_id

    @property
    def token_type(self) -> TokenType:
        return self._child.token_type

    def get_access_token(self, scopes: Sequence[str] | None = None) -> AccessToken | None:
        if self._expiry is not None and self._clock() >= self._expiry:
            logger.info("Configured token expiry passed", client_id=self.client_id)
            self.refresh()
        token = self._child.get_access_token(scopes)
        if token is None:
            self.refresh()
            token = self._child.get_access_token(scopes)
        return token

    def refresh(self) -> AccessToken:
        """Exchange the refresh token for a new access token."""
        token = static.refresh_access_token(
            self.client_id,
            self._client_secret,
            self._refresh_token,
            self._transport,
        )
        if token.refresh_token:
            self._refresh_token = token.refresh_token
        self._expiry = token.expiry_date
        self._child.set_access_token(token)
        logger.info(
            "Refreshed access token",
            client_id=self.client_id,
            expires_in=token.expires_in,
        )
        if self._on_refresh is not None:
            self._on_refresh(token)
        return token


class ClientCredentialsAuthProvider:
    """Provider for app tokens obtained with the client secret."""

    supports_refresh: ClassVar[bool] = True

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        transport: Transport | None = None,
    ):
        if not client_id or not client_secret:
            msg = "client_id and client_secret are required for client credentials"
            raise ConfigError(msg)

        self._client_id = client_id
        self._client_secret = client_secret
        self._transport = transport
        self._token: AccessToken | None = None

    @property
    def client_id(self) -> str:
        return self._client_id

    @property
    def token_type(self) -> TokenType:
        return "app"

    def get_access_token(self, scopes: Sequence[str] | None = None) -> AccessToken | None:
        """Return the cached app token, fetching a new one when expired.

        Raises:
            MissingScopeError: If scopes are requested; app tokens have none.
        """
        if scopes:
            msg = (
                f"Scope {', '.join(scopes)} requested but app tokens "
                "can not carry scopes"
            )
            raise MissingScopeError(msg)

        token = self._token
        if token is not None and not token.is_expired:
            return token
        return self.refresh()

    def refresh(self) -> AccessToken:
        self._token = static.get_app_access_token(
            self._client_id,
            self._client_secret,
            self._transport,
        )
        logger.info(
            "Fetched app access token",
            client_id=self._client_id,
            expires_in=self._token.expires_in,
        )
        return self._token
