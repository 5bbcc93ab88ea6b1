"""Twitch API client.

Owns the credential provider and the Helix rate limiter, and runs every
call through the authenticated call pipeline: acquire token, refresh when
expired, dispatch, refresh and retry once on 401, decode.
"""

from collections.abc import Mapping, Sequence
from typing import Any

import structlog

from .api import static
from .api.call import CallDescriptor, CallType, Params, build_request
from .api.decoder import decode_response
from .api.ratelimit import HelixRateLimiter
from .api.transport import ApiResponse, HttpxTransport, Transport
from .api.types import AccessToken, TokenInfo
from .auth import (
    AuthProvider,
    ClientCredentialsAuthProvider,
    RefreshableAuthProvider,
    RefreshConfig,
    StaticAuthProvider,
    TokenType,
)
from .endpoints import bind_endpoint
from .errors import ConfigError, HTTPStatusCodeError, InvalidTokenError

logger = structlog.get_logger(__name__)

UNAUTHORIZED = 401


class TwitchClient:
    """Entry point for authenticated calls to the Twitch API.

    Thread-safe: concurrent calls share the provider's token and the Helix
    rate limiter. Can be used as a context manager for automatic cleanup.
    """

    def __init__(
        self,
        auth_provider: AuthProvider | None,
        transport: Transport | None = None,
        pre_auth: bool = False,
        initial_scopes: Sequence[str] | None = None,
    ):
        """Initialize the client.

        Args:
            auth_provider: Provider supplying access tokens.
            transport: Transport for all calls; defaults to a new
                ``HttpxTransport``.
            pre_auth: Fetch a token from the provider right away.
            initial_scopes: Scopes to request with the initial token.

        Raises:
            ConfigError: If no auth provider is given.
        """
        if auth_provider is None:
            msg = "No auth provider given"
            raise ConfigError(msg)

        self._auth_provider = auth_provider
        self._transport: Transport = transport or HttpxTransport()
        self._helix_rate_limiter = HelixRateLimiter(self._transport)

        if pre_auth:
            auth_provider.get_access_token(initial_scopes)

    @classmethod
    def with_credentials(
        cls,
        client_id: str,
        access_token: str | None = None,
        scopes: Sequence[str] | None = None,
        refresh_config: RefreshConfig | None = None,
        token_type: TokenType = "user",
        transport: Transport | None = None,
        **kwargs: Any,
    ) -> "TwitchClient":
        """Create a client with fixed credentials.

        Args:
            client_id: The client ID of the application.
            access_token: The access token to call the API with.
            scopes: The scopes the token has; looked up when omitted.
            refresh_config: Enables refreshing expired tokens.
            token_type: The type of the given token, almost always "user".
            transport: Transport shared by the client and its provider.
            **kwargs: Passed on to the constructor.
        """
        transport = transport or HttpxTransport()
        static_provider = StaticAuthProvider(
            client_id,
            access_token,
            scopes,
            token_type,
            transport=transport,
        )
        if refresh_config is None:
            return cls(static_provider, transport=transport, **kwargs)

        provider = RefreshableAuthProvider(
            static_provider,
            refresh_config,
            transport=transport,
        )
        return cls(provider, transport=transport, **kwargs)

    @classmethod
    def with_client_credentials(
        cls,
        client_id: str,
        client_secret: str | None = None,
        transport: Transport | None = None,
        **kwargs: Any,
    ) -> "TwitchClient":
        """Create a client authenticating with app tokens.

        Without a secret, the client only sends its client ID.
        """
        transport = transport or HttpxTransport()
        provider: AuthProvider
        if client_secret:
            provider = ClientCredentialsAuthProvider(
                client_id,
                client_secret,
                transport=transport,
            )
        else:
            provider = StaticAuthProvider(client_id, transport=transport)
        return cls(provider, transport=transport, **kwargs)

    call_api_static = staticmethod(static.call_api)
    get_user_access_token = staticmethod(static.get_user_access_token)
    get_app_access_token = staticmethod(static.get_app_access_token)
    refresh_access_token_static = staticmethod(static.refresh_access_token)
    get_token_info_static = staticmethod(static.get_token_info)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        """Close the HTTP transport; it reopens lazily if used again."""
        if isinstance(self._transport, HttpxTransport):
            self._transport.close()

    @property
    def auth_provider(self) -> AuthProvider:
        return self._auth_provider

    @property
    def rate_limiter(self) -> HelixRateLimiter:
        return self._helix_rate_limiter

    @property
    def token_type(self) -> TokenType:
        """The type of token used by the client."""
        return self._auth_provider.token_type

    def get_access_token(self, scopes: Sequence[str] | None = None) -> AccessToken | None:
        """Retrieve an access token from the provider."""
        return self._auth_provider.get_access_token(scopes)

    def refresh_access_token(self) -> AccessToken | None:
        """Force the provider to refresh its token, if it can."""
        if not self._auth_provider.supports_refresh:
            return None
        return self._auth_provider.refresh()

    def get_token_info(self) -> TokenInfo:
        """Retrieve information about the client's access token.

        Raises:
            InvalidTokenError: If the token is rejected.
        """
        try:
            data = self.call_api(CallDescriptor(url="validate", type=CallType.AUTH))
        except HTTPStatusCodeError as e:
            if e.status_code == UNAUTHORIZED:
                raise InvalidTokenError from e
            raise
        return TokenInfo.model_validate(data)

    def call_api(self, descriptor: CallDescriptor) -> Any:
        """Make a call using the provider's credentials.

        A 401 response makes a refresh-capable provider refresh once, after
        which the call is sent again exactly once. The second response is
        decoded whatever its status.

        Returns:
            The decoded JSON body, or None for empty responses.

        Raises:
            HTTPStatusCodeError: If the final response is not 2xx.
        """
        provider = self._auth_provider
        scopes = [descriptor.scope] if descriptor.scope else None

        token = provider.get_access_token(scopes)
        if token is None:
            logger.debug("No access token available, calling without one", url=descriptor.url)
            return decode_response(self._dispatch(descriptor, provider.client_id, None))

        if token.is_expired and provider.supports_refresh:
            logger.info("Access token expired, refreshing before call", url=descriptor.url)
            token = provider.refresh()

        response = self._dispatch(descriptor, provider.client_id, token.access_token)
        if response.status == UNAUTHORIZED and provider.supports_refresh:
            logger.info("Call unauthorized, refreshing token and retrying", url=descriptor.url)
            provider.refresh()
            token = provider.get_access_token(scopes)
            if token is not None:
                response = self._dispatch(descriptor, provider.client_id, token.access_token)

        return decode_response(response)

    def call_endpoint(
        self,
        name: str,
        path_params: Mapping[str, str] | None = None,
        query: Params | None = None,
        body: Params | None = None,
        json_body: Any = None,
    ) -> Any:
        """Call a named endpoint from the registry."""
        descriptor = bind_endpoint(name, path_params, query, body, json_body)
        return self.call_api(descriptor)

    def _dispatch(
        self,
        descriptor: CallDescriptor,
        client_id: str | None,
        access_token: str | None,
    ) -> ApiResponse:
        request = build_request(descriptor, client_id, access_token)
        if descriptor.type is CallType.HELIX:
            return self._helix_rate_limiter.request(request)
        return self._transport.send(request)
