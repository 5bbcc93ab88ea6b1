"""Calls made with explicit credentials.

Bootstrap operations that do not need a client instance: token issuance,
token refresh and token introspection. These calls never go through the
Helix rate limiter.
"""

import threading
from typing import Any

import structlog

from ..errors import HTTPStatusCodeError, InvalidTokenError
from .call import CallDescriptor, CallType, build_request
from .decoder import decode_response
from .transport import ApiResponse, HttpxTransport, Transport
from .types import AccessToken, TokenInfo

logger = structlog.get_logger(__name__)

UNAUTHORIZED = 401

_default_transport: HttpxTransport | None = None
_default_transport_lock = threading.Lock()


def default_transport() -> HttpxTransport:
    """Shared transport for calls made without an explicit one."""
    global _default_transport  # noqa: PLW0603
    with _default_transport_lock:
        if _default_transport is None:
            _default_transport = HttpxTransport()
        return _default_transport


def call_api_raw(
    descriptor: CallDescriptor,
    client_id: str | None = None,
    access_token: str | None = None,
    transport: Transport | None = None,
) -> ApiResponse:
    """Build and send a call, returning the undecoded response."""
    request = build_request(descriptor, client_id, access_token)
    return (transport or default_transport()).send(request)


def call_api(
    descriptor: CallDescriptor,
    client_id: str | None = None,
    access_token: str | None = None,
    transport: Transport | None = None,
) -> Any:
    """Make a call with the given credentials and decode the response.

    Args:
        descriptor: The call to make.
        client_id: The client ID of the application.
        access_token: The access token to call the API with.
        transport: Transport to use; defaults to a shared httpx transport.

    Returns:
        The decoded JSON body, or None for empty responses.
    """
    response = call_api_raw(descriptor, client_id, access_token, transport)
    return decode_response(response)


def _request_token(query: dict[str, str], transport: Transport | None) -> AccessToken:
    data = call_api(
        CallDescriptor(url="token", type=CallType.AUTH, method="POST", query=query),
        transport=transport,
    )
    return AccessToken.model_validate(data)


def get_user_access_token(
    client_id: str,
    client_secret: str,
    code: str,
    redirect_uri: str,
    transport: Transport | None = None,
) -> AccessToken:
    """Exchange an authorization code for a user access token.

    ``redirect_uri`` must match the one configured for the application.
    """
    return _request_token(
        {
            "grant_type": "authorization_code",
            "client_id": client_id,
            "client_secret": client_secret,
            "code": code,
            "redirect_uri": redirect_uri,
        },
        transport,
    )


def get_app_access_token(
    client_id: str,
    client_secret: str,
    transport: Transport | None = None,
) -> AccessToken:
    """Retrieve an app access token with the client credentials."""
    return _request_token(
        {
            "grant_type": "client_credentials",
            "client_id": client_id,
            "client_secret": client_secret,
        },
        transport,
    )


def refresh_access_token(
    client_id: str,
    client_secret: str,
    refresh_token: str,
    transport: Transport | None = None,
) -> AccessToken:
    """Exchange a refresh token for a new access token."""
    logger.info("Refreshing access token", client_id=client_id)
    return _request_token(
        {
            "grant_type": "refresh_token",
            "client_id": client_id,
            "client_secret": client_secret,
            "refresh_token": refresh_token,
        },
        transport,
    )


def get_token_info(
    access_token: str,
    client_id: str | None = None,
    transport: Transport | None = None,
) -> TokenInfo:
    """Retrieve information about an access token.

    Raises:
        InvalidTokenError: If the token is rejected (HTTP 401).
        HTTPStatusCodeError: For any other non-2xx status.
    """
    try:
        data = call_api(
            CallDescriptor(url="validate", type=CallType.AUTH),
            client_id,
            access_token,
            transport,
        )
    except HTTPStatusCodeError as e:
        if e.status_code == UNAUTHORIZED:
            raise InvalidTokenError from e
        raise
    return TokenInfo.model_validate(data)
