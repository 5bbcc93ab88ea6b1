"""Call descriptors and request construction.

Turns a logical API call into a transport-ready request following the
URL, header and body rules of each endpoint group.
"""

import enum
import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, TypeAlias

import httpx

from .transport import ApiRequest

DEFAULT_KRAKEN_VERSION = 5

API_ROOT = "https://api.twitch.tv"
AUTH_ROOT = "https://id.twitch.tv/oauth2"

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"

ParamValue: TypeAlias = str | bytes | int | float | bool | Sequence[str] | None
Params: TypeAlias = Mapping[str, ParamValue]


class CallType(enum.Enum):
    """Endpoint group a call is sent to."""

    KRAKEN = "kraken"
    HELIX = "helix"
    AUTH = "auth"
    CUSTOM = "custom"


@dataclass(frozen=True)
class CallDescriptor:
    """Description of a single API call.

    ``url`` is relative to the group's API root unless ``type`` is
    ``CallType.CUSTOM``, in which case it is absolute. ``body`` (form) takes
    precedence over ``json_body`` when both are given. ``version`` only
    affects Kraken calls.
    """

    url: str
    type: CallType = CallType.KRAKEN
    method: str = "GET"
    query: Params | None = None
    body: Params | None = None
    json_body: Any = None
    scope: str | None = None
    version: int | None = None


def _encode_params(params: Params | None) -> str:
    """Serialize params with repeated keys for list values, dropping None."""
    if not params:
        return ""
    items: list[tuple[str, str]] = []
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
            items.append((key, _stringify(value)))
        else:
            items.extend((key, _stringify(item)) for item in value)
    return str(httpx.QueryParams(items))


def _stringify(value: object) -> str:
    if isinstance(value, bytes):
        return value.decode()
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def resolve_url(url: str, call_type: CallType) -> str:
    """Resolve a call's URL against the root of its endpoint group."""
    path = url.removeprefix("/")
    if call_type in (CallType.KRAKEN, CallType.HELIX):
        return f"{API_ROOT}/{call_type.value}/{path}"
    if call_type is CallType.AUTH:
        return f"{AUTH_ROOT}/{path}"
    return url


def build_request(
    descriptor: CallDescriptor,
    client_id: str | None = None,
    access_token: str | None = None,
) -> ApiRequest:
    """Build the HTTP request for a call.

    Args:
        descriptor: The call to build.
        client_id: Client ID sent as ``Client-ID`` (never to the auth group).
        access_token: Token sent as ``Authorization``; ``Bearer`` scheme for
            Helix, ``OAuth`` for everything else.

    Returns:
        The transport-ready request.
    """
    call_type = descriptor.type
    url = resolve_url(descriptor.url, call_type)
    query = _encode_params(descriptor.query)
    if query:
        url = f"{url}?{query}"

    headers: dict[str, str] = {}
    if call_type is CallType.KRAKEN:
        version = descriptor.version or DEFAULT_KRAKEN_VERSION
        headers["Accept"] = f"application/vnd.twitchtv.v{version}+json"
    elif call_type is not CallType.CUSTOM:
        headers["Accept"] = JSON_CONTENT_TYPE

    body: bytes | None = None
    if descriptor.body is not None:
        body = _encode_params(descriptor.body).encode()
        headers["Content-Type"] = FORM_CONTENT_TYPE
    elif descriptor.json_body is not None:
        body = json.dumps(descriptor.json_body).encode()
        headers["Content-Type"] = JSON_CONTENT_TYPE

    if client_id and call_type is not CallType.AUTH:
        headers["Client-ID"] = client_id

    if access_token:
        scheme = "Bearer" if call_type is CallType.HELIX else "OAuth"
        headers["Authorization"] = f"{scheme} {access_token}"

    return ApiRequest(
        url=url,
        method=descriptor.method,
        headers=headers,
        body=body,
    )
