"""Registry of named endpoint templates.

Maps logical operation names to call templates so resource calls do not
need one bespoke method each. Callers fill in query parameters and bodies
when making the call.
"""

import dataclasses
from collections.abc import Mapping
from typing import Any

from .api.call import CallDescriptor, CallType, Params
from .errors import UnknownEndpointError

ENDPOINTS: Mapping[str, CallDescriptor] = {
    # Helix
    "helix.users": CallDescriptor(url="users", type=CallType.HELIX),
    "helix.users.follows": CallDescriptor(url="users/follows", type=CallType.HELIX),
    "helix.users.update": CallDescriptor(
        url="users",
        type=CallType.HELIX,
        method="PUT",
        scope="user:edit",
    ),
    "helix.streams": CallDescriptor(url="streams", type=CallType.HELIX),
    "helix.games": CallDescriptor(url="games", type=CallType.HELIX),
    "helix.games.top": CallDescriptor(url="games/top", type=CallType.HELIX),
    "helix.clips": CallDescriptor(url="clips", type=CallType.HELIX),
    "helix.clips.create": CallDescriptor(
        url="clips",
        type=CallType.HELIX,
        method="POST",
        scope="clips:edit",
    ),
    "helix.videos": CallDescriptor(url="videos", type=CallType.HELIX),
    "helix.subscriptions": CallDescriptor(
        url="subscriptions",
        type=CallType.HELIX,
        scope="channel:read:subscriptions",
    ),
    # Kraken
    "kraken.channel": CallDescriptor(url="channel", scope="channel_read"),
    "kraken.channel.update": CallDescriptor(
        url="channels/{channel_id}",
        method="PUT",
        scope="channel_editor",
    ),
    "kraken.user": CallDescriptor(url="user", scope="user_read"),
    "kraken.chat.badges": CallDescriptor(url="chat/{channel_id}/badges"),
    "kraken.bits.cheermotes": CallDescriptor(url="bits/actions"),
    # Badges API, outside both API roots
    "badges.global": CallDescriptor(
        url="https://badges.twitch.tv/v1/badges/global/display",
        type=CallType.CUSTOM,
    ),
}


def get_endpoint(name: str) -> CallDescriptor:
    """Look up an endpoint template by name.

    Raises:
        UnknownEndpointError: If no endpoint is registered under ``name``.
    """
    try:
        return ENDPOINTS[name]
    except KeyError:
        msg = f"Unknown endpoint: {name}"
        raise UnknownEndpointError(msg) from None


def bind_endpoint(
    name: str,
    path_params: Mapping[str, str] | None = None,
    query: Params | None = None,
    body: Params | None = None,
    json_body: Any = None,
) -> CallDescriptor:
    """Create a concrete call from a named template.

    ``path_params`` fill ``{placeholders}`` in the template URL; ``query``
    is merged over the template's own query.
    """
    template = get_endpoint(name)
    url = template.url.format(**path_params) if path_params else template.url
    merged_query = {**(template.query or {}), **(query or {})} or None
    return dataclasses.replace(
        template,
        url=url,
        query=merged_query,
        body=body if body is not None else template.body,
        json_body=json_body if json_body is not None else template.json_body,
    )
