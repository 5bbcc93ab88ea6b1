"""Response classification and JSON decoding."""

import json
from typing import Any

from ..errors import DecodeError, HTTPStatusCodeError
from .transport import ApiResponse

NO_CONTENT = 204


def _parse_json(body: bytes) -> Any:
    try:
        return json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        msg = f"Invalid JSON in response body: {e}"
        raise DecodeError(msg) from e


def decode_response(response: ApiResponse) -> Any:
    """Decode an API response.

    Args:
        response: The response to decode.

    Returns:
        The parsed JSON body, or None for 204 responses and empty bodies
        (the API sometimes omits a body where one is documented).

    Raises:
        HTTPStatusCodeError: If the status is not 2xx. Carries the parsed
            JSON error body.
        DecodeError: If a body is not valid UTF-8 JSON, including the error
            body of a non-2xx response.
    """
    if not response.ok:
        raise HTTPStatusCodeError(
            response.status,
            response.reason,
            _parse_json(response.body),
        )

    if response.status == NO_CONTENT:
        return None

    if not response.body:
        return None

    return _parse_json(response.body)
