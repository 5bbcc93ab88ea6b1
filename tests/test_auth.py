"""Tests for the credential provider variants."""

from unittest.mock import MagicMock

import httpx
import pytest

from twitch_client import auth
from twitch_client.api.types import AccessToken
from twitch_client.errors import ConfigError, InvalidTokenError, MissingScopeError


def _token_payload(access_token: str, refresh_token: str = "r2", expires_in: int = 3600) -> dict:
    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "expires_in": expires_in,
        "scope": ["user:edit"],
        "token_type": "bearer",
    }


# ---------------------------------------------------------------------------
# StaticAuthProvider
# ---------------------------------------------------------------------------


def test_static_without_token_returns_none(transport):
    provider = auth.StaticAuthProvider("abc", transport=transport)
    assert provider.get_access_token() is None
    assert provider.get_access_token(["user:edit"]) is None


def test_static_empty_client_id_raises():
    with pytest.raises(ConfigError):
        auth.StaticAuthProvider("")


def test_static_wraps_string_token():
    provider = auth.StaticAuthProvider("abc", "token", scopes=["a"])
    token = provider.get_access_token()
    assert token.access_token == "token"
    assert not token.is_expired


def test_static_known_scopes_are_checked_locally(transport):
    provider = auth.StaticAuthProvider("abc", "token", scopes=["a", "b"], transport=transport)

    assert provider.get_access_token(["b"]).access_token == "token"
    with pytest.raises(MissingScopeError, match="c"):
        provider.get_access_token(["c"])
    assert transport.requests == []


def test_static_unknown_scopes_are_looked_up_once(transport, make_response):
    """Scopes are learned through token introspection on first use."""
    provider = auth.StaticAuthProvider("abc", "token", transport=transport)
    transport.queue(make_response(200, {"client_id": "abc", "scopes": ["a"]}))

    provider.get_access_token(["a"])
    provider.get_access_token(["a"])

    assert len(transport.requests) == 1
    assert transport.requests[0].url == "https://id.twitch.tv/oauth2/validate"
    assert transport.requests[0].headers["Authorization"] == "OAuth token"
    assert provider.current_scopes == ["a"]


def test_static_scope_lookup_with_invalid_token_raises(transport, make_response):
    provider = auth.StaticAuthProvider("abc", "token", transport=transport)
    transport.queue(make_response(401, {"message": "invalid access token"}))

    with pytest.raises(InvalidTokenError):
        provider.get_access_token(["a"])


def test_static_cannot_refresh():
    provider = auth.StaticAuthProvider("abc", "token")
    assert not provider.supports_refresh
    with pytest.raises(ConfigError):
        provider.refresh()


def test_static_set_access_token_replaces_instance():
    provider = auth.StaticAuthProvider("abc", "token", scopes=[])
    new_token = AccessToken(access_token="new", scope=["x"])

    provider.set_access_token(new_token)

    assert provider.get_access_token() is new_token
    assert provider.current_scopes == ["x"]


# ---------------------------------------------------------------------------
# RefreshableAuthProvider
# ---------------------------------------------------------------------------


@pytest.fixture
def on_refresh() -> MagicMock:
    return MagicMock()


@pytest.fixture
def refreshable(transport, on_refresh) -> auth.RefreshableAuthProvider:
    child = auth.StaticAuthProvider("abc", "old", scopes=[], transport=transport)
    config = auth.RefreshConfig(client_secret="secret", refresh_token="r1", on_refresh=on_refresh)
    return auth.RefreshableAuthProvider(child, config, transport=transport)


def test_refresh_exchanges_refresh_token(refreshable, transport, make_response, on_refresh):
    transport.queue(make_response(200, _token_payload("new")))

    token = refreshable.refresh()

    request = transport.requests[0]
    params = httpx.URL(request.url).params
    assert request.method == "POST"
    assert request.url.startswith("https://id.twitch.tv/oauth2/token?")
    assert params["grant_type"] == "refresh_token"
    assert params["refresh_token"] == "r1"
    assert params["client_secret"] == "secret"
    assert token.access_token == "new"
    assert refreshable.get_access_token() is token
    on_refresh.assert_called_once_with(token)


def test_refresh_keeps_rotated_refresh_token(refreshable, transport, make_response):
    transport.queue(
        make_response(200, _token_payload("t1", refresh_token="r2")),
        make_response(200, _token_payload("t2", refresh_token="r3")),
    )

    refreshable.refresh()
    refreshable.refresh()

    assert httpx.URL(transport.requests[1].url).params["refresh_token"] == "r2"


def test_configured_expiry_triggers_refresh(transport, make_response):
    child = auth.StaticAuthProvider("abc", "old", scopes=[], transport=transport)
    config = auth.RefreshConfig(client_secret="secret", refresh_token="r1", expiry=100.0)
    provider = auth.RefreshableAuthProvider(child, config, transport=transport, clock=lambda: 200.0)
    transport.queue(make_response(200, _token_payload("new")))

    assert provider.get_access_token().access_token == "new"
    assert len(transport.requests) == 1


def test_refreshable_exposes_child_identity(refreshable):
    assert refreshable.client_id == "abc"
    assert refreshable.token_type == "user"
    assert refreshable.supports_refresh


# ---------------------------------------------------------------------------
# ClientCredentialsAuthProvider
# ---------------------------------------------------------------------------


def test_client_credentials_fetches_and_caches(transport, make_response):
    provider = auth.ClientCredentialsAuthProvider("abc", "secret", transport=transport)
    transport.queue(make_response(200, {"access_token": "app", "expires_in": 3600, "scope": []}))

    first = provider.get_access_token()
    second = provider.get_access_token()

    assert first is second
    assert first.access_token == "app"
    assert httpx.URL(transport.requests[0].url).params["grant_type"] == "client_credentials"
    assert len(transport.requests) == 1


def test_client_credentials_refetches_expired_token(transport, make_response):
    provider = auth.ClientCredentialsAuthProvider("abc", "secret", transport=transport)
    transport.queue(
        make_response(200, {"access_token": "app1", "expires_in": 0}),
        make_response(200, {"access_token": "app2", "expires_in": 3600}),
    )

    provider.get_access_token()

    assert provider.get_access_token().access_token == "app2"


def test_client_credentials_reject_scopes(transport):
    provider = auth.ClientCredentialsAuthProvider("abc", "secret", transport=transport)
    with pytest.raises(MissingScopeError):
        provider.get_access_token(["user:edit"])


def test_client_credentials_require_secret():
    with pytest.raises(ConfigError):
        auth.ClientCredentialsAuthProvider("abc", "")


def test_client_credentials_is_app_token_type():
    provider = auth.ClientCredentialsAuthProvider("abc", "secret")
    assert provider.token_type == "app"
    assert provider.supports_refresh
