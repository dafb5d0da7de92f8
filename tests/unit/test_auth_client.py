"""Unit tests for bearer token handling"""

import httpx
import pytest

from practice_ledger.domain.exceptions import UnauthorizedError
from practice_ledger.infrastructure.clients.auth import AuthClient, extract_bearer_token


def _client(handler) -> AuthClient:
    return AuthClient(base_url="https://project.example.co", api_key="anon", transport=httpx.MockTransport(handler))


def test_extract_bearer_token():
    assert extract_bearer_token("Bearer abc.def") == "abc.def"

    with pytest.raises(UnauthorizedError, match="Missing authorization header"):
        extract_bearer_token(None)
    with pytest.raises(UnauthorizedError):
        extract_bearer_token("Bearer ")


async def test_get_user_id_resolves_token():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["path"] = request.url.path
        return httpx.Response(200, json={"id": "user_1", "email": "a@b.c"})

    assert await _client(handler).get_user_id("token-123") == "user_1"
    assert seen == {"auth": "Bearer token-123", "path": "/auth/v1/user"}


async def test_rejected_token_is_unauthorized():
    client = _client(lambda request: httpx.Response(401, json={"msg": "invalid JWT"}))

    with pytest.raises(UnauthorizedError):
        await client.get_user_id("expired")


async def test_response_without_id_is_unauthorized():
    client = _client(lambda request: httpx.Response(200, json={}))

    with pytest.raises(UnauthorizedError):
        await client.get_user_id("token")
