"""Hosted auth client: resolves bearer tokens to user ids"""

import httpx

from practice_ledger.config import settings
from practice_ledger.domain.exceptions import UnauthorizedError


def extract_bearer_token(authorization: str | None) -> str:
    """
    Pull the token out of an Authorization header.

    Raises:
        UnauthorizedError: If the header is missing or empty
    """
    if not authorization:
        raise UnauthorizedError("Missing authorization header")
    token = authorization.removeprefix("Bearer ").strip()
    if not token:
        raise UnauthorizedError("Unauthorized")
    return token


class AuthClient:
    """Asks the hosted auth service who a token belongs to"""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.supabase_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.supabase_service_role_key
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def get_user_id(self, token: str) -> str:
        """
        Resolve a user access token.

        Raises:
            UnauthorizedError: On rejected tokens, auth outages, or malformed responses
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.get(
                    f"{self.base_url}/auth/v1/user",
                    headers={"apikey": self.api_key, "Authorization": f"Bearer {token}"},
                )
                response.raise_for_status()
                user_id = response.json().get("id")

            except httpx.HTTPError as e:
                raise UnauthorizedError("Unauthorized") from e
            except ValueError as e:
                raise UnauthorizedError("Unauthorized") from e

        if not user_id:
            raise UnauthorizedError("Unauthorized")
        return user_id
