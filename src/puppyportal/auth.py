"""
Caller identity resolution.

The portal never trusts identity claims in request bodies: a bearer token from the
``Authorization`` header is exchanged with the identity provider for a Caller.  Every failure
resolves to *None* so the endpoints fail closed.
"""

import logging
from abc import (
    ABC,
    abstractmethod,
)
from typing import (
    Dict,
    Optional,
)

import httpx

from puppyportal.config import Settings
from puppyportal.core.schema import Caller

logger = logging.getLogger(__name__)


def bearer_token(authorization: str | None) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer <token>`` header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class IdentityProvider(ABC):
    """Maps an access token to the caller it belongs to."""

    @abstractmethod
    def resolve(self, token: str | None) -> Optional[Caller]:
        """Return the caller for *token*, or *None* when it is missing or invalid."""


class SupabaseIdentityProvider(IdentityProvider):
    """Validates tokens against Supabase Auth (``GET /auth/v1/user``)."""

    def __init__(self, settings: Settings, http_client: httpx.Client | None = None):
        self._settings = settings
        self._client = http_client or httpx.Client(timeout=settings.STORE_TIMEOUT)

    @property
    def user_url(self) -> str:
        return self._settings.SUPABASE_URL.rstrip("/") + "/auth/v1/user"

    def resolve(self, token: str | None) -> Optional[Caller]:
        if not token:
            return None

        url = self.user_url
        headers = {"Authorization": f"Bearer {token}"}
        if self._settings.SUPABASE_ANON_KEY:
            headers["apikey"] = self._settings.SUPABASE_ANON_KEY

        try:
            resp = self._client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("Identity provider unreachable: %s", exc)
            return None

        if resp.status_code != 200:
            logger.info("Identity provider rejected token (HTTP %d)", resp.status_code)
            return None

        try:
            user = resp.json()
        except ValueError:
            logger.error("Identity provider returned a non-JSON body")
            return None

        if not isinstance(user, dict) or not user.get("id"):
            return None
        return Caller(id=str(user["id"]), email=user.get("email"), access_token=token)


class StaticIdentityProvider(IdentityProvider):
    """Fixed token table, for local development with the memory store and for tests."""

    def __init__(self, callers: Dict[str, Caller] | None = None):
        self._callers = dict(callers or {})

    def resolve(self, token: str | None) -> Optional[Caller]:
        if not token:
            return None
        caller = self._callers.get(token)
        if caller is None:
            return None
        return caller.model_copy(update={"access_token": token})
