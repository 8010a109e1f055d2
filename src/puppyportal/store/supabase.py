"""
Hosted Supabase backend, spoken to directly over its PostgREST interface.

Every request carries the project's anon key as ``apikey`` and the caller's own access token as the
bearer, so the backend's row-level security decides which rows the caller may see or write.
"""

import logging
from typing import (
    Any,
    Dict,
    List,
    Optional,
    cast,
)

import httpx

from puppyportal.config import Settings
from puppyportal.store.base import (
    APPLICATION_COLUMNS,
    MILESTONE_COLUMNS,
    PUPPY_COLUMNS,
    WEIGHT_COLUMNS,
    DataStore,
    Record,
    StoreError,
)

logger = logging.getLogger(__name__)


class SupabaseStore(DataStore):
    """PostgREST client bound to one caller's access token."""

    def __init__(
        self,
        settings: Settings,
        access_token: str | None,
        http_client: httpx.Client | None = None,
    ):
        if not settings.SUPABASE_ANON_KEY:
            raise StoreError("SUPABASE_ANON_KEY is not configured")

        headers = {
            "apikey": settings.SUPABASE_ANON_KEY,
            "Authorization": f"Bearer {access_token or settings.SUPABASE_ANON_KEY}",
        }
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=settings.STORE_TIMEOUT)
        self._base_url = settings.SUPABASE_URL.rstrip("/") + "/rest/v1"
        self._headers = headers

    # ------------------------------------------------------------------ #
    # Low-level helpers
    # ------------------------------------------------------------------ #
    def _request(
        self,
        method: str,
        table: str,
        params: Dict[str, Any] | None = None,
        json: Any = None,
        extra_headers: Dict[str, str] | None = None,
    ) -> httpx.Response:
        url = f"{self._base_url}/{table}"
        headers = {**self._headers, **(extra_headers or {})}
        try:
            resp = self._client.request(method, url, params=params, json=json, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("Store request %s %s failed: %s", method, table, exc)
            raise StoreError(f"Store request failed: {exc}") from exc

        if resp.is_error:
            logger.warning("Store rejected %s %s: %s", method, table, resp.status_code)
            raise StoreError(_error_message(resp))
        return resp

    def _select(self, table: str, params: Dict[str, Any]) -> List[Record]:
        resp = self._request("GET", table, params=params)
        try:
            data = resp.json()
        except ValueError as exc:
            logger.warning("Store returned a non-JSON body for '%s'", table)
            raise StoreError(f"Unreadable response from '{table}'") from exc
        if not isinstance(data, list):
            raise StoreError(f"Unexpected response shape from '{table}'")
        return cast(List[Record], data)

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    def list_puppies(self, status: str, limit: int) -> List[Record]:
        return self._select(
            "puppies",
            {
                "select": PUPPY_COLUMNS,
                "status": f"eq.{status}",
                "order": "ready_date.asc",
                "limit": limit,
            },
        )

    def list_applications(self, buyer_id: str, limit: int) -> List[Record]:
        return self._select(
            "applications",
            {
                "select": APPLICATION_COLUMNS,
                "buyer_id": f"eq.{buyer_id}",
                "order": "created_at.desc",
                "limit": limit,
            },
        )

    def insert_message(self, author_id: str, author_email: Optional[str], body: str) -> None:
        self._request(
            "POST",
            "messages",
            json={"author_id": author_id, "author_email": author_email, "body": body},
            extra_headers={"Prefer": "return=minimal"},
        )

    def get_assigned_puppy(self, buyer_id: str, puppy_id: str) -> Optional[Record]:
        rows = self._select(
            "puppy_assignments",
            {
                "select": f"puppy_id,puppies!inner({PUPPY_COLUMNS})",
                "buyer_id": f"eq.{buyer_id}",
                "puppy_id": f"eq.{puppy_id}",
                "limit": 1,
            },
        )
        puppy = rows[0].get("puppies") if rows and isinstance(rows[0], dict) else None
        return puppy if isinstance(puppy, dict) else None

    def list_puppy_weights(self, puppy_id: str) -> List[Record]:
        return self._select(
            "puppy_weights",
            {
                "select": WEIGHT_COLUMNS,
                "puppy_id": f"eq.{puppy_id}",
                "order": "measured_at.asc",
            },
        )

    def list_puppy_milestones(self, puppy_id: str) -> List[Record]:
        return self._select(
            "puppy_milestones",
            {
                "select": MILESTONE_COLUMNS,
                "puppy_id": f"eq.{puppy_id}",
                "order": "week.asc",
            },
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


def _error_message(resp: httpx.Response) -> str:
    """PostgREST errors are JSON objects with a ``message``; fall back to the raw body."""
    try:
        data = resp.json()
    except ValueError:
        return f"Store HTTP {resp.status_code}: {resp.text}"
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return f"Store HTTP {resp.status_code}: {resp.text}"
