# creator_hub/db/rest.py
"""
Supabase PostgREST helpers for the read-through caches.
Reduces boilerplate in the aggregator layer.
"""

from typing import Any

import httpx

from creator_hub.auth.session import SessionProvider
from creator_hub.config import settings
from creator_hub.errors import AuthError, StoreError
from creator_hub.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


def eq(value: Any) -> str:
    """PostgREST equality filter value (``eq.<value>``)."""
    if isinstance(value, bool):
        value = "true" if value else "false"
    return f"eq.{value}"


class SupabaseRestClient:
    """
    Thin async client over the PostgREST endpoint.

    Every call resolves a fresh token from the session provider. HTTP and
    transport failures surface as StoreError; a missing session as AuthError.
    """

    def __init__(self, session: SessionProvider, client: httpx.AsyncClient | None = None):
        self._session = session
        self._client = client or self._create_client()
        self._owns_client = client is None

    def _create_client(self) -> httpx.AsyncClient:
        timeout = httpx.Timeout(settings.REQUEST_TIMEOUT)
        limits = httpx.Limits(max_keepalive_connections=10, max_connections=20)
        return httpx.AsyncClient(timeout=timeout, limits=limits)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _get_auth_headers(self) -> dict:
        token = await self._session.get_token()
        if not token:
            raise AuthError("Not authenticated. Please log in again.")
        return {
            "apikey": settings.SUPABASE_ANON_KEY,
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }

    def _handle_response(self, response: httpx.Response, operation: str, table: str) -> Any:
        logger.debug(
            f"Store {operation} response",
            table=table,
            status_code=response.status_code,
            response_size=len(response.text) if response.text else 0,
        )

        if response.is_success:
            try:
                return response.json() if response.text else None
            except ValueError as e:
                logger.error(f"Failed to parse store {operation} response", table=table, error=str(e))
                raise StoreError(f"Invalid response format: {e}", operation=operation) from e

        try:
            body = response.json() if response.text else None
        except ValueError:
            body = None
        # gateways in front of PostgREST may answer with arrays or bare strings
        error_data = body if isinstance(body, dict) else {}
        message = error_data.get("message")
        if not isinstance(message, str) or not message:
            message = f"Store error (HTTP {response.status_code})"

        logger.error(
            f"Store {operation} failed",
            table=table,
            status_code=response.status_code,
            error_code=error_data.get("code"),
            error_message=message,
        )
        raise StoreError(
            message,
            operation=operation,
            status_code=response.status_code,
            response_data=error_data,
        )

    async def select(
        self, table: str, filters: dict[str, Any] | None = None, columns: str = "*"
    ) -> list[dict[str, Any]]:
        """
        Select rows from ``table``.

        Args:
            table: Table name
            filters: Column -> PostgREST filter expression (see ``eq``)
            columns: PostgREST select clause, may embed related tables

        Returns:
            List of row dicts, in store order
        """
        headers = await self._get_auth_headers()
        params = {"select": columns, **(filters or {})}
        try:
            response = await self._client.get(
                f"{settings.rest_url()}/{table}", params=params, headers=headers
            )
        except httpx.HTTPError as e:
            logger.error("Store select request error", table=table, error=str(e))
            raise StoreError(f"Query failed: {e}", operation="select") from e

        rows = self._handle_response(response, "select", table) or []
        if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
            logger.error("Unexpected store select payload", table=table)
            raise StoreError("Invalid response format: expected a list of rows", operation="select")
        return rows

    async def select_one(
        self, table: str, filters: dict[str, Any] | None = None, columns: str = "*"
    ) -> dict[str, Any] | None:
        """First matching row, or None when nothing matches."""
        rows = await self.select(table, filters, columns)
        return rows[0] if rows else None

    async def upsert(self, table: str, row: dict[str, Any], on_conflict: str) -> None:
        """Insert ``row``, or update the existing row matching ``on_conflict``."""
        headers = await self._get_auth_headers()
        headers.update(
            {
                "Content-Type": "application/json",
                "Prefer": "resolution=merge-duplicates,return=minimal",
            }
        )
        try:
            response = await self._client.post(
                f"{settings.rest_url()}/{table}",
                params={"on_conflict": on_conflict},
                json=row,
                headers=headers,
            )
        except httpx.HTTPError as e:
            logger.error("Store upsert request error", table=table, error=str(e))
            raise StoreError(f"Upsert failed: {e}", operation="upsert") from e

        self._handle_response(response, "upsert", table)
