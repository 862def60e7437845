# FILE: bac_tutor/services/supabase_store.py
"""
Hosted Supabase record store (PostgREST + auth REST endpoints over httpx)
"""
import logging
from typing import Any, Dict, Optional

import httpx

from bac_tutor.errors import PersistenceError
from bac_tutor.services.record_store import RecordStore

logger = logging.getLogger(__name__)


class SupabaseRecordStore(RecordStore):
    """Record store backed by a Supabase project, using the service-role key"""

    def __init__(
        self,
        url: str,
        service_key: str,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = url.rstrip("/")
        self.service_key = service_key
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "apikey": service_key,
                "Authorization": f"Bearer {service_key}",
                "Content-Type": "application/json"
            },
            timeout=timeout,
            transport=transport
        )
        logger.info(f"Supabase record store: url={self.base_url}")

    @staticmethod
    def _filter_params(filters: Dict[str, Any]) -> Dict[str, str]:
        return {column: f"eq.{value}" for column, value in filters.items()}

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Supabase {method} {path} failed: {e}")
            raise PersistenceError(f"Record store unreachable: {e}") from e

        if response.is_error:
            logger.error(f"Supabase {method} {path} returned {response.status_code}: {response.text}")
            raise PersistenceError(f"Record store error {response.status_code}")

        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Supabase returned a non-JSON body from {response.request.url.path}")
            raise PersistenceError("Record store returned an unreadable response") from e

    async def select_one(self, table: str, filters: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        params = {"select": "*", "limit": "1", **self._filter_params(filters)}
        response = await self._request("GET", f"/rest/v1/{table}", params=params)

        rows = self._json(response)
        if not isinstance(rows, list):
            raise PersistenceError(f"Record store returned an unexpected {table} payload")
        if not rows:
            return None
        return rows[0]

    async def update(self, table: str, filters: Dict[str, Any], values: Dict[str, Any]) -> None:
        await self._request(
            "PATCH",
            f"/rest/v1/{table}",
            params=self._filter_params(filters),
            json=values,
            headers={"Prefer": "return=minimal"}
        )
        logger.debug(f"Updated {table} where {filters}")

    async def insert(self, table: str, row: Dict[str, Any]) -> None:
        await self._request(
            "POST",
            f"/rest/v1/{table}",
            json=row,
            headers={"Prefer": "return=minimal"}
        )
        logger.debug(f"Inserted into {table}")

    async def resolve_user_id(self, access_token: str) -> Optional[str]:
        try:
            response = await self.client.get(
                "/auth/v1/user",
                headers={"Authorization": f"Bearer {access_token}"}
            )
        except httpx.HTTPError as e:
            raise PersistenceError(f"Identity provider unreachable: {e}") from e

        if response.status_code in (401, 403):
            return None
        if response.is_error:
            raise PersistenceError(f"Identity provider error {response.status_code}")

        user = self._json(response)
        if not isinstance(user, dict):
            raise PersistenceError("Identity provider returned an unreadable response")
        return user.get("id")

    async def aclose(self) -> None:
        await self.client.aclose()
