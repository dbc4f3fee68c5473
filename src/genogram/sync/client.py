"""Case-management API client.

Pushes genogram people and partner relationships to the case-management
backend as network members and member relationships.

Example:
    async with CaseManagementClient("https://cases.example.org") as client:
        await client.create_member({"childId": "case-1", "firstName": "Ada"})
"""
from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog

from ..config import EditorConfig

logger = structlog.get_logger(__name__)


class SyncError(Exception):
    """A request to the case-management backend failed."""

    def __init__(self, message: str, status_code: int | None = None, response: dict | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class CaseManagementClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        max_retries: int = 2,
        retry_delay: float = 0.5,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(0, max_retries)
        self.retry_delay = retry_delay
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    @classmethod
    def from_config(cls, config: EditorConfig) -> CaseManagementClient:
        if not config.api_base_url:
            raise ValueError("GENOGRAM_API_BASE_URL is not set")
        return cls(config.api_base_url, timeout=config.api_timeout, max_retries=config.api_max_retries)

    async def __aenter__(self) -> CaseManagementClient:
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"Accept": "application/json"},
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._http:
            await self._http.aclose()
            self._http = None

    async def _request(
        self,
        method: str,
        path: str,
        data: dict | None = None,
        params: dict[str, str] | None = None,
    ) -> dict:
        """Send a JSON request, retrying server and transport errors."""
        if not self._http:
            raise RuntimeError("Client not initialized. Use 'async with' context.")

        attempts = self.max_retries + 1
        for attempt in range(attempts):
            last = attempt == attempts - 1
            try:
                response = await self._http.request(method, path, json=data, params=params)
            except httpx.TransportError as e:
                if last:
                    raise SyncError(f"{method} {path} failed: {e}") from e
                logger.warning("sync_request_retry", method=method, path=path, attempt=attempt + 1, error=str(e))
                await asyncio.sleep(self.retry_delay * (attempt + 1))
                continue

            if response.status_code >= 500 and not last:
                logger.warning(
                    "sync_request_retry",
                    method=method,
                    path=path,
                    attempt=attempt + 1,
                    status_code=response.status_code,
                )
                await asyncio.sleep(self.retry_delay * (attempt + 1))
                continue

            if response.is_error:
                raise SyncError(
                    f"{method} {path} returned {response.status_code}",
                    response.status_code,
                    _json_or_none(response),
                )
            return _json_or_none(response) or {}

        raise SyncError("Max retries exceeded")

    # =========================================================================
    # Members
    # =========================================================================

    async def list_members(self, child_id: str) -> list[dict]:
        result = await self._request("GET", "/api/members", params={"childId": child_id})
        return result.get("data", [])

    async def create_member(self, member: dict) -> dict:
        return await self._request("POST", "/api/members", data=member)

    async def update_member(self, member_id: str, updates: dict) -> dict:
        return await self._request("PATCH", f"/api/members/{member_id}", data=updates)

    async def delete_member(self, member_id: str) -> dict:
        return await self._request("DELETE", f"/api/members/{member_id}")

    # =========================================================================
    # Relationships
    # =========================================================================

    async def list_relationships(self, member_id: str) -> list[dict]:
        result = await self._request("GET", "/api/relationships", params={"memberId": member_id})
        return result.get("data", [])

    async def create_relationship(self, relationship: dict) -> dict:
        return await self._request("POST", "/api/relationships", data=relationship)

    async def update_relationship(self, relationship_id: str, updates: dict) -> dict:
        return await self._request("PATCH", f"/api/relationships/{relationship_id}", data=updates)

    async def delete_relationship(self, relationship_id: str) -> dict:
        return await self._request("DELETE", f"/api/relationships/{relationship_id}")


def _json_or_none(response: httpx.Response) -> dict | None:
    if not response.content:
        return None
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else {"data": body}
