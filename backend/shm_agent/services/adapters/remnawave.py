from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from shm_agent.services.adapters.base import AdapterError, UpstreamError
from shm_agent.services.http_client import build_async_client
from shm_agent.services.user_settings import SETTINGS_FIELDS


def _error_body(r: httpx.Response) -> Any:
    try:
        return r.json()
    except ValueError:
        return r.text


class RemnawaveAdapter:
    def __init__(
        self,
        base_url: str,
        token: str,
        verify_ssl: bool = True,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not base_url:
            raise AdapterError("Remnawave adapter requires an API host")
        self.base_url = base_url.rstrip("/")
        self.verify_ssl = verify_ssl
        self.timeout = timeout
        self._token = token
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "Authorization": f"Bearer {self._token}",
        }

    async def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        url = f"{self.base_url}{path}"
        async with build_async_client(verify=self.verify_ssl, timeout=self.timeout, transport=self._transport) as client:
            r = await client.request(method, url, headers=self._headers(), json=payload)
        if r.status_code >= 400:
            raise UpstreamError(r.status_code, _error_body(r), method, path)
        if not r.content:
            return None
        js = r.json()
        # Panel wraps every payload as {"response": ...}
        if isinstance(js, dict) and "response" in js:
            return js["response"]
        return js

    async def _get_json(self, path: str) -> Any:
        return await self._request("GET", path)

    async def _post_json(self, path: str, payload: dict[str, Any] | None = None) -> Any:
        return await self._request("POST", path, payload)

    async def _patch_json(self, path: str, payload: dict[str, Any]) -> Any:
        return await self._request("PATCH", path, payload)

    async def _delete(self, path: str) -> None:
        await self._request("DELETE", path)

    async def get_user_by_uuid(self, uuid: str) -> dict[str, Any]:
        return await self._get_json(f"/api/users/{quote(uuid, safe='')}")

    async def get_user_by_username(self, username: str) -> dict[str, Any]:
        return await self._get_json(f"/api/users/by-username/{quote(username, safe='')}")

    async def get_user_by_short_uuid(self, short_uuid: str) -> dict[str, Any]:
        return await self._get_json(f"/api/users/by-short-uuid/{quote(short_uuid, safe='')}")

    async def create_user(self, username: str, expire_at: str, settings: dict[str, Any] | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "username": username,
            "expireAt": expire_at,
            "status": "ACTIVE",
        }
        for k in SETTINGS_FIELDS:
            if settings and k in settings:
                payload[k] = settings[k]
        return await self._post_json("/api/users", payload)

    async def update_user(self, uuid: str, updates: dict[str, Any]) -> dict[str, Any]:
        payload: dict[str, Any] = {"uuid": uuid}
        for k in ("expireAt", "status", *SETTINGS_FIELDS):
            if k in updates:
                payload[k] = updates[k]
        return await self._patch_json("/api/users", payload)

    async def enable_user(self, uuid: str) -> dict[str, Any]:
        return await self._post_json(f"/api/users/{quote(uuid, safe='')}/actions/enable")

    async def disable_user(self, uuid: str) -> dict[str, Any]:
        return await self._post_json(f"/api/users/{quote(uuid, safe='')}/actions/disable")

    async def reset_user_traffic(self, uuid: str) -> dict[str, Any]:
        return await self._post_json(f"/api/users/{quote(uuid, safe='')}/actions/reset-traffic")

    async def delete_user(self, uuid: str) -> None:
        await self._delete(f"/api/users/{quote(uuid, safe='')}")

    async def get_internal_squads(self) -> list[dict[str, Any]]:
        js = await self._get_json("/api/internal-squads")
        squads = js.get("internalSquads") if isinstance(js, dict) else None
        if not isinstance(squads, list):
            return []
        out: list[dict[str, Any]] = []
        for sq in squads:
            if isinstance(sq, dict) and sq.get("uuid"):
                out.append({"uuid": str(sq["uuid"]), "tag": sq.get("tag")})
        return out
