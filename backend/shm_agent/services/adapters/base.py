from __future__ import annotations

from typing import Any, Protocol


class AdapterError(Exception):
    """Generic adapter error (network/auth/panel response)."""


class UpstreamError(AdapterError):
    """Non-2xx answer from the panel. Status and body are kept verbatim."""

    def __init__(self, status_code: int, body: Any, method: str = "", path: str = ""):
        self.status_code = int(status_code)
        self.body = body
        self.method = method
        self.path = path
        detail = body if isinstance(body, str) else repr(body)
        where = f" {method} {path}" if method else ""
        super().__init__(f"HTTP {self.status_code}{where}: {detail[:300]}")


class UserPanelClient(Protocol):
    async def get_user_by_uuid(self, uuid: str) -> dict[str, Any]: ...

    async def get_user_by_username(self, username: str) -> dict[str, Any]: ...

    async def get_user_by_short_uuid(self, short_uuid: str) -> dict[str, Any]: ...

    async def create_user(self, username: str, expire_at: str, settings: dict[str, Any] | None = None) -> dict[str, Any]: ...

    async def update_user(self, uuid: str, updates: dict[str, Any]) -> dict[str, Any]: ...

    async def enable_user(self, uuid: str) -> dict[str, Any]: ...

    async def disable_user(self, uuid: str) -> dict[str, Any]: ...

    async def reset_user_traffic(self, uuid: str) -> dict[str, Any]: ...

    async def delete_user(self, uuid: str) -> None: ...

    async def get_internal_squads(self) -> list[dict[str, Any]]: ...
