from __future__ import annotations

import asyncio
from typing import Any

import pytest

from shm_agent.services.adapters.factory import ApiCredentials
from shm_agent.services.gate import OperationGate
from shm_agent.services.lifecycle import LifecycleService

USER_UUID = "2f1d4c3a-8b6e-4f0a-9c7d-1e2f3a4b5c6d"
SQUAD_A = "11111111-1111-4111-8111-111111111111"
SQUAD_B = "22222222-2222-4222-8222-222222222222"

READ_CALLS = {"get_user_by_uuid", "get_user_by_username", "get_user_by_short_uuid", "get_internal_squads"}


def make_user(**overrides: Any) -> dict[str, Any]:
    user: dict[str, Any] = {
        "uuid": USER_UUID,
        "shortUuid": "abcDEF123",
        "username": "alice_01",
        "status": "ACTIVE",
        "usedTrafficBytes": "1024",
        "trafficLimitBytes": "0",
        "trafficLimitStrategy": "NO_RESET",
        "expireAt": "2030-01-01T00:00:00.000Z",
        "description": None,
        "email": None,
        "telegramId": None,
        "hwidDeviceLimit": None,
        "tag": None,
        "externalSquadUuid": None,
        "activeInternalSquads": [{"uuid": SQUAD_A, "name": "Default"}],
    }
    user.update(overrides)
    return user


class FakePanel:
    """In-memory stand-in for the panel adapter that records every call."""

    def __init__(self, user: dict[str, Any] | None = None, squads: list[dict[str, Any]] | None = None):
        self.user = user if user is not None else make_user()
        self.squads = squads if squads is not None else []
        self.calls: list[tuple[Any, ...]] = []
        self.fail: dict[str, Exception] = {}
        self.in_flight = 0
        self.max_in_flight = 0

    async def _call(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
        finally:
            self.in_flight -= 1
        exc = self.fail.get(name)
        if exc is not None:
            raise exc

    def mutations(self) -> list[str]:
        return [c[0] for c in self.calls if c[0] not in READ_CALLS]

    def call(self, name: str) -> tuple[Any, ...]:
        return next(c for c in self.calls if c[0] == name)

    async def get_user_by_uuid(self, uuid: str) -> dict[str, Any]:
        await self._call("get_user_by_uuid", uuid)
        return dict(self.user)

    async def get_user_by_username(self, username: str) -> dict[str, Any]:
        await self._call("get_user_by_username", username)
        return dict(self.user)

    async def get_user_by_short_uuid(self, short_uuid: str) -> dict[str, Any]:
        await self._call("get_user_by_short_uuid", short_uuid)
        return dict(self.user)

    async def create_user(self, username: str, expire_at: str, settings: dict[str, Any] | None = None) -> dict[str, Any]:
        await self._call("create_user", username, expire_at, dict(settings or {}))
        return {"uuid": "new-uuid", "username": username, "expireAt": expire_at, "status": "ACTIVE", **(settings or {})}

    async def update_user(self, uuid: str, updates: dict[str, Any]) -> dict[str, Any]:
        await self._call("update_user", uuid, dict(updates))
        self.user.update(updates)
        return dict(self.user)

    async def enable_user(self, uuid: str) -> dict[str, Any]:
        await self._call("enable_user", uuid)
        self.user["status"] = "ACTIVE"
        return dict(self.user)

    async def disable_user(self, uuid: str) -> dict[str, Any]:
        await self._call("disable_user", uuid)
        self.user["status"] = "DISABLED"
        return dict(self.user)

    async def reset_user_traffic(self, uuid: str) -> dict[str, Any]:
        await self._call("reset_user_traffic", uuid)
        self.user["usedTrafficBytes"] = "0"
        return dict(self.user)

    async def delete_user(self, uuid: str) -> None:
        await self._call("delete_user", uuid)

    async def get_internal_squads(self) -> list[dict[str, Any]]:
        await self._call("get_internal_squads")
        return list(self.squads)


@pytest.fixture
def creds() -> ApiCredentials:
    return ApiCredentials(api_host="https://panel.example.com", token="secret-token")


@pytest.fixture
def panel() -> FakePanel:
    return FakePanel()


@pytest.fixture
def service(panel: FakePanel) -> LifecycleService:
    return LifecycleService(OperationGate(), adapter_factory=lambda _creds: panel)
