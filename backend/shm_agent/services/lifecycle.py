"""Lifecycle operations against a Remnawave panel.

Every mutating operation runs under the shared :class:`OperationGate` and
follows the same shape: resolve the current user, decide whether the panel
needs to change, issue the minimal calls, answer with an ``OperationResult``.

Errors are split three ways:

- ``UpstreamError`` (panel answered non-2xx) propagates with its status/body;
- ``HTTPException`` (client fault, e.g. no identifier) propagates;
- anything else becomes ``OperationResult(success=False, error=...)``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional

from fastapi import HTTPException, status

from shm_agent.schemas.user import UserStatus
from shm_agent.services.adapters.base import UpstreamError, UserPanelClient
from shm_agent.services.adapters.factory import ApiCredentials, get_adapter
from shm_agent.services.gate import OperationGate
from shm_agent.services.user_inputs import resolve_expire_at
from shm_agent.services.user_settings import diff_settings, extract_settings, has_settings_fields

logger = logging.getLogger(__name__)

ACTIVE = UserStatus.ACTIVE.value
DISABLED = UserStatus.DISABLED.value

AdapterFactory = Callable[[ApiCredentials], UserPanelClient]


@dataclass
class OperationResult:
    success: bool
    response: Optional[dict[str, Any]] = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.success}
        if self.response is not None:
            out["response"] = self.response
        if self.error is not None:
            out["error"] = self.error
        return out


def _label(identifier: Mapping[str, Any]) -> str:
    return str(identifier.get("username") or identifier.get("uuid") or identifier.get("shortUuid") or "?")


class LifecycleService:
    def __init__(self, gate: Optional[OperationGate] = None, adapter_factory: AdapterFactory = get_adapter):
        self.gate = gate if gate is not None else OperationGate()
        self._adapter_factory = adapter_factory

    async def _run(self, op: str, label: str, body: Callable[[], Awaitable[OperationResult]]) -> OperationResult:
        async def guarded() -> OperationResult:
            logger.info("Processing %s for %s", op, label)
            try:
                return await body()
            except (UpstreamError, HTTPException):
                logger.warning("%s for %s rejected", op, label, exc_info=True)
                raise
            except Exception as e:
                logger.exception("Error processing %s for %s", op, label)
                return OperationResult(success=False, error=str(e) or e.__class__.__name__)

        return await self.gate.run(guarded)

    async def _resolve(self, panel: UserPanelClient, identifier: Mapping[str, Any]) -> dict[str, Any]:
        if identifier.get("uuid"):
            return await panel.get_user_by_uuid(str(identifier["uuid"]))
        if identifier.get("username"):
            return await panel.get_user_by_username(str(identifier["username"]))
        if identifier.get("shortUuid"):
            return await panel.get_user_by_short_uuid(str(identifier["shortUuid"]))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="UUID, username, or shortUuid is required")

    async def get_user(self, credentials: ApiCredentials, identifier: Mapping[str, Any]) -> dict[str, Any]:
        return await self._resolve(self._adapter_factory(credentials), identifier)

    async def create_user(
        self,
        credentials: ApiCredentials,
        username: str,
        expire_at: Optional[str] = None,
        settings: Optional[Mapping[str, Any]] = None,
    ) -> OperationResult:
        async def body() -> OperationResult:
            panel = self._adapter_factory(credentials)
            expire = resolve_expire_at(expire_at)
            user_settings = extract_settings(settings or {})
            if user_settings.get("activeInternalSquads") is None:
                squads = await panel.get_internal_squads()
                user_settings["activeInternalSquads"] = [sq["uuid"] for sq in squads]
            logger.debug("create settings for %s: %s", username, user_settings)
            user = await panel.create_user(username, expire, user_settings)
            return OperationResult(success=True, response=user)

        return await self._run("CREATE", username, body)

    async def activate_user(
        self,
        credentials: ApiCredentials,
        identifier: Mapping[str, Any],
        expire_at: Optional[str] = None,
        reset_traffic: bool = False,
        settings: Optional[Mapping[str, Any]] = None,
    ) -> OperationResult:
        requested = settings or {}

        async def body() -> OperationResult:
            panel = self._adapter_factory(credentials)
            current = await self._resolve(panel, identifier)

            if current.get("status") == ACTIVE and not has_settings_fields(requested) and not expire_at:
                logger.debug("user %s already active, nothing to do", current.get("uuid"))
                return OperationResult(success=True, response=current)

            uuid = str(current["uuid"])
            if current.get("status") != ACTIVE:
                await panel.enable_user(uuid)
            if reset_traffic:
                await panel.reset_user_traffic(uuid)

            changes = diff_settings(current, requested)
            if not changes and not expire_at:
                return OperationResult(success=True, response=current)

            updates: dict[str, Any] = {"status": ACTIVE, **changes}
            if expire_at:
                updates["expireAt"] = resolve_expire_at(expire_at)
            updated = await panel.update_user(uuid, updates)
            return OperationResult(success=True, response=updated)

        return await self._run("ACTIVATE", _label(identifier), body)

    async def block_user(self, credentials: ApiCredentials, identifier: Mapping[str, Any]) -> OperationResult:
        async def body() -> OperationResult:
            panel = self._adapter_factory(credentials)
            current = await self._resolve(panel, identifier)
            if current.get("status") == DISABLED:
                logger.debug("user %s already disabled", current.get("uuid"))
                return OperationResult(success=True, response=current)
            disabled = await panel.disable_user(str(current["uuid"]))
            return OperationResult(success=True, response=disabled)

        return await self._run("BLOCK", _label(identifier), body)

    async def remove_user(self, credentials: ApiCredentials, identifier: Mapping[str, Any]) -> OperationResult:
        async def body() -> OperationResult:
            panel = self._adapter_factory(credentials)
            current = await self._resolve(panel, identifier)
            await panel.delete_user(str(current["uuid"]))
            return OperationResult(success=True)

        return await self._run("REMOVE", _label(identifier), body)

    async def prolongate_user(
        self,
        credentials: ApiCredentials,
        identifier: Mapping[str, Any],
        expire_at: Optional[str] = None,
        reset_traffic: bool = False,
        settings: Optional[Mapping[str, Any]] = None,
    ) -> OperationResult:
        requested = settings or {}

        async def body() -> OperationResult:
            panel = self._adapter_factory(credentials)
            current = await self._resolve(panel, identifier)
            uuid = str(current["uuid"])
            if reset_traffic:
                await panel.reset_user_traffic(uuid)

            changes = diff_settings(current, requested)
            if not changes and not expire_at:
                logger.debug("no changes needed to prolongate %s", uuid)
                return OperationResult(success=True, response=current)

            updates: dict[str, Any] = dict(changes)
            if expire_at:
                updates["expireAt"] = resolve_expire_at(expire_at)
            updated = await panel.update_user(uuid, updates)
            return OperationResult(success=True, response=updated)

        return await self._run("PROLONGATE", _label(identifier), body)

    def queue_status(self) -> dict[str, Any]:
        st = self.gate.status()
        return {
            "isGateHeld": st.is_locked,
            "queueDepth": st.queue_length,
            "isProcessing": st.is_locked,
            "queueLength": st.queue_length,
        }
