from pydantic import BaseModel, ConfigDict, Field, UUID4
from typing import Any, List, Optional

from shm_agent.schemas.user import TrafficLimitStrategy, UserStatus

USERNAME_PATTERN = r"^[a-zA-Z0-9_-]+$"
TAG_PATTERN = r"^[A-Z0-9_]*$"
# Shape only: day overflow ("2021-02-30") must get through to be clamped.
ISO_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}([T ]\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?)?$"

IDENTIFIER_FIELDS = ("uuid", "username", "shortUuid")


class _Strict(BaseModel):
    model_config = ConfigDict(extra="forbid")

    def supplied(self) -> dict[str, Any]:
        """Fields the client actually sent, JSON-ready."""
        return self.model_dump(mode="json", exclude_unset=True)


class UserSettingsFields(_Strict):
    trafficLimitBytes: Optional[int] = Field(default=None, ge=0)
    trafficLimitStrategy: Optional[TrafficLimitStrategy] = None
    hwidDeviceLimit: Optional[int] = Field(default=None, ge=0)
    activeInternalSquads: Optional[List[UUID4]] = None
    externalSquadUuid: Optional[UUID4] = None
    description: Optional[str] = None
    tag: Optional[str] = Field(default=None, max_length=16, pattern=TAG_PATTERN)
    telegramId: Optional[int] = None
    email: Optional[str] = None


class UserIdentifier(_Strict):
    uuid: Optional[UUID4] = None
    username: Optional[str] = Field(default=None, min_length=3, max_length=36, pattern=USERNAME_PATTERN)
    shortUuid: Optional[str] = None

    def identifier(self) -> dict[str, Any]:
        data = self.supplied()
        return {k: data[k] for k in IDENTIFIER_FIELDS if data.get(k)}

    def label(self) -> str:
        return str(self.username or self.uuid or self.shortUuid or "?")


class CreateUserRequest(UserSettingsFields):
    username: str = Field(min_length=3, max_length=36, pattern=USERNAME_PATTERN)
    expireAt: Optional[str] = Field(default=None, pattern=ISO_DATE_PATTERN)


class ActivateUserRequest(UserIdentifier, UserSettingsFields):
    expireAt: Optional[str] = Field(default=None, pattern=ISO_DATE_PATTERN)
    resetTraffic: Optional[bool] = None
    # Accepted for compatibility, never forwarded: activate always means ACTIVE.
    status: Optional[UserStatus] = None


class BlockUserRequest(UserIdentifier):
    pass


class RemoveUserRequest(UserIdentifier):
    pass


class ProlongateUserRequest(UserIdentifier, UserSettingsFields):
    expireAt: Optional[str] = Field(default=None, pattern=ISO_DATE_PATTERN)
    resetTraffic: Optional[bool] = None


class GetUserRequest(UserIdentifier):
    # Lookup only: no username format rules.
    username: Optional[str] = None
