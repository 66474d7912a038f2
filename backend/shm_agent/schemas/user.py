from enum import Enum
from pydantic import BaseModel
from typing import Any

class UserStatus(str, Enum):
    ACTIVE = "ACTIVE"
    DISABLED = "DISABLED"
    LIMITED = "LIMITED"    # traffic exhausted
    EXPIRED = "EXPIRED"    # time expired

class TrafficLimitStrategy(str, Enum):
    NO_RESET = "NO_RESET"
    DAY = "DAY"
    WEEK = "WEEK"
    MONTH = "MONTH"
    YEAR = "YEAR"

class UserOut(BaseModel):
    success: bool = True
    response: dict[str, Any]

class QueueOut(BaseModel):
    isGateHeld: bool
    queueDepth: int
    # same values under the names existing SHM clients read
    isProcessing: bool
    queueLength: int

class ServiceStatus(BaseModel):
    service: str
    queue: QueueOut

class StatusOut(BaseModel):
    success: bool = True
    response: ServiceStatus
