from __future__ import annotations
import logging
from fastapi import APIRouter, Depends

from shm_agent.api.deps import get_credentials, get_lifecycle_service
from shm_agent.core.config import settings
from shm_agent.schemas.user import StatusOut, UserOut
from shm_agent.schemas.user_ops import (
    ActivateUserRequest,
    BlockUserRequest,
    CreateUserRequest,
    GetUserRequest,
    ProlongateUserRequest,
    RemoveUserRequest,
)
from shm_agent.services.adapters.factory import ApiCredentials
from shm_agent.services.lifecycle import LifecycleService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/create")
async def create_user(
    payload: CreateUserRequest,
    credentials: ApiCredentials = Depends(get_credentials),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    logger.info("Received CREATE request for %s", payload.username)
    result = await service.create_user(
        credentials,
        payload.username,
        expire_at=payload.expireAt,
        settings=payload.supplied(),
    )
    return result.to_dict()


@router.post("/activate")
async def activate_user(
    payload: ActivateUserRequest,
    credentials: ApiCredentials = Depends(get_credentials),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    logger.info("Received ACTIVATE request for %s", payload.label())
    result = await service.activate_user(
        credentials,
        payload.identifier(),
        expire_at=payload.expireAt,
        reset_traffic=bool(payload.resetTraffic),
        settings=payload.supplied(),
    )
    return result.to_dict()


@router.post("/block")
async def block_user(
    payload: BlockUserRequest,
    credentials: ApiCredentials = Depends(get_credentials),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    logger.info("Received BLOCK request for %s", payload.label())
    result = await service.block_user(credentials, payload.identifier())
    return result.to_dict()


@router.post("/remove")
async def remove_user(
    payload: RemoveUserRequest,
    credentials: ApiCredentials = Depends(get_credentials),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    logger.info("Received REMOVE request for %s", payload.label())
    result = await service.remove_user(credentials, payload.identifier())
    return result.to_dict()


@router.post("/prolongate")
async def prolongate_user(
    payload: ProlongateUserRequest,
    credentials: ApiCredentials = Depends(get_credentials),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    logger.info("Received PROLONGATE request for %s", payload.label())
    result = await service.prolongate_user(
        credentials,
        payload.identifier(),
        expire_at=payload.expireAt,
        reset_traffic=bool(payload.resetTraffic),
        settings=payload.supplied(),
    )
    return result.to_dict()


@router.post("/user", response_model=UserOut)
async def get_user(
    payload: GetUserRequest,
    credentials: ApiCredentials = Depends(get_credentials),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    user = await service.get_user(credentials, payload.identifier())
    return UserOut(success=True, response=user)


@router.get("/status", response_model=StatusOut)
async def queue_status(service: LifecycleService = Depends(get_lifecycle_service)):
    return {"success": True, "response": {"service": settings.APP_NAME, "queue": service.queue_status()}}
