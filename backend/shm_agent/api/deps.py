from fastapi import Header, HTTPException, Request, status

from shm_agent.services.adapters.factory import ApiCredentials
from shm_agent.services.lifecycle import LifecycleService


async def get_credentials(
    x_api_host: str | None = Header(default=None),
    x_api_token: str | None = Header(default=None),
) -> ApiCredentials:
    if not x_api_host or not x_api_token:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required headers: X-Api-Host and X-Api-Token",
        )
    return ApiCredentials(api_host=x_api_host, token=x_api_token)


def get_lifecycle_service(request: Request) -> LifecycleService:
    return request.app.state.lifecycle
