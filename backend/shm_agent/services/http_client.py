from __future__ import annotations
import httpx
from shm_agent.core.config import settings

def build_async_client(
    verify: bool | None = None,
    timeout: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS),
        verify=settings.PANEL_TLS_VERIFY if verify is None else verify,
        headers={"User-Agent": f"{settings.APP_NAME}/1.0"},
        transport=transport,
    )
