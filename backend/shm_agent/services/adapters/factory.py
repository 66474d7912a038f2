from __future__ import annotations

from dataclasses import dataclass

from shm_agent.core.config import settings
from shm_agent.services.adapters.remnawave import RemnawaveAdapter


@dataclass(frozen=True)
class ApiCredentials:
    api_host: str
    token: str


def get_adapter(credentials: ApiCredentials) -> RemnawaveAdapter:
    return RemnawaveAdapter(
        credentials.api_host,
        credentials.token,
        verify_ssl=settings.PANEL_TLS_VERIFY,
        timeout=float(settings.HTTP_TIMEOUT_SECONDS),
    )
