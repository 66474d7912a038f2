from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
import os

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=(os.getenv("ENV_FILE", ".env"), ".env.local"), extra="ignore")

    APP_NAME: str = "shm-remnawave-agent"
    ENV: str = "dev"

    HOST: str = "0.0.0.0"
    PORT: int = 3100
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: str = ""  # comma separated
    PANEL_TLS_VERIFY: bool = True
    HTTP_TIMEOUT_SECONDS: int = 30

    # None = callers wait for the operation gate indefinitely
    GATE_ACQUIRE_TIMEOUT_SECONDS: Optional[float] = None

    @property
    def cors_origins_list(self) -> List[str]:
        if not self.CORS_ORIGINS:
            return []
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

settings = Settings()
