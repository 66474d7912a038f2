from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shm_agent.api.router import api_router
from shm_agent.core.config import settings
from shm_agent.core.logging import configure_logging
from shm_agent.services.adapters.base import UpstreamError
from shm_agent.services.gate import GateTimeoutError, OperationGate
from shm_agent.services.lifecycle import LifecycleService


async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    # Panel status and body go back to the caller untouched.
    body = exc.body if exc.body not in (None, "") else {"message": str(exc)}
    return JSONResponse(status_code=exc.status_code, content=body)


async def gate_timeout_handler(request: Request, exc: GateTimeoutError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": str(exc)})


def create_app(service: Optional[LifecycleService] = None) -> FastAPI:
    app = FastAPI(title=settings.APP_NAME)
    app.state.lifecycle = service or LifecycleService(OperationGate(settings.GATE_ACQUIRE_TIMEOUT_SECONDS))

    if settings.cors_origins_list:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins_list,
            allow_credentials=False,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(UpstreamError, upstream_error_handler)
    app.add_exception_handler(GateTimeoutError, gate_timeout_handler)
    app.include_router(api_router, prefix="/api")

    @app.get("/health")
    async def health():
        queue = app.state.lifecycle.queue_status()
        return {"status": "ok", "service": settings.APP_NAME, "queue": queue}

    return app


configure_logging()
app = create_app()
