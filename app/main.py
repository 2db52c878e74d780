import logging
import os
from datetime import datetime, timezone
from typing import Mapping, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.deps import UnauthorizedError
from app.api.v1.routes import router as v1_router
from app.core.config import Settings, get_settings
from app.core.logging import setup_logging


# -----------------------------
# App factory
# -----------------------------
def create_app(
    settings: Optional[Settings] = None,
    environ: Optional[Mapping[str, Optional[str]]] = None,
) -> FastAPI:
    """
    Build the relay app around an already validated Settings.

    `environ` is what the per-request chat database scan reads; it defaults to
    the live os.environ so keys added after startup are picked up.
    """
    if settings is None:
        settings = get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(title=settings.app_name)
    app.state.settings = settings
    app.state.environ = os.environ if environ is None else environ
    log = logging.getLogger("uvicorn.error")

    # --- CORS ---
    origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if "*" in origins else origins,
        allow_credentials=False,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    # --- Errors ---
    @app.exception_handler(UnauthorizedError)
    async def unauthorized(_request: Request, _exc: UnauthorizedError) -> JSONResponse:
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})

    @app.exception_handler(Exception)
    async def unexpected(request: Request, exc: Exception) -> JSONResponse:
        # Starlette re-raises afterwards; the server logs the traceback
        log.error("Unexpected error on %s %s: %r", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    # --- Include Routers ---
    app.include_router(v1_router, prefix="/v1")

    # Health
    @app.get("/health")
    def health():
        return {"status": "ok", "time": datetime.now(timezone.utc).isoformat()}

    return app
