from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from .config import settings
from .logging import setup_logging, RequestIdMiddleware
from .auth.router import router as auth_router
from .routes.dashboard import router as dashboard_router
from .routes.personnel import router as personnel_router, departments_router
from .routes.schedules import router as schedules_router
from .routes.attendance import router as attendance_router
from .routes.swaps import router as swaps_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """One connection pool for every backend call; closed on shutdown."""
    log = structlog.get_logger(__name__)
    app.state.http_client = httpx.AsyncClient(timeout=httpx.Timeout(settings.http_timeout))
    if settings.is_configured:
        log.info("backend_configured", url=settings.supabase_url)
    else:
        log.warning("backend_not_configured")
    try:
        yield
    finally:
        await app.state.http_client.aclose()


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)

    # Middlewares
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # Routers
    app.include_router(auth_router)
    app.include_router(dashboard_router)
    app.include_router(personnel_router)
    app.include_router(departments_router)
    app.include_router(schedules_router)
    app.include_router(attendance_router)
    app.include_router(swaps_router)

    @app.get("/health")
    def health():
        return {"status": "ok", "backend_configured": settings.is_configured}

    # Metrics
    Instrumentator().instrument(app).expose(app)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
