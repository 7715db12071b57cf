from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from .auth.router import router as auth_router
from .config import settings
from .hub import Hub
from .logging import RequestIdMiddleware, setup_logging, structlog
from .routes.audit import router as audit_router
from .routes.calendar import router as calendar_router
from .routes.inventory import router as inventory_router
from .routes.jobs import router as jobs_router
from .routes.notifications import router as notifications_router
from .routes.reports import router as reports_router
from .routes.search import router as search_router
from .routes.users import router as users_router


logger = structlog.get_logger(__name__)


def create_app(hub: Optional[Hub] = None) -> FastAPI:
    setup_logging()
    app = FastAPI(title=settings.app_name)

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

    if hub is None:
        hub = Hub.from_settings(settings)
    if not hub.is_hydrated:
        hub.hydrate()
    app.state.hub = hub

    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(jobs_router)
    app.include_router(inventory_router)
    app.include_router(reports_router)
    app.include_router(notifications_router)
    app.include_router(calendar_router)
    app.include_router(search_router)
    app.include_router(audit_router)

    Instrumentator().instrument(app).expose(app)

    @app.get("/health")
    def health():
        return {"status": "ok", "environment": settings.environment, "hydrated": app.state.hub.is_hydrated}

    logger.info("app_created", state_backend=settings.state_backend)
    return app


app = create_app()
