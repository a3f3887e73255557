import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from config import Settings
from database import create_db_engine, create_session_factory, init_db
from dependencies import limiter
from errors import register_exception_handlers
from mailer import Mailer

# Routers
from routers.auth import router as auth_router
from routers.tasks import router as tasks_router
from routers.work_tasks import router as work_tasks_router
from routers.food_tasks import router as food_tasks_router
from routers.homework_tasks import router as homework_tasks_router
from routers.email_tasks import router as email_tasks_router
from routers.meeting_tasks import router as meeting_tasks_router
from routers.project_tasks import router as project_tasks_router
from routers.health_tasks import router as health_tasks_router
from routers.personal_tasks import router as personal_tasks_router

logger = logging.getLogger(__name__)

ROUTERS = [
    auth_router,
    tasks_router,
    work_tasks_router,
    food_tasks_router,
    homework_tasks_router,
    email_tasks_router,
    meeting_tasks_router,
    project_tasks_router,
    health_tasks_router,
    personal_tasks_router,
]


# Custom Middleware for Security Headers
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["Content-Security-Policy"] = "default-src 'self'; script-src 'self' 'unsafe-inline' 'unsafe-eval'; style-src 'self' 'unsafe-inline';"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        return response


def create_app(settings: Optional[Settings] = None, mailer: Optional[Mailer] = None) -> FastAPI:
    """
    Build the application.

    The database engine, session factory, mailer and settings are created once
    here and kept on ``app.state``; request handlers reach them through the
    dependencies in ``dependencies.py``.
    """
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    engine = create_db_engine(settings.database_url)
    init_db(engine)

    app = FastAPI(title="LVL.AI Task API")
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.mailer = mailer or Mailer(settings)

    # Rate Limiter Setup (slowapi looks it up on app.state.limiter)
    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter

    register_exception_handlers(app)

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        # Explicit origins only (strict CORS)
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)

    for router in ROUTERS:
        app.include_router(router)

    @app.get("/", tags=["meta"])
    def api_info():
        return {
            "success": True,
            "message": "LVL.AI task API",
            "version": "1.0.0",
            "endpoints": {
                "auth": "/api/auth",
                "tasks": "/api/tasks",
                **{r.prefix.split("/")[-1]: r.prefix for r in ROUTERS[2:]},
            },
        }

    @app.get("/health", tags=["meta"])
    def health():
        return {"status": "ok"}

    logger.info("Application ready (database: %s)", engine.url.render_as_string(hide_password=True))
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
