import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dailyreport.core.config import Settings, get_settings
from dailyreport.core.database import build_engine, build_session_factory
from dailyreport.core.errors import register_exception_handlers
from dailyreport.routers.auth import router as auth_router
from dailyreport.routers.comments import router as comments_router
from dailyreport.routers.customers import router as customers_router
from dailyreport.routers.dashboard import router as dashboard_router
from dailyreport.routers.reports import router as reports_router
from dailyreport.routers.sales_persons import router as sales_persons_router
from dailyreport.routers.visits import router as visits_router

API_PREFIX = "/api/v1"

# Safe fallback for local dev if CORS_ORIGINS is not set
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(title="Daily Report API", lifespan=lifespan)

    # Per-app engine and session factory; request code reaches them through dependencies
    app.state.settings = settings
    app.state.engine = build_engine(settings.database_url, echo=settings.sql_echo)
    app.state.session_factory = build_session_factory(app.state.engine)

    allow_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    if not allow_origins:
        allow_origins = DEFAULT_CORS_ORIGINS

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(auth_router, prefix=f"{API_PREFIX}/auth", tags=["auth"])
    app.include_router(customers_router, prefix=f"{API_PREFIX}/customers", tags=["customers"])
    app.include_router(reports_router, prefix=f"{API_PREFIX}/reports", tags=["reports"])
    app.include_router(visits_router, prefix=API_PREFIX, tags=["visits"])
    app.include_router(comments_router, prefix=API_PREFIX, tags=["comments"])
    app.include_router(sales_persons_router, prefix=f"{API_PREFIX}/sales-persons", tags=["sales-persons"])
    app.include_router(dashboard_router, prefix=f"{API_PREFIX}/dashboard", tags=["dashboard"])

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()
