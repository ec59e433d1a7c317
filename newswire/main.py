import logging
import structlog
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.v1 import api_router
from .config import get_settings
from .core.database import SessionLocal, create_tables
from .core.exceptions import AuthError, StoreError
from .news.services.ingestion_service import IngestionConfig, IngestionService
from .news.services.news_api_client import NewsApiClient
from .news.services.scheduler import IngestionScheduler


def apply_logging_preferences(settings):
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    if not settings.debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(message)s"
)

apply_logging_preferences(settings)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer() if settings.log_format == "json" else structlog.dev.ConsoleRenderer(),
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


def build_scheduler() -> IngestionScheduler:
    service = IngestionService(
        client=NewsApiClient.from_settings(settings),
        session_factory=SessionLocal,
        config=IngestionConfig.from_settings(settings),
    )
    return IngestionScheduler(service)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    apply_logging_preferences(settings)
    logger.info("Starting Newswire API", version="0.1.0")
    try:
        create_tables()
        logger.info("Database tables created/verified")
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise

    if not settings.news_api_key:
        logger.warning("NEWS_API_KEY is not set; NewsAPI will reject every request")

    scheduler: IngestionScheduler = app.state.scheduler
    if settings.scheduler_enabled:
        scheduler.start(run_immediately=settings.fetch_on_startup)
    elif settings.fetch_on_startup:
        logger.info("Running initial news fetch on server start")
        scheduler.trigger()

    yield

    logger.info("Shutting down Newswire API")
    await scheduler.stop()


def create_application() -> FastAPI:
    app = FastAPI(
        title="Newswire",
        description="Hourly NewsAPI cache serving category-filtered articles",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    app.state.scheduler = build_scheduler()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AuthError)
    async def auth_exception_handler(request: Request, exc: AuthError):
        logger.warning("Rejected unauthenticated request", path=request.url.path)
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})

    @app.exception_handler(StoreError)
    async def store_exception_handler(request: Request, exc: StoreError):
        logger.error("Database operation failed", path=request.url.path, error=exc.message)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        logger.error(
            "Unhandled exception occurred",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": "An unexpected error occurred. Please try again later.",
            }
        )

    # Health check at root
    from .api.v1.endpoints import health
    app.include_router(health.router, tags=["health"])

    app.include_router(api_router, prefix="/api")

    return app


app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "newswire.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level="info",
        access_log=False,
    )
