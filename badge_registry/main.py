import logging
from contextlib import asynccontextmanager

import logfire
import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from badge_registry.api.badges import router as badges_router
from badge_registry.api.blocks import router as blocks_router
from badge_registry.api.principals import router as principals_router
from badge_registry.core.config import settings
from badge_registry.core.database import AsyncSessionLocal, engine
from badge_registry.core.exceptions import RegistryError
from badge_registry.models import Base
from badge_registry.repositories.unit_of_work import SqlAlchemyUnitOfWork

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(),
    ],
)

# Set specific loggers
logging.getLogger("badge_registry.services").setLevel(logging.INFO)

# Completely disable SQLAlchemy logging
logging.getLogger("sqlalchemy").setLevel(logging.CRITICAL)
logging.getLogger("sqlalchemy.engine").setLevel(logging.CRITICAL)
logging.getLogger("sqlalchemy.pool").setLevel(logging.CRITICAL)

logger = logging.getLogger(__name__)

if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        send_default_pii=False,
    )


async def init_registry() -> None:
    """Create tables and the registry state row if they do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        async with SqlAlchemyUnitOfWork(session) as uow:
            await uow.registry.get_state()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting up {settings.PROJECT_NAME}...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(
        f"Database URL: {settings.DATABASE_URL.split('@')[-1] if '@' in settings.DATABASE_URL else 'local'}"
    )

    if not settings.PERSIST_BADGE_EXPIRY:
        logger.warning(
            "PERSIST_BADGE_EXPIRY is disabled: time-limited mints will not record their expiry"
        )
    if not settings.TRACK_REGISTRY_STATS:
        logger.warning(
            "TRACK_REGISTRY_STATS is disabled: registry statistics will stay at zero"
        )

    try:
        await init_registry()
        logger.info("Database tables created/verified")
    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")
        raise

    yield

    logger.info(f"Shutting down {settings.PROJECT_NAME}...")
    await engine.dispose()


app = FastAPI(title=f"{settings.PROJECT_NAME} API", lifespan=lifespan)

# configure logfire only if token exists and not using fake token
if settings.LOGFIRE_TOKEN and settings.LOGFIRE_TOKEN != "fake-token-for-testing":
    try:
        logfire.configure(token=settings.LOGFIRE_TOKEN)
        logfire.instrument_fastapi(app, capture_headers=True, excluded_urls="/healthz")
        # Instrument SQLAlchemy (async engine) so query spans are captured
        logfire.instrument_sqlalchemy(engine)
    except Exception as e:
        logger.warning(f"Failed to configure Logfire: {e}")


@app.exception_handler(RegistryError)
async def registry_error_handler(request: Request, exc: RegistryError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.detail},
    )


app.include_router(badges_router)
app.include_router(principals_router)
app.include_router(blocks_router)


@app.get("/healthz", include_in_schema=False)
async def healthz():
    return {"status": "ok"}
