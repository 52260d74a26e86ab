import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlmodel import SQLModel

from chitledger.admin import setup_admin
from chitledger.api.v1.api import api_router
from chitledger.core.config import settings
from chitledger.core.exception_handlers import register_exception_handlers
from chitledger.core.rate_limit import limiter
from chitledger.db.session import engine
from chitledger.schemas.response import ValidationErrorResponse, HTTPErrorResponse
import chitledger.models  # noqa: F401  registers every table on the metadata

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create tables on startup
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    logger.info(f"{settings.PROJECT_NAME} started, API under {settings.API_V1_STR}, docs at /docs")
    yield
    await engine.dispose()

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
    responses={
        400: {"model": ValidationErrorResponse, "description": "Validation Error"},
        401: {"model": HTTPErrorResponse, "description": "Unauthorized"},
        403: {"model": HTTPErrorResponse, "description": "Forbidden"},
        404: {"model": HTTPErrorResponse, "description": "Not Found"},
        409: {"model": HTTPErrorResponse, "description": "Conflict"},
    }
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_exception_handlers(app)

# Set all CORS enabled origins
if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(api_router, prefix=settings.API_V1_STR)
setup_admin(app, engine)
