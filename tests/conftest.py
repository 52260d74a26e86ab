import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("RATE_LIMIT_STORAGE_URI", "memory://")
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "true")

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel
from fastapi import FastAPI

from chitledger.core.config import settings
from chitledger.api.v1.api import api_router
from chitledger.core.exception_handlers import register_exception_handlers
from chitledger.core.rate_limit import limiter
from chitledger.db.session import get_db
import chitledger.models  # noqa: F401

# Disable rate limiting globally for tests
limiter.enabled = False

@pytest.fixture
async def engine(tmp_path):
    # A fresh database file per test; NullPool so no connection outlives its event loop
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()

@pytest.fixture
async def session(engine):
    TestingSessionLocal = async_sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    async with TestingSessionLocal() as session:
        yield session

@pytest.fixture
async def client(session):
    # Create a fresh app for each test to avoid middleware/loop issues
    new_app = FastAPI()
    new_app.state.limiter = limiter
    register_exception_handlers(new_app)
    new_app.include_router(api_router, prefix=settings.API_V1_STR)

    async def override_get_db():
        yield session

    new_app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=new_app), base_url="http://test") as c:
        yield c
