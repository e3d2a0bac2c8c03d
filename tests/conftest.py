"""Shared fixtures: temporary SQLite catalog, in-memory blob storage, HTTP client."""

from __future__ import annotations

import os

# Settings are read on import of the gallery package
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ADMIN_PASSWORD"] = "open-sesame"
os.environ["SESSION_SECRET"] = "test-session-secret-that-is-long-enough"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ENABLE_PROMETHEUS"] = "false"
os.environ["LOG_FORMAT"] = "text"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import timedelta
from pathlib import Path
from typing import Optional
from urllib.parse import quote, unquote

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from gallery.config import IntroConfig
from gallery.db import get_session_factory
from gallery.errors import CollaboratorError
from gallery.main import app
from gallery.models import Base
from gallery.storage import BlobInfo, get_storage
from gallery.video.schema import CatalogSchema

ADMIN_PASSWORD = "open-sesame"
INTRO_MARKER = "WEBSITE VID heaven"

# The videos table as it looked before display_date and visible were added
LEGACY_VIDEOS_DDL = """
CREATE TABLE videos (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title VARCHAR(255) NOT NULL,
    description TEXT,
    category VARCHAR(100),
    video_url VARCHAR(1024) NOT NULL,
    blob_url VARCHAR(1024) NOT NULL,
    thumbnail_url VARCHAR(1024),
    file_name VARCHAR(512) NOT NULL,
    file_size BIGINT,
    duration FLOAT,
    created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
)
"""


class FakeStorage:
    """In-memory stand-in for StorageClient."""

    base_url = "https://blob.test/videos"

    def __init__(self) -> None:
        self.objects: dict[str, int] = {}
        self.unavailable = False
        self.delete_error: Optional[Exception] = None

    def add(self, key: str, size: int = 1024) -> BlobInfo:
        self.objects[key] = size
        return BlobInfo(key=key, url=self.public_url(key), size=size)

    def public_url(self, object_key: str) -> str:
        return f"{self.base_url}/{quote(object_key)}"

    def list_blobs(self, limit: int = 1000) -> list[BlobInfo]:
        if self.unavailable:
            raise CollaboratorError("Blob storage not configured", details="credentials missing")
        return [
            BlobInfo(key=key, url=self.public_url(key), size=size)
            for key, size in list(self.objects.items())[:limit]
        ]

    def delete_blob(self, url: str) -> bool:
        if self.delete_error is not None:
            raise self.delete_error
        key = unquote(url[len(self.base_url) + 1:])
        return self.objects.pop(key, None) is not None

    def generate_presigned_upload_url(self, object_key: str, expires: timedelta = timedelta(minutes=15)) -> str:
        return f"{self.base_url}/{object_key}?X-Amz-Expires={int(expires.total_seconds())}"


@pytest.fixture(autouse=True)
def reset_catalog_schema():
    CatalogSchema.reset()
    yield
    CatalogSchema.reset()


@pytest_asyncio.fixture
async def engine(tmp_path: Path) -> AsyncEngine:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def legacy_engine(tmp_path: Path) -> AsyncEngine:
    """Catalog whose videos table predates display_date and visible."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'legacy.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.exec_driver_sql(LEGACY_VIDEOS_DDL)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory: async_sessionmaker) -> AsyncSession:
    async with session_factory() as session:
        yield session


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest_asyncio.fixture
async def client(session_factory: async_sessionmaker, storage: FakeStorage) -> AsyncClient:
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_storage] = lambda: storage
    app.state.intro_config = IntroConfig(
        splash_url="https://cdn.test/splash.mp4",
        enter_url="https://cdn.test/enter.mp4",
        marker=INTRO_MARKER,
    )
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as c:
        yield c
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def admin_client(client: AsyncClient) -> AsyncClient:
    response = await client.post("/admin/login", json={"password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return client
