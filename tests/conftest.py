"""Shared pytest fixtures for SolarSite tests."""

from __future__ import annotations

import io
from collections.abc import AsyncGenerator, Callable
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image

from solarsite.app import create_app
from solarsite.config import Settings
from solarsite.db import Database
from solarsite.media import BlobStore, MediaIngestionService
from solarsite.services.activity import ActivityLogger

ADMIN_TOKEN = "test-admin-token"

MakeImage = Callable[..., bytes]


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings pointing at a per-test SQLite file and upload directory."""
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        upload_dir=tmp_path / "uploads",
        admin_token=ADMIN_TOKEN,
        log_level="WARNING",
    )


@pytest.fixture
async def database(test_settings: Settings) -> AsyncGenerator[Database, None]:
    """Database with all tables created, disposed after the test."""
    db = Database.from_settings(test_settings)
    await db.init()
    yield db
    await db.dispose()


@pytest.fixture
def blob_store(test_settings: Settings) -> BlobStore:
    store = BlobStore(test_settings.upload_dir, test_settings.upload_url_prefix)
    store.ensure_root()
    return store


@pytest.fixture
def activity(database: Database) -> ActivityLogger:
    return ActivityLogger(database.session_factory)


@pytest.fixture
def service(
    database: Database,
    blob_store: BlobStore,
    test_settings: Settings,
    activity: ActivityLogger,
) -> MediaIngestionService:
    return MediaIngestionService(database, blob_store, test_settings, activity=activity)


@pytest.fixture
async def client(
    test_settings: Settings, database: Database
) -> AsyncGenerator[AsyncClient, None]:
    """API client authenticated as admin."""
    app = create_app(test_settings, database=database)
    app.state.blob_store.ensure_root()
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"Authorization": f"Bearer {ADMIN_TOKEN}"},
    ) as c:
        yield c


@pytest.fixture
def make_image() -> MakeImage:
    """Factory fixture for encoded test images."""

    def _make(
        width: int = 100,
        height: int = 100,
        format: str = "JPEG",
        *,
        mode: str = "RGB",
        color: str | tuple[int, ...] = "red",
    ) -> bytes:
        img = Image.new(mode, (width, height), color=color)
        buffer = io.BytesIO()
        img.save(buffer, format=format)
        return buffer.getvalue()

    return _make


@pytest.fixture
def uploaded_files(test_settings: Settings) -> Callable[[], list[str]]:
    """Names of all files currently in the upload directory."""

    def _list() -> list[str]:
        root = test_settings.upload_dir
        if not root.exists():
            return []
        return sorted(p.name for p in root.iterdir() if p.is_file())

    return _list
