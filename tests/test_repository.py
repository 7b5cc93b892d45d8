"""Tests for MediaAssetRepository."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from solarsite.db import Database
from solarsite.media.errors import AssetNotFoundError
from solarsite.media.repository import MediaAssetRepository
from solarsite.models import AssetStatus, MediaAsset


def make_asset(**overrides) -> MediaAsset:
    fields = {
        "asset_id": uuid4(),
        "source_filename": "panel",
        "status": AssetStatus.PROCESSING,
        "mime_type": "image/webp",
        "variants": {},
    }
    fields.update(overrides)
    return MediaAsset(**fields)


async def test_add_and_get(database: Database) -> None:
    asset = make_asset(alt_text="Roof panels")
    async with database.session() as session:
        MediaAssetRepository(session).add(asset)
        await session.commit()

    async with database.session() as session:
        loaded = await MediaAssetRepository(session).get(asset.asset_id)

    assert loaded is not None
    assert loaded.source_filename == "panel"
    assert loaded.status == AssetStatus.PROCESSING
    assert loaded.alt_text == "Roof panels"
    assert loaded.variants == {}
    assert loaded.created_at is not None


async def test_get_missing_returns_none(database: Database) -> None:
    async with database.session() as session:
        assert await MediaAssetRepository(session).get(uuid4()) is None


async def test_get_or_raise(database: Database) -> None:
    missing = uuid4()
    async with database.session() as session:
        with pytest.raises(AssetNotFoundError) as exc_info:
            await MediaAssetRepository(session).get_or_raise(missing)

    assert exc_info.value.asset_id == missing


async def test_list_recent_orders_newest_first(database: Database) -> None:
    now = datetime.now(UTC)
    old = make_asset(source_filename="old", created_at=now - timedelta(days=2))
    new = make_asset(source_filename="new", created_at=now)
    mid = make_asset(source_filename="mid", created_at=now - timedelta(days=1))

    async with database.session() as session:
        repo = MediaAssetRepository(session)
        for asset in (old, new, mid):
            repo.add(asset)
        await session.commit()

    async with database.session() as session:
        repo = MediaAssetRepository(session)
        listed = await repo.list_recent()
        limited = await repo.list_recent(limit=1)

    assert [a.source_filename for a in listed] == ["new", "mid", "old"]
    assert [a.source_filename for a in limited] == ["new"]


async def test_variants_round_trip(database: Database) -> None:
    variants = {"thumbnail": {"url": "/uploads/1-a-thumb.webp", "width": 150, "height": 150}}
    asset = make_asset(status=AssetStatus.READY, variants=variants)
    async with database.session() as session:
        MediaAssetRepository(session).add(asset)
        await session.commit()

    async with database.session() as session:
        loaded = await MediaAssetRepository(session).get_or_raise(asset.asset_id)

    assert loaded.variants == variants


async def test_delete(database: Database) -> None:
    asset = make_asset()
    async with database.session() as session:
        MediaAssetRepository(session).add(asset)
        await session.commit()

    async with database.session() as session:
        repo = MediaAssetRepository(session)
        await repo.delete(await repo.get_or_raise(asset.asset_id))
        await session.commit()

    async with database.session() as session:
        assert await MediaAssetRepository(session).get(asset.asset_id) is None


async def test_find_by_prefix(database: Database) -> None:
    asset = make_asset()
    async with database.session() as session:
        MediaAssetRepository(session).add(asset)
        await session.commit()

    async with database.session() as session:
        matches = await MediaAssetRepository(session).find_by_prefix(str(asset.asset_id)[:8])

    assert [m.asset_id for m in matches] == [asset.asset_id]


def test_file_urls() -> None:
    asset = make_asset(
        canonical_url="/uploads/1-a.webp",
        variants={
            "medium": {"url": "/uploads/1-a-medium.webp", "width": 800, "height": 600},
            "thumbnail": {"url": "/uploads/1-a-thumb.webp", "width": 150, "height": 150},
        },
    )

    assert asset.file_urls() == [
        "/uploads/1-a.webp",
        "/uploads/1-a-medium.webp",
        "/uploads/1-a-thumb.webp",
    ]


def test_file_urls_empty_while_processing() -> None:
    assert make_asset().file_urls() == []
