"""Data access for MediaAsset records."""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import String, cast, select
from sqlalchemy.ext.asyncio import AsyncSession

from solarsite.media.errors import AssetNotFoundError
from solarsite.models import MediaAsset


class MediaAssetRepository:
    """CRUD over the media_assets table.

    The repository never commits; the caller owns the transaction.

    Usage:
        async with db.session() as session:
            repo = MediaAssetRepository(session)
            asset = await repo.get_or_raise(asset_id)
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    def add(self, asset: MediaAsset) -> MediaAsset:
        self._session.add(asset)
        return asset

    async def get(self, asset_id: UUID) -> MediaAsset | None:
        return await self._session.get(MediaAsset, asset_id)

    async def get_or_raise(self, asset_id: UUID) -> MediaAsset:
        """Load an asset or raise AssetNotFoundError."""
        asset = await self.get(asset_id)
        if asset is None:
            raise AssetNotFoundError(asset_id)
        return asset

    async def list_recent(self, limit: int | None = None) -> Sequence[MediaAsset]:
        """All assets, most recently created first."""
        stmt = select(MediaAsset).order_by(MediaAsset.created_at.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self._session.execute(stmt)
        return result.scalars().all()

    async def find_by_prefix(self, prefix: str) -> Sequence[MediaAsset]:
        """Assets whose id (as text) starts with the prefix.

        Used by the CLI so operators can type a short id.
        """
        stmt = select(MediaAsset).where(
            cast(MediaAsset.asset_id, String).startswith(prefix.replace("-", "").lower())
            | cast(MediaAsset.asset_id, String).startswith(prefix.lower())
        )
        result = await self._session.execute(stmt)
        return result.scalars().all()

    async def delete(self, asset: MediaAsset) -> None:
        await self._session.delete(asset)
