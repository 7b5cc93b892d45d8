"""Media ingestion orchestrator.

Turns raw upload bytes into a MediaAsset with a canonical file and its
variants, and handles replace/update/delete on existing assets.

Lifecycle of one ingestion:
1. Create the record in PROCESSING state (commit #1)
2. Probe the image, transcode the canonical file, write it
3. Transcode and write each planned variant
4. Store file fields and the variant map, flip to READY (commit #2)

Any failure in 2-4 deletes the files written during this attempt
(best-effort), moves the record to ERROR with a readable message and
raises IngestionError. Nothing is retried; re-uploading creates a new record.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import asdict, dataclass, field
from typing import Any
from urllib.parse import unquote, urlparse
from uuid import UUID, uuid4

from solarsite.clients.remote_images import RemoteImageFetcher
from solarsite.config import Settings
from solarsite.db import Database
from solarsite.media.blob_store import BlobStore, CleanupReport
from solarsite.media.errors import BlobExistsError, BlobWriteError, IngestionError, MediaError
from solarsite.media.repository import MediaAssetRepository
from solarsite.media.transcoder import TranscodeSpec, mime_type_for, probe, transcode
from solarsite.media.variants import VARIANT_PLAN, VariantSpec, plan_variants
from solarsite.models import ActivityAction, AssetStatus, MediaAsset
from solarsite.services.activity import ActivityLogger
from solarsite.utils.naming import current_ms, normalize_stem, timestamp_prefix

logger = logging.getLogger(__name__)

# Base names tried before giving up on a canonical write
_NAME_ATTEMPTS = 50


@dataclass
class AssetMetadata:
    """User-editable fields. None means "leave unchanged"."""

    alt_text: str | None = None
    title: str | None = None
    caption: str | None = None
    description: str | None = None

    def updates(self) -> dict[str, str]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    def apply_to(self, asset: MediaAsset) -> None:
        for key, value in self.updates().items():
            setattr(asset, key, value)


@dataclass
class _PipelineResult:
    filename: str
    canonical_url: str
    width: int
    height: int
    byte_size: int
    mime_type: str
    variants: dict[str, dict[str, Any]] = field(default_factory=dict)


class MediaIngestionService:
    """Coordinate transcoding, blob writes and MediaAsset updates.

    Each public method opens its own short sessions, so one instance can be
    shared by every request (and by background tasks).

    Usage:
        service = MediaIngestionService(db, BlobStore(settings.upload_dir), settings)
        asset = await service.ingest(data, "Roof Install.jpg")
    """

    def __init__(
        self,
        database: Database,
        blob_store: BlobStore,
        settings: Settings,
        *,
        activity: ActivityLogger | None = None,
        fetcher: RemoteImageFetcher | None = None,
        plan: tuple[VariantSpec, ...] = VARIANT_PLAN,
    ) -> None:
        self._db = database
        self._blobs = blob_store
        self._settings = settings
        self._activity = activity
        self._fetcher = fetcher or RemoteImageFetcher(
            timeout=settings.remote_fetch_timeout,
            max_bytes=settings.max_upload_bytes,
        )
        self._plan = plan
        self._format = settings.output_format.upper()
        self._extension = self._format.lower()

    @property
    def database(self) -> Database:
        return self._db

    @property
    def blob_store(self) -> BlobStore:
        return self._blobs

    # ── Reads ────────────────────────────────────────────────────────────────

    async def get(self, asset_id: UUID) -> MediaAsset:
        async with self._db.session() as session:
            return await MediaAssetRepository(session).get_or_raise(asset_id)

    async def list_assets(self, limit: int | None = None) -> Sequence[MediaAsset]:
        """All assets, most recent first (ERROR records included)."""
        async with self._db.session() as session:
            return await MediaAssetRepository(session).list_recent(limit)

    # ── Ingestion ────────────────────────────────────────────────────────────

    async def ingest(
        self,
        data: bytes,
        filename: str,
        metadata: AssetMetadata | None = None,
        *,
        actor: str = "system",
        action: ActivityAction = ActivityAction.MEDIA_UPLOAD,
    ) -> MediaAsset:
        """Create a new asset from upload bytes and process it to READY.

        Raises:
            IngestionError: Processing failed; ``error.asset`` is in ERROR state.
        """
        asset = await self.begin(filename, metadata)
        asset = await self.process(asset.asset_id, data, filename)
        await self._record_upload(asset, actor=actor, action=action)
        return asset

    async def begin(self, filename: str, metadata: AssetMetadata | None = None) -> MediaAsset:
        """Create the PROCESSING record for a new upload (first half of ingest)."""
        stem = normalize_stem(filename)
        asset = MediaAsset(
            asset_id=uuid4(),
            source_filename=stem,
            status=AssetStatus.PROCESSING,
            mime_type=mime_type_for(self._format),
            variants={},
            alt_text=stem,
            title=stem,
        )
        if metadata is not None:
            metadata.apply_to(asset)

        async with self._db.session() as session:
            MediaAssetRepository(session).add(asset)
            await session.commit()

        logger.info("Created media asset %s for %r", asset.asset_id, filename)
        return asset

    async def process(self, asset_id: UUID, data: bytes, filename: str) -> MediaAsset:
        """Run the pipeline for an existing record and finalize it.

        Raises:
            IngestionError: Any step failed. Files written in this attempt are
                removed and the record (if it still exists) is in ERROR state.
        """
        stem = normalize_stem(filename)
        written: list[str] = []
        try:
            result = await self._run_pipeline(data, stem, written)
            return await self._finalize(asset_id, stem, result)
        except Exception as e:
            message = str(e) if isinstance(e, MediaError) else f"Unexpected error: {e}"
            if not isinstance(e, MediaError):
                logger.exception("Ingestion of asset %s crashed", asset_id)
            else:
                logger.warning("Ingestion of asset %s failed: %s", asset_id, message)

            await self._blobs.delete_urls(self._blobs.url_for(name) for name in written)
            asset = await self._mark_error(asset_id, message)
            raise IngestionError(message, asset) from e

    async def process_in_background(
        self, asset_id: UUID, data: bytes, filename: str, *, actor: str = "system"
    ) -> None:
        """Background-task entry point for deferred uploads.

        The outcome lives on the record (READY or ERROR); there is no caller
        left to raise to, so failures end here after being logged. A READY
        outcome is logged to the activity trail like a synchronous upload.
        """
        try:
            asset = await self.process(asset_id, data, filename)
        except IngestionError as e:
            logger.warning("Deferred ingestion of %s ended in error: %s", asset_id, e)
            return
        await self._record_upload(asset, actor=actor, action=ActivityAction.MEDIA_UPLOAD)

    async def _run_pipeline(self, data: bytes, stem: str, written: list[str]) -> _PipelineResult:
        # Decode once up front so garbage input fails before any file is written
        await asyncio.to_thread(probe, data)

        canonical = await asyncio.to_thread(
            transcode,
            data,
            TranscodeSpec(quality=self._settings.canonical_quality, format=self._format),
        )
        base, canonical_url = await self._write_canonical(stem, canonical.data)
        filename = f"{base}.{self._extension}"
        written.append(filename)

        result = _PipelineResult(
            filename=filename,
            canonical_url=canonical_url,
            width=canonical.width,
            height=canonical.height,
            byte_size=canonical.byte_size,
            mime_type=canonical.mime_type,
        )

        for spec in plan_variants(canonical.width, self._plan):
            output = await asyncio.to_thread(
                transcode,
                data,
                TranscodeSpec(
                    width=spec.width,
                    height=spec.height,
                    fit=spec.fit,
                    quality=self._settings.variant_quality,
                    format=self._format,
                ),
            )
            name = f"{base}{spec.suffix}.{self._extension}"
            url = await self._blobs.write(name, output.data)
            written.append(name)
            result.variants[spec.name] = {
                "url": url,
                "width": output.width,
                "height": output.height,
            }
            logger.debug("Wrote %s variant %s (%dx%d)", spec.name, name, output.width, output.height)

        return result

    async def _write_canonical(self, stem: str, data: bytes) -> tuple[str, str]:
        """Store the canonical file under a fresh ``<ms>-<stem>`` base name.

        A name already taken by another upload (same stem, same millisecond)
        moves on to the next millisecond. Returns (base, url).
        """
        now_ms = current_ms()
        for _ in range(_NAME_ATTEMPTS):
            base = timestamp_prefix(stem, now_ms)
            try:
                url = await self._blobs.write(f"{base}.{self._extension}", data)
            except BlobExistsError:
                logger.debug("File name %s taken, trying the next millisecond", base)
                now_ms += 1
                continue
            return base, url
        raise BlobWriteError(f"No free file name for {stem} after {_NAME_ATTEMPTS} attempts")

    async def _finalize(self, asset_id: UUID, stem: str, result: _PipelineResult) -> MediaAsset:
        async with self._db.session() as session:
            asset = await MediaAssetRepository(session).get_or_raise(asset_id)
            asset.source_filename = stem
            asset.filename = result.filename
            asset.canonical_url = result.canonical_url
            asset.width = result.width
            asset.height = result.height
            asset.byte_size = result.byte_size
            asset.mime_type = result.mime_type
            asset.variants = result.variants
            asset.status = AssetStatus.READY
            asset.error_message = None
            await session.commit()

        logger.info(
            "Media asset %s ready: %s %dx%d, variants=%s",
            asset_id, result.filename, result.width, result.height, sorted(result.variants),
        )
        return asset

    async def _mark_error(self, asset_id: UUID, message: str) -> MediaAsset | None:
        async with self._db.session() as session:
            asset = await MediaAssetRepository(session).get(asset_id)
            if asset is None:
                # Deleted while processing; nothing left to mark
                return None
            asset.status = AssetStatus.ERROR
            asset.error_message = message
            asset.filename = None
            asset.canonical_url = None
            asset.variants = {}
            asset.width = asset.height = asset.byte_size = None
            await session.commit()
            return asset

    # ── Mutations on existing assets ─────────────────────────────────────────

    async def replace(
        self,
        asset_id: UUID,
        data: bytes,
        filename: str,
        metadata: AssetMetadata | None = None,
        *,
        actor: str = "system",
    ) -> MediaAsset:
        """Swap the image behind an existing asset, keeping its id.

        Raises:
            AssetNotFoundError: Unknown id (checked before any file I/O).
            IngestionError: The new image could not be processed.
        """
        async with self._db.session() as session:
            asset = await MediaAssetRepository(session).get_or_raise(asset_id)
            old_urls = asset.file_urls()
            if metadata is not None:
                metadata.apply_to(asset)
            asset.status = AssetStatus.PROCESSING
            asset.error_message = None
            asset.filename = None
            asset.canonical_url = None
            asset.variants = {}
            asset.width = asset.height = asset.byte_size = None
            await session.commit()

        report = await self._blobs.delete_urls(old_urls)
        asset = await self.process(asset_id, data, filename)
        await self._record(
            ActivityAction.MEDIA_REPLACE,
            f"Replaced image of {asset.asset_id} with {asset.filename}",
            actor=actor,
            details={"asset_id": str(asset_id), "cleanup": report.as_dict()},
        )
        return asset

    async def update_metadata(
        self, asset_id: UUID, metadata: AssetMetadata, *, actor: str = "system"
    ) -> MediaAsset:
        """Change alt text/title/caption/description only; files are untouched."""
        async with self._db.session() as session:
            asset = await MediaAssetRepository(session).get_or_raise(asset_id)
            metadata.apply_to(asset)
            await session.commit()

        await self._record(
            ActivityAction.MEDIA_UPDATE,
            f"Updated details of {asset_id}",
            actor=actor,
            details={"asset_id": str(asset_id), "fields": sorted(metadata.updates())},
        )
        return asset

    async def remove(self, asset_id: UUID, *, actor: str = "system") -> CleanupReport:
        """Delete an asset's files (best-effort) and then its record.

        Raises:
            AssetNotFoundError: Unknown id; no files are touched.
        """
        async with self._db.session() as session:
            repo = MediaAssetRepository(session)
            asset = await repo.get_or_raise(asset_id)
            report = await self._blobs.delete_urls(asset.file_urls())
            await repo.delete(asset)
            await session.commit()

        logger.info("Deleted media asset %s (%d files removed)", asset_id, len(report.deleted))
        await self._record(
            ActivityAction.MEDIA_DELETE,
            f"Deleted media asset {asset_id}",
            actor=actor,
            details={"asset_id": str(asset_id), "cleanup": report.as_dict()},
        )
        return report

    async def import_from_url(
        self,
        url: str,
        filename: str | None = None,
        alt_text: str | None = None,
        *,
        actor: str = "system",
    ) -> MediaAsset:
        """Download a remote image and ingest it.

        Raises:
            RemoteFetchError: The download failed (no record is created).
            IngestionError: The downloaded bytes could not be processed.
        """
        data = await self._fetcher.fetch(url)
        if not filename:
            filename = unquote(urlparse(url).path.rsplit("/", 1)[-1]) or "remote-image"
        return await self.ingest(
            data,
            filename,
            AssetMetadata(alt_text=alt_text),
            actor=actor,
            action=ActivityAction.MEDIA_IMPORT,
        )

    async def _record_upload(
        self, asset: MediaAsset, *, actor: str, action: ActivityAction
    ) -> None:
        await self._record(
            action,
            f"Uploaded {asset.filename}",
            actor=actor,
            details={"asset_id": str(asset.asset_id), "variants": sorted(asset.variants)},
        )

    async def _record(
        self,
        action: ActivityAction,
        description: str,
        *,
        actor: str,
        details: dict[str, Any],
    ) -> None:
        if self._activity is not None:
            await self._activity.record(action, description, actor=actor, details=details)
