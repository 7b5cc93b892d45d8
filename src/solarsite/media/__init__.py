"""Media asset ingestion.

Main entry point:
    from solarsite.media import MediaIngestionService

    service = MediaIngestionService(db, BlobStore(settings.upload_dir), settings)
    asset = await service.ingest(image_bytes, "panel.jpg")

Building blocks:
    from solarsite.media import BlobStore, VARIANT_PLAN, transcode
"""

from solarsite.media.blob_store import BlobStore, CleanupReport
from solarsite.media.errors import (
    AssetNotFoundError,
    BlobExistsError,
    BlobWriteError,
    ImageDecodeError,
    ImageEncodeError,
    IngestionError,
    MediaError,
)
from solarsite.media.orchestrator import AssetMetadata, MediaIngestionService
from solarsite.media.repository import MediaAssetRepository
from solarsite.media.transcoder import TranscodedImage, TranscodeSpec, probe, transcode
from solarsite.media.variants import VARIANT_PLAN, VariantSpec, plan_variants

__all__ = [
    "VARIANT_PLAN",
    "AssetMetadata",
    "AssetNotFoundError",
    "BlobStore",
    "BlobExistsError",
    "BlobWriteError",
    "CleanupReport",
    "ImageDecodeError",
    "ImageEncodeError",
    "IngestionError",
    "MediaAssetRepository",
    "MediaError",
    "MediaIngestionService",
    "TranscodeSpec",
    "TranscodedImage",
    "VariantSpec",
    "plan_variants",
    "probe",
    "transcode",
]
