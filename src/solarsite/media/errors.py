"""Exceptions raised by the media pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from solarsite.models import MediaAsset


class MediaError(Exception):
    """Base class for media pipeline failures."""


class ImageDecodeError(MediaError):
    """Input bytes are not a decodable raster image."""


class ImageEncodeError(MediaError):
    """The encoder failed to produce output for a decoded image."""


class BlobWriteError(MediaError):
    """A file could not be written to the blob store."""


class BlobExistsError(BlobWriteError):
    """A file with the requested name is already stored; nothing was written."""


class AssetNotFoundError(MediaError):
    """No media asset exists with the requested id."""

    def __init__(self, asset_id: UUID) -> None:
        super().__init__(f"Media asset {asset_id} not found")
        self.asset_id = asset_id


class IngestionError(MediaError):
    """Ingestion failed; ``asset`` is the record left in ERROR state.

    ``asset`` is None when the record was deleted while processing.
    """

    def __init__(self, message: str, asset: MediaAsset | None) -> None:
        super().__init__(message)
        self.asset = asset
