"""Pydantic schemas for the HTTP API."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from solarsite.models.enums import AssetStatus


class VariantOut(BaseModel):
    """One stored variant of an asset."""

    url: str
    width: int
    height: int


class MediaAssetOut(BaseModel):
    """A media asset as returned by the API.

    File fields are null while the asset is processing or after an error.
    """

    model_config = ConfigDict(from_attributes=True)

    asset_id: UUID
    status: AssetStatus
    error_message: str | None = None
    source_filename: str
    filename: str | None = None
    canonical_url: str | None = None
    width: int | None = None
    height: int | None = None
    byte_size: int | None = None
    mime_type: str
    variants: dict[str, VariantOut] = Field(default_factory=dict)
    alt_text: str = ""
    title: str | None = None
    caption: str | None = None
    description: str | None = None
    created_at: datetime
    updated_at: datetime


class RemoteImportRequest(BaseModel):
    """Body of POST /api/media/import."""

    url: str = Field(description="http(s) URL of the image to download")
    filename: str | None = Field(
        default=None, description="Display name; defaults to the URL's last path segment"
    )
    alt_text: str | None = None


class DeleteResult(BaseModel):
    success: bool = True
    cleanup: dict[str, Any]


class ActivityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    activity_id: UUID
    action: str
    description: str
    actor: str
    details: dict[str, Any]
    created_at: datetime
