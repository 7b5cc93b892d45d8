"""MediaAsset model: one uploaded image and its derived variants."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from solarsite.models.base import Base, JSONType, utcnow
from solarsite.models.enums import AssetStatus


class MediaAsset(Base):
    """An uploaded image tracked through ingestion.

    File fields (filename, canonical_url, width, height, byte_size, variants)
    describe the transcoded canonical file and are only complete once status
    is READY. The user metadata (alt_text, title, caption, description) is
    editable at any time and independent of processing.

    ``variants`` maps a variant name (large, medium, thumbnail) to
    ``{"url": str, "width": int, "height": int}``. Shrink-only variants are
    absent when the source was already narrower than their target.
    """

    __tablename__ = "media_assets"

    asset_id: Mapped[UUID] = mapped_column(primary_key=True)
    source_filename: Mapped[str] = mapped_column(String(255))
    filename: Mapped[str | None] = mapped_column(String(512))
    canonical_url: Mapped[str | None] = mapped_column(String(1024))
    status: Mapped[AssetStatus] = mapped_column(default=AssetStatus.PROCESSING, index=True)
    error_message: Mapped[str | None] = mapped_column(Text)

    width: Mapped[int | None] = mapped_column(Integer)
    height: Mapped[int | None] = mapped_column(Integer)
    byte_size: Mapped[int | None] = mapped_column(Integer)
    mime_type: Mapped[str] = mapped_column(String(64), default="image/webp")
    variants: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)

    alt_text: Mapped[str] = mapped_column(String(1024), default="")
    title: Mapped[str | None] = mapped_column(String(512))
    caption: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    def file_urls(self) -> list[str]:
        """All blob URLs this record references (canonical first)."""
        urls: list[str] = []
        if self.canonical_url:
            urls.append(self.canonical_url)
        for variant in (self.variants or {}).values():
            url = variant.get("url") if isinstance(variant, dict) else None
            if url:
                urls.append(url)
        return urls
