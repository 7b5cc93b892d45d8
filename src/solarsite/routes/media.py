"""Media library endpoints: upload, list, update/replace, delete, stock search and import."""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    File,
    Form,
    HTTPException,
    Query,
    UploadFile,
)
from fastapi.responses import JSONResponse

from solarsite.auth import require_admin
from solarsite.clients.stock_photos import StockPhotoClient
from solarsite.config import Settings
from solarsite.media import AssetMetadata, IngestionError, MediaIngestionService
from solarsite.models import MediaAsset
from solarsite.routes.deps import get_media_service, get_settings, get_stock_photos
from solarsite.schemas import DeleteResult, MediaAssetOut, RemoteImportRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/media", tags=["media"], dependencies=[Depends(require_admin)])


def _out(asset: MediaAsset) -> MediaAssetOut:
    return MediaAssetOut.model_validate(asset)


def _failure(error: str, exc: IngestionError) -> JSONResponse:
    """500 payload that still exposes the ERROR record for inspection."""
    return JSONResponse(
        status_code=500,
        content={
            "error": error,
            "details": str(exc),
            "asset": _out(exc.asset).model_dump(mode="json") if exc.asset else None,
        },
    )


async def _read_upload(file: UploadFile, settings: Settings) -> bytes:
    data = await file.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File exceeds the {settings.max_upload_bytes} byte upload limit",
        )
    return data


@router.post("", response_model=MediaAssetOut)
async def upload_media(
    background_tasks: BackgroundTasks,
    file: UploadFile | None = File(default=None),
    alt_text: str | None = Form(default=None),
    title: str | None = Form(default=None),
    caption: str | None = Form(default=None),
    description: str | None = Form(default=None),
    defer: bool = Query(default=False, description="Return immediately and process later"),
    actor: str = Depends(require_admin),
    service: MediaIngestionService = Depends(get_media_service),
    settings: Settings = Depends(get_settings),
):
    """Upload a new image.

    Synchronous by default: responds with the READY record, or 500 with the
    ERROR record. With ``defer=true`` responds 202 with the PROCESSING record
    and finishes in a background task; poll GET /api/media/{id} for the outcome.
    """
    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded")
    data = await _read_upload(file, settings)
    if not data:
        raise HTTPException(status_code=400, detail="No file uploaded")

    filename = file.filename or "upload"
    logger.info("Media upload: %s (%s, %d bytes)", filename, file.content_type, len(data))
    metadata = AssetMetadata(alt_text=alt_text, title=title, caption=caption, description=description)

    if defer:
        asset = await service.begin(filename, metadata)
        background_tasks.add_task(
            service.process_in_background, asset.asset_id, data, filename, actor=actor
        )
        return JSONResponse(status_code=202, content=_out(asset).model_dump(mode="json"))

    try:
        asset = await service.ingest(data, filename, metadata, actor=actor)
    except IngestionError as e:
        return _failure("Upload failed", e)
    return _out(asset)


@router.get("", response_model=list[MediaAssetOut])
async def list_media(
    service: MediaIngestionService = Depends(get_media_service),
) -> list[MediaAssetOut]:
    """All assets, most recent first."""
    return [_out(asset) for asset in await service.list_assets()]


@router.get("/search")
async def search_stock_photos(
    query: str = Query(default="solar energy", min_length=1),
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=1, le=30),
    stock_photos: StockPhotoClient = Depends(get_stock_photos),
) -> dict[str, Any]:
    """Search Unsplash for photos to import; the provider's payload is returned as is.

    Pick a result and POST its image URL to /api/media/import to add it.
    """
    return await stock_photos.search(query, page=page, per_page=per_page)


@router.post("/import", response_model=MediaAssetOut)
async def import_media(
    body: RemoteImportRequest,
    actor: str = Depends(require_admin),
    service: MediaIngestionService = Depends(get_media_service),
):
    """Download an image from a URL and ingest it like an upload."""
    try:
        asset = await service.import_from_url(
            body.url, body.filename, body.alt_text, actor=actor
        )
    except IngestionError as e:
        return _failure("Import failed", e)
    return _out(asset)


@router.get("/{asset_id}", response_model=MediaAssetOut)
async def get_media(
    asset_id: UUID,
    service: MediaIngestionService = Depends(get_media_service),
) -> MediaAssetOut:
    return _out(await service.get(asset_id))


@router.put("/{asset_id}", response_model=MediaAssetOut)
async def update_media(
    asset_id: UUID,
    file: UploadFile | None = File(default=None),
    alt_text: str | None = Form(default=None),
    title: str | None = Form(default=None),
    caption: str | None = Form(default=None),
    description: str | None = Form(default=None),
    actor: str = Depends(require_admin),
    service: MediaIngestionService = Depends(get_media_service),
    settings: Settings = Depends(get_settings),
):
    """Update metadata, and replace the image when a file is included."""
    metadata = AssetMetadata(alt_text=alt_text, title=title, caption=caption, description=description)

    if file is None:
        return _out(await service.update_metadata(asset_id, metadata, actor=actor))

    data = await _read_upload(file, settings)
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    filename = file.filename or "upload"
    logger.info("Media replace: %s with %s (%d bytes)", asset_id, filename, len(data))
    try:
        asset = await service.replace(asset_id, data, filename, metadata, actor=actor)
    except IngestionError as e:
        return _failure("Update failed", e)
    return _out(asset)


@router.delete("/{asset_id}", response_model=DeleteResult)
async def delete_media(
    asset_id: UUID,
    actor: str = Depends(require_admin),
    service: MediaIngestionService = Depends(get_media_service),
) -> DeleteResult:
    """Delete the asset's files (best-effort) and its record."""
    report = await service.remove(asset_id, actor=actor)
    return DeleteResult(success=True, cleanup=report.as_dict())
