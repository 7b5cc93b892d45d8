"""Request-scoped accessors for objects built once by the app factory."""

from __future__ import annotations

from fastapi import Request

from solarsite.clients.stock_photos import StockPhotoClient
from solarsite.config import Settings
from solarsite.media import MediaIngestionService
from solarsite.services.activity import ActivityLogger


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_media_service(request: Request) -> MediaIngestionService:
    return request.app.state.media_service


def get_activity_logger(request: Request) -> ActivityLogger:
    return request.app.state.activity


def get_stock_photos(request: Request) -> StockPhotoClient:
    return request.app.state.stock_photos
