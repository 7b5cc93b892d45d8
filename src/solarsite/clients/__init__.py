"""Clients for external services."""

from solarsite.clients.remote_images import RemoteFetchError, RemoteImageFetcher
from solarsite.clients.stock_photos import StockPhotoClient, StockPhotoError

__all__ = ["RemoteFetchError", "RemoteImageFetcher", "StockPhotoClient", "StockPhotoError"]
