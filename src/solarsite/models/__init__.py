"""Database models for SolarSite."""

from solarsite.models.activity_log import ActivityLog
from solarsite.models.base import Base
from solarsite.models.enums import ActivityAction, AssetStatus, FitPolicy
from solarsite.models.media_asset import MediaAsset

__all__ = [
    "ActivityAction",
    "ActivityLog",
    "AssetStatus",
    "Base",
    "FitPolicy",
    "MediaAsset",
]
