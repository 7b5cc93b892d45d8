"""Enumerations for the SolarSite data model."""

from enum import Enum


class AssetStatus(str, Enum):
    """Processing lifecycle of a media asset.

    Assets are created PROCESSING, then end in exactly one of:
    - READY → canonical file and every planned variant are stored
    - ERROR → ingestion failed; error_message says why
    """

    PROCESSING = "processing"
    READY = "ready"
    ERROR = "error"


class FitPolicy(str, Enum):
    """How a variant is resized from the decoded source."""

    ORIGINAL = "original"  # No resize, re-encode only
    SHRINK = "shrink"  # Fit to width, keep aspect ratio, never enlarge
    COVER = "cover"  # Scale and center-crop to fill the exact box


class ActivityAction(str, Enum):
    """Admin actions recorded in the activity log."""

    MEDIA_UPLOAD = "media.upload"
    MEDIA_IMPORT = "media.import"
    MEDIA_REPLACE = "media.replace"
    MEDIA_UPDATE = "media.update"
    MEDIA_DELETE = "media.delete"
