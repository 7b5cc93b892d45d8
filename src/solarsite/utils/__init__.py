"""Utility modules for SolarSite."""

from solarsite.utils.logconfig import configure_logging
from solarsite.utils.naming import current_ms, normalize_stem, timestamp_prefix

__all__ = [
    "configure_logging",
    "current_ms",
    "normalize_stem",
    "timestamp_prefix",
]
