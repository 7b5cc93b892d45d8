"""Business logic services for SolarSite."""

from solarsite.services.activity import ActivityLogger

__all__ = ["ActivityLogger"]
