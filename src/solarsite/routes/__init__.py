"""HTTP routers for SolarSite."""

from solarsite.routes.admin import router as admin_router
from solarsite.routes.media import router as media_router

__all__ = ["admin_router", "media_router"]
