"""API v1 package. Exposes api_router for inclusion under /api/v1."""

from accounts.api.v1.router import api_router

__all__ = ["api_router"]
