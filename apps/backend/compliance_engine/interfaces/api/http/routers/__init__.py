"""Feature routers mounted by interfaces.api.http.router."""

from .compliance import router as compliance_router

__all__ = ["compliance_router"]
