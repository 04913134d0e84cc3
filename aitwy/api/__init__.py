"""API package exports."""

from aitwy.api.auth import router as auth_router
from aitwy.api.middleware import CorrelationIdMiddleware
from aitwy.api.routes import router

__all__ = ["auth_router", "router", "CorrelationIdMiddleware"]
