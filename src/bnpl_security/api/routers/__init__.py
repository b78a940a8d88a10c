"""API routers."""

from .sca import router as sca_router

__all__ = ["sca_router"]
