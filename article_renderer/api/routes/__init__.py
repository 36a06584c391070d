"""
API Routes sub-package for the article renderer.

Aggregates the router modules for inclusion in the FastAPI application
(`api/main.py`).
"""

from .bridge_routes import router as bridge_router
from .cookie_routes import router as cookie_router
from .render_routes import router as render_router

__all__ = [
    "bridge_router",
    "cookie_router",
    "render_router",
]
