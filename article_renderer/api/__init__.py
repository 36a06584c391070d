"""
API sub-package for the article renderer.

Contains the FastAPI application (`api.main`), its routers (`api.routes`),
request/response models and dependencies. Nothing is exported at package
level; import `article_renderer.api.main:app` directly.
"""

__all__ = []
