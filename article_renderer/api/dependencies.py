"""
FastAPI dependencies.

The application builds one `RenderBridge` at startup (see `api/main.py`) and
keeps it on `app.state`; endpoints receive it through `get_render_bridge`.
Tests override this dependency with a bridge over fake surfaces.
"""
from fastapi import HTTPException, Request, status

from article_renderer.core.bridge import RenderBridge


def get_render_bridge(request: Request) -> RenderBridge:
    bridge = getattr(request.app.state, "bridge", None)
    if bridge is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Rendering service unavailable: the browser has not been started.",
        )
    return bridge
