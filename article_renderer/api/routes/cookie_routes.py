"""
API routes for the renderer's cookie jar.

These mirror the cookie calls of the bridge with typed request bodies, for
hosts that prefer plain REST over method-name dispatch.
"""
from fastapi import APIRouter, Depends, Query

from article_renderer.api.dependencies import get_render_bridge
from article_renderer.api.models import (
    CookieHeaderResponse,
    CookieWriteResponse,
    ExportCookiesRequest,
    ExportCookiesResponse,
    ImportCookiesRequest,
    SetCookieRequest,
)
from article_renderer.core.bridge import RenderBridge

router = APIRouter()


@router.get("", response_model=CookieHeaderResponse, summary="Cookies sent to a URL")
async def get_cookies_endpoint(url: str = Query(..., min_length=1), bridge: RenderBridge = Depends(get_render_bridge)):
    store = bridge.cookie_store
    header = await store.get(url)
    return CookieHeaderResponse(url=url, cookie_header=header, cookies=store.parse_to_map(header))


@router.post("", response_model=CookieWriteResponse, summary="Store one cookie for a URL")
async def set_cookie_endpoint(request: SetCookieRequest, bridge: RenderBridge = Depends(get_render_bridge)):
    success = await bridge.cookie_store.set(str(request.url), request.cookie)
    return CookieWriteResponse(success=success)


@router.delete("", response_model=CookieWriteResponse, summary="Remove every cookie")
async def clear_cookies_endpoint(bridge: RenderBridge = Depends(get_render_bridge)):
    return CookieWriteResponse(success=await bridge.cookie_store.clear_all())


@router.post("/export", response_model=ExportCookiesResponse, summary="Export cookies per domain")
async def export_cookies_endpoint(request: ExportCookiesRequest, bridge: RenderBridge = Depends(get_render_bridge)):
    return ExportCookiesResponse(cookies=await bridge.cookie_store.export_for_domains(request.domains))


@router.post("/import", response_model=CookieWriteResponse, summary="Import cookies per domain")
async def import_cookies_endpoint(request: ImportCookiesRequest, bridge: RenderBridge = Depends(get_render_bridge)):
    await bridge.cookie_store.import_for_domains(request.cookies)
    return CookieWriteResponse(success=True)
