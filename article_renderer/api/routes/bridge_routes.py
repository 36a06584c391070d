"""
Method-call endpoint.

`POST /api/v1/bridge/{method}` forwards a JSON object of arguments to
`RenderBridge.handle()`, giving HTTP hosts the same call surface an embedded
host gets. Render failures keep the bridge's error codes (`TIMEOUT`,
`LOAD_ERROR`) in the response detail.
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status

from article_renderer.api.dependencies import get_render_bridge
from article_renderer.api.models import BridgeCallResponse
from article_renderer.core.bridge import RenderBridge
from article_renderer.core.exceptions import MethodNotImplementedError, PageLoadError, RenderTimeoutError

router = APIRouter()


@router.post(
    "/{method}",
    response_model=BridgeCallResponse,
    summary="Invoke a bridge method by name",
)
async def bridge_call_endpoint(
    method: str,
    arguments: Optional[Dict[str, Any]] = Body(default=None),
    bridge: RenderBridge = Depends(get_render_bridge),
):
    try:
        result = await bridge.handle(method, arguments or {})
    except MethodNotImplementedError as e:
        raise HTTPException(
            status_code=status.HTTP_501_NOT_IMPLEMENTED,
            detail={"code": "NOT_IMPLEMENTED", "message": e.message, "methods": bridge.methods},
        )
    except RenderTimeoutError as e:
        raise HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail={"code": e.code, "message": e.message})
    except PageLoadError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail={"code": e.code, "message": e.description})
    return BridgeCallResponse(method=method, result=result)
