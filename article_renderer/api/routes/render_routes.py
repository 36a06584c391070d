"""
API routes for rendering pages.

`POST /api/v1/render` runs one page through the render pipeline and returns
the extracted HTML together with the readiness signal, so callers can tell a
confident extraction from a best-effort one.
"""
from fastapi import APIRouter, Depends, HTTPException, status

from article_renderer.api.dependencies import get_render_bridge
from article_renderer.api.models import ReadinessSchema, RenderPageRequest, RenderPageResponse
from article_renderer.core.bridge import RenderBridge
from article_renderer.core.exceptions import (
    MalformedInputError,
    PageLoadError,
    RendererError,
    RenderTimeoutError,
)
from article_renderer.core.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=RenderPageResponse,
    status_code=status.HTTP_200_OK,
    summary="Render a page and extract its HTML",
    description="Loads the URL in a headless browser, removes paywall overlays, waits for the "
                "article body (or a fixed delay when post_load_delay_ms > 0) and returns the final HTML.",
)
async def render_page_endpoint(request: RenderPageRequest, bridge: RenderBridge = Depends(get_render_bridge)):
    """
    Renders a single page.

    Raises:
        HTTPException:
            - 504 Gateway Timeout: The render exceeded `timeout_ms`.
            - 502 Bad Gateway: The browser reported a load error.
            - 422 Unprocessable Entity: The request could not form a valid render request.
            - 503 Service Unavailable: The browser could not open a page.
    """
    url = str(request.url)
    try:
        result = await bridge.renderer.render_url(
            url,
            timeout_ms=request.timeout_ms,
            post_load_delay_ms=request.post_load_delay_ms,
            user_agent=request.user_agent,
            cookie_header=request.cookie_header,
        )
    except RenderTimeoutError as e:
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail={"code": e.code, "message": e.message},
        )
    except PageLoadError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"code": e.code, "message": e.description},
        )
    except MalformedInputError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message)
    except RendererError as e:
        logger.error(f"Renderer unavailable for {url}: {e.message}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Rendering component failed for URL {url}. Error: {e.message}",
        )

    readiness = None
    if result.report is not None:
        readiness = ReadinessSchema(
            has_content=result.report.has_content,
            paragraph_count=result.report.paragraph_count,
            total_text_length=result.report.total_text_length,
        )
    return RenderPageResponse(
        url=result.url,
        html=result.html,
        content_ready=result.content_ready,
        mode=result.mode,
        poll_attempts=result.poll_attempts,
        readiness=readiness,
    )
