"""
Main application file for the article renderer API.

This file initializes the FastAPI application, sets up logging, starts the
shared browser for the lifetime of the process, registers global exception
handlers, and includes the API routers.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from article_renderer.api.routes import bridge_routes, cookie_routes, render_routes
from article_renderer.components.renderer.playwright_manager import PlaywrightManager
from article_renderer.core.bridge import RenderBridge
from article_renderer.core.config import config_manager
from article_renderer.core.exceptions import ArticleRendererError
from article_renderer.core.logger import setup_logging, get_logger

# --- Logging Setup ---
setup_logging(config_manager)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Starts one browser and context for the whole process and exposes a
    `RenderBridge` over it on `app.state.bridge`. Every render opens its own
    page in that context, so renders share cookies but not surfaces.
    """
    manager = PlaywrightManager(config=config_manager)
    async with manager:
        app.state.bridge = RenderBridge.from_playwright(manager, config=config_manager)
        logger.info(f"Render bridge ready (environment: {config_manager.current_environment}).")
        try:
            yield
        finally:
            app.state.bridge = None


# --- FastAPI Application Initialization ---
app = FastAPI(
    title="Article Renderer API",
    description="Renders JavaScript-heavy article pages in a headless browser, strips paywall "
                "overlays, waits for the article body and returns the final HTML. Also manages "
                "the browser's cookie jar.",
    version="0.1.0",
    lifespan=lifespan,
)


# --- Global Exception Handlers ---

@app.exception_handler(ArticleRendererError)
async def article_renderer_exception_handler(request: Request, exc: ArticleRendererError):
    """
    Handles application exceptions that no endpoint translated itself.

    Returns:
        JSONResponse: A standardized JSON error response with HTTP 500.
    """
    logger.error(
        f"ArticleRendererError caught: {exc.__class__.__name__} - {exc.message} "
        f"for request: {request.method} {request.url}",
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": f"An application error occurred: {exc.message}"},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handles request body, path or query validation failures with HTTP 422.
    """
    logger.warning(
        f"RequestValidationError caught for: {request.method} {request.url}. Errors: {exc.errors()}"
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": "Request validation failed", "errors": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """
    Catch-all so that the API always answers with JSON, even for unexpected errors.
    """
    logger.critical(
        f"Generic unhandled exception caught: {exc.__class__.__name__} - {str(exc)} "
        f"for request: {request.method} {request.url}",
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An unexpected server error occurred."},
    )


# --- API Router Inclusion ---
app.include_router(render_routes.router, prefix="/api/v1/render", tags=["Rendering"])
app.include_router(cookie_routes.router, prefix="/api/v1/cookies", tags=["Cookies"])
app.include_router(bridge_routes.router, prefix="/api/v1/bridge", tags=["Bridge"])


# --- Root Endpoint ---
@app.get("/", tags=["General"], summary="API Root Endpoint")
async def read_root():
    """
    Provides basic information about the API.
    """
    return {
        "message": "Welcome to the Article Renderer API",
        "version": app.version,
        "documentation_url": app.docs_url,
        "redoc_url": app.redoc_url,
    }


if __name__ == "__main__":
    import uvicorn

    logger.info("Starting Uvicorn server directly for local development...")
    uvicorn.run(app, host="0.0.0.0", port=8000)
