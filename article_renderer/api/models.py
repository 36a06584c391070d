from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, HttpUrl

# --- Request Models ---

class RenderPageRequest(BaseModel):
    """
    Request model for rendering a single page.
    Omitted timing fields fall back to `components.renderer.*` defaults.
    """
    url: HttpUrl
    timeout_ms: Optional[int] = Field(default=None, gt=0)
    post_load_delay_ms: Optional[int] = Field(default=None, ge=0)
    user_agent: Optional[str] = None
    cookie_header: Optional[str] = None


class SetCookieRequest(BaseModel):
    url: HttpUrl
    cookie: str = Field(min_length=1)


class ExportCookiesRequest(BaseModel):
    domains: List[str]


class ImportCookiesRequest(BaseModel):
    """Cookies keyed by domain, then by cookie name."""
    cookies: Dict[str, Dict[str, str]]


# --- Response Models ---

class ReadinessSchema(BaseModel):
    has_content: bool
    paragraph_count: int
    total_text_length: int


class RenderPageResponse(BaseModel):
    """
    Response model for a rendered page.

    `content_ready` is False when polling gave up (or the fixed-delay snapshot
    looked thin) and the HTML is a best-effort extraction.
    """
    url: str
    html: Optional[str] = None
    content_ready: bool
    mode: str
    poll_attempts: int
    readiness: Optional[ReadinessSchema] = None


class CookieHeaderResponse(BaseModel):
    url: str
    cookie_header: Optional[str] = None
    cookies: Dict[str, str] = {}


class CookieWriteResponse(BaseModel):
    success: bool


class ExportCookiesResponse(BaseModel):
    cookies: Dict[str, Dict[str, str]]


class BridgeCallResponse(BaseModel):
    method: str
    result: Any = None
