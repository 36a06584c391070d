"""
Data types shared by the render pipeline.
"""
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

from article_renderer.core.exceptions import ArticleRendererError, MalformedInputError

MODE_POLLING = "polling"
MODE_FIXED_DELAY = "fixed_delay"

STATUS_SUCCESS = "success"
STATUS_TIMEOUT = "timeout"
STATUS_LOAD_ERROR = "load_error"
STATUS_CANCELLED = "cancelled"


@dataclass(frozen=True)
class RenderRequest:
    """
    One page to render. Immutable once a session starts.

    `post_load_delay_ms > 0` selects the fixed-delay pipeline; `0` selects
    readiness polling.
    """
    target_url: str
    timeout_ms: int = 15000
    post_load_delay_ms: int = 0
    user_agent: Optional[str] = None
    cookie_header: Optional[str] = None

    def __post_init__(self):
        if not self.target_url or not self.target_url.strip():
            raise MalformedInputError("Render request has an empty target URL.")
        parts = urlsplit(self.target_url)
        if not parts.scheme or not parts.netloc:
            raise MalformedInputError(f"Render target '{self.target_url}' is not an absolute URL.")
        if self.timeout_ms <= 0:
            raise MalformedInputError(f"Render timeout must be positive, got {self.timeout_ms}ms.")
        if self.post_load_delay_ms < 0:
            raise MalformedInputError(f"Post-load delay cannot be negative, got {self.post_load_delay_ms}ms.")

    @property
    def mode(self) -> str:
        return MODE_FIXED_DELAY if self.post_load_delay_ms > 0 else MODE_POLLING


@dataclass(frozen=True)
class ReadinessReport:
    """Snapshot of how much article text one readiness check found."""
    has_content: bool
    paragraph_count: int
    total_text_length: int

    @classmethod
    def empty(cls) -> 'ReadinessReport':
        return cls(has_content=False, paragraph_count=0, total_text_length=0)


@dataclass(frozen=True)
class RenderOutcome:
    """The value a session's completion latch is closed with."""
    status: str
    html: Optional[str] = None
    error: Optional[ArticleRendererError] = None
    report: Optional[ReadinessReport] = None
    content_ready: Optional[bool] = None

    @property
    def succeeded(self) -> bool:
        return self.status == STATUS_SUCCESS


@dataclass(frozen=True)
class RenderResult:
    """
    A successful render.

    `content_ready` tells a high-confidence extraction (the readiness predicate
    held) from a best-effort one (polling ran out, or the fixed-delay snapshot
    looked thin).
    """
    url: str
    html: Optional[str]
    content_ready: bool
    mode: str
    poll_attempts: int = 0
    report: Optional[ReadinessReport] = None
