from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

HTML_PREVIEW_LENGTH = 500
HTML_PREVIEW_MARKER = "..."


class SearchRequest(BaseModel):
    """Request body for a search or HTML capture."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    query: Annotated[
        str,
        Field(
            min_length=1,
            description="Search query, sent verbatim (operators such as site: and -term are kept as typed)",
            examples=["climate report 2024 site:gov -opinion", '"machine learning" tutorial (Python OR Julia)'],
        ),
    ]
    limit: Annotated[
        int,
        Field(
            default=10,
            description="Maximum number of results. Zero or negative returns an empty list",
        ),
    ]
    timeout_ms: Annotated[
        int,
        Field(
            default=30000,
            ge=1,
            alias="timeoutMs",
            description="Per-navigation timeout in milliseconds for the headless attempt",
        ),
    ]
    locale: Annotated[
        str,
        Field(
            default="auto",
            description="Result language/region (e.g. en-US, ko-KR) or 'auto' to detect from the host",
            examples=["auto", "en-US", "ko-KR"],
        ),
    ]
    state_file_path: Annotated[
        str | None,
        Field(
            default=None,
            alias="stateFilePath",
            description="Browser state file. None = the deployment's conventional location",
        ),
    ]
    persist_session: Annotated[
        bool,
        Field(
            default=True,
            alias="persistSession",
            description="Save cookies/storage after a successful search",
        ),
    ]
    headless: Annotated[
        bool,
        Field(
            default=True,
            description="Deprecated. Accepted for compatibility; searches always start headless",
        ),
    ]
    get_html: Annotated[
        bool,
        Field(
            default=False,
            alias="getHtml",
            description="Return sanitized page HTML instead of parsed results",
        ),
    ]
    save_html: Annotated[
        bool,
        Field(
            default=False,
            alias="saveHtml",
            description="Write sanitized HTML to disk (HTML capture only)",
        ),
    ]
    html_output_path: Annotated[
        str | None,
        Field(
            default=None,
            alias="htmlOutputPath",
            description="Where to write the HTML. None = timestamped file in the output directory",
        ),
    ]
    save_screenshot: Annotated[
        bool | None,
        Field(
            default=None,
            alias="saveScreenshot",
            description="Capture a full-page screenshot. None = follow saveHtml",
        ),
    ]
    screenshot_path: Annotated[
        str | None,
        Field(
            default=None,
            alias="screenshotPath",
            description="Where to write the screenshot. None = next to the saved HTML",
        ),
    ]


class SearchResult(BaseModel):
    """One organic result, in page-rank order."""

    title: Annotated[str, Field(min_length=1)]
    link: Annotated[str, Field(min_length=1, examples=["https://example.gov/report"])]
    snippet: str = ""


class SearchResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    query: str
    results: list[SearchResult] = Field(default_factory=list)
    warning: Annotated[
        str | None,
        Field(
            default=None,
            description="Set when no saved browser state existed (a visible window may have opened)",
        ),
    ]


class HtmlCaptureSummary(BaseModel):
    """Wire shape of an HTML capture."""

    model_config = ConfigDict(populate_by_name=True)

    query: str
    url: str
    original_html_length: int = Field(alias="originalHtmlLength")
    cleaned_html_length: int = Field(alias="cleanedHtmlLength")
    saved_path: str | None = Field(default=None, alias="savedPath")
    screenshot_path: str | None = Field(default=None, alias="screenshotPath")
    html_preview: str = Field(alias="htmlPreview")
    warning: str | None = None


class HtmlCapture(BaseModel):
    """Full result of an HTML capture, sanitized HTML included."""

    query: str
    url: str
    sanitized_html: str
    raw_html_length: int
    sanitized_html_length: int
    saved_path: str | None = None
    screenshot_path: str | None = None

    def preview(self, length: int = HTML_PREVIEW_LENGTH) -> str:
        """First ``length`` characters, plus a marker when truncated."""
        if len(self.sanitized_html) > length:
            return self.sanitized_html[:length] + HTML_PREVIEW_MARKER
        return self.sanitized_html

    def summary(self, preview_length: int = HTML_PREVIEW_LENGTH) -> HtmlCaptureSummary:
        return HtmlCaptureSummary(
            query=self.query,
            url=self.url,
            original_html_length=self.raw_html_length,
            cleaned_html_length=self.sanitized_html_length,
            saved_path=self.saved_path,
            screenshot_path=self.screenshot_path,
            html_preview=self.preview(preview_length),
        )


class ErrorDetail(BaseModel):
    kind: str
    message: str


class ErrorResponse(BaseModel):
    error: ErrorDetail
