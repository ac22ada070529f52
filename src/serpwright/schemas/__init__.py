from .search import (
    ErrorDetail,
    ErrorResponse,
    HtmlCapture,
    HtmlCaptureSummary,
    SearchRequest,
    SearchResponse,
    SearchResult,
)

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "HtmlCapture",
    "HtmlCaptureSummary",
    "SearchRequest",
    "SearchResponse",
    "SearchResult",
]
