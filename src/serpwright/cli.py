"""
Command line entry point.

Prints a SearchResponse (or, with --get-html, an HTML capture summary) as
JSON on stdout. Logs go to stderr. Exit status is 1 on any engine error.
"""

import argparse
import asyncio
import json
import logging
import sys

from pydantic import ValidationError

from .core.config import settings
from .core.logger import setup_logging
from .schemas.search import SearchRequest
from .services.serp import SearchEngine, SerpException

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="serpwright",
        description="Google search from the command line, with human verification fallback",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  serpwright "climate report 2024 site:gov -opinion" -l 5
  serpwright "rust async runtime" --locale ko-KR
  serpwright "playwright python" --get-html --save-html --html-output ./page.html
        """,
    )
    parser.add_argument("query", help="Search query, sent verbatim")
    parser.add_argument(
        "-l",
        "--limit",
        type=int,
        default=settings.SERP_DEFAULT_LIMIT,
        help="Maximum number of results",
    )
    parser.add_argument(
        "-t",
        "--timeout",
        type=int,
        default=settings.SERP_DEFAULT_TIMEOUT_MS,
        help="Navigation timeout in milliseconds",
    )
    parser.add_argument(
        "--no-headless",
        action="store_true",
        help="Deprecated, ignored. Searches start headless and open a window only for verification",
    )
    parser.add_argument(
        "--state-file",
        default=settings.SERP_STATE_FILE,
        help="Browser state file",
    )
    parser.add_argument(
        "--no-save-state",
        action="store_true",
        help="Do not save browser state after the search",
    )
    parser.add_argument(
        "--locale",
        default=settings.SERP_DEFAULT_LOCALE,
        help="Result locale (e.g. en-US, ko-KR) or 'auto'",
    )
    parser.add_argument("--get-html", action="store_true", help="Print an HTML capture summary instead of results")
    parser.add_argument("--save-html", action="store_true", help="Save the cleaned HTML to disk (with --get-html)")
    parser.add_argument("--html-output", help="HTML output path (default: timestamped file)")
    parser.add_argument("--screenshot", help="Screenshot output path (default: next to the saved HTML)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def request_from_args(args: argparse.Namespace) -> SearchRequest:
    return SearchRequest(
        query=args.query,
        limit=args.limit,
        timeout_ms=args.timeout,
        locale=args.locale,
        state_file_path=args.state_file,
        persist_session=not args.no_save_state,
        headless=not args.no_headless,
        get_html=args.get_html,
        save_html=args.save_html,
        html_output_path=args.html_output,
        save_screenshot=True if args.screenshot else None,
        screenshot_path=args.screenshot,
    )


async def run_search(request: SearchRequest, engine: SearchEngine | None = None) -> dict:
    engine = engine or SearchEngine(settings)

    if request.get_html:
        warning = engine.no_state_warning(request)
        capture = await engine.capture_html(request)
        summary = capture.summary(engine.config.html_capture.preview_length)
        summary.warning = warning
        return summary.model_dump(by_alias=True, exclude_none=True)

    response = await engine.search(request)
    return response.model_dump(exclude_none=True)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging("DEBUG" if args.verbose else None)

    try:
        request = request_from_args(args)
    except ValidationError as e:
        logger.error(f"Invalid arguments: {e}")
        return 1

    try:
        output = asyncio.run(run_search(request))
    except SerpException as e:
        logger.error(f"Search failed: {e}")
        print(json.dumps({"error": e.to_dict()}, ensure_ascii=False, indent=2))
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 1

    print(json.dumps(output, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
