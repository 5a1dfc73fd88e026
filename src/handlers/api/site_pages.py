"""Public website pages and redirects from the legacy static site."""

from typing import Any
from urllib.parse import urlencode

import structlog

from cleanstay.services.page_templates import LEGACY_REDIRECTS, render_not_found, render_page
from cleanstay.utils.responses import error, html, redirect

logger = structlog.get_logger()


def handler(event: dict[str, Any], context: Any) -> dict:
    """Serve marketing pages.

    Routes:
        GET /, /airbnb, /cenik, /uklid-domacnosti, /uklid-firem, /gdpr
        GET /{legacy}.html  -> 301 to the routed page
    """
    try:
        http_method = event.get("httpMethod", "").upper()
        path = event.get("path") or "/"

        if http_method not in ("GET", "HEAD"):
            return error("Method not allowed", 405)

        target = LEGACY_REDIRECTS.get(path)
        if target:
            return redirect(target + _query_suffix(event), 301)

        page = render_page(path)
        if page is None:
            logger.info("Page not found", path=path)
            return html(render_not_found(), status_code=404, cache_seconds=60)

        return html(page)

    except Exception as e:
        logger.exception("Site pages handler error", error=str(e))
        return error("Internal server error", 500)


def _query_suffix(event: dict) -> str:
    """Original query string, including repeated parameters."""
    multi = event.get("multiValueQueryStringParameters") or {}
    if multi:
        return "?" + urlencode([(k, v) for k, values in multi.items() for v in values])

    single = event.get("queryStringParameters") or {}
    if single:
        return "?" + urlencode(single)
    return ""
