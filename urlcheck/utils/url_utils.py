from urllib.parse import urljoin

from urlcheck.core.config import settings


def is_redirect(status_code: int) -> bool:
    """Any 3xx status counts as a redirect hop."""
    return 300 <= status_code < 400


def resolve_location(current_url: str, location: str) -> str:
    """Resolve a Location header (absolute or relative) against the URL that returned it."""
    return urljoin(current_url, location)


def get_headers():
    """Return headers mimicking a browser to avoid bot detection."""
    return {
        "User-Agent": settings.USER_AGENT,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
        "Connection": "keep-alive",
        "Upgrade-Insecure-Requests": "1",
    }
