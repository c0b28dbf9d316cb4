from urllib.parse import SplitResult, urlsplit

from urlcheck.api.schemas import (
    RedirectResult, RedirectStatus, SafetyResult, SafetyStatus,
    StructureResult, StructureStatus, UrlCheckResult
)
from urlcheck.core.errors import InvalidUrlError

INVALID_URL_MESSAGE = "Invalid URL"


def parse_url(url: str) -> SplitResult:
    """Parse an absolute URL, raising InvalidUrlError when scheme or host is missing."""
    if not isinstance(url, str):
        raise InvalidUrlError(repr(url))
    try:
        parsed = urlsplit(url)
        hostname = parsed.hostname
    except ValueError as e:
        # e.g. an unbalanced IPv6 bracket or a bad port
        raise InvalidUrlError(url) from e
    if not parsed.scheme or not hostname:
        raise InvalidUrlError(url)
    return parsed


def validate_url_structure(url: str) -> StructureResult:
    """Classify a candidate URL as structurally valid or invalid. No I/O."""
    try:
        parsed = parse_url(url)
    except InvalidUrlError as e:
        return StructureResult(status=StructureStatus.INVALID, message=e.message)
    return StructureResult(status=StructureStatus.VALID, domain=parsed.hostname)


def invalid_url_result(url: str, structure: StructureResult) -> UrlCheckResult:
    """Complete result for a URL that failed validation, built without any network call."""
    return UrlCheckResult(
        url=url,
        structure=structure,
        safety=SafetyResult(status=SafetyStatus.ERROR, message=INVALID_URL_MESSAGE),
        redirects=RedirectResult(
            status=RedirectStatus.ERROR,
            message=INVALID_URL_MESSAGE,
            redirect_chain=[url],
            status_codes=[],
            final_url_safety=SafetyResult(status=SafetyStatus.INVALID),
        ),
    )
