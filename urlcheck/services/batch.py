import asyncio
import logging
from typing import Any, List, Optional

from urlcheck.api.schemas import (
    RedirectResult, RedirectStatus, SafetyResult, SafetyStatus,
    StructureStatus, UrlCheckResult
)
from urlcheck.core.errors import InvalidInputError
from urlcheck.services.redirects import RedirectResolver
from urlcheck.services.scanner import SafetyScanner
from urlcheck.services.validator import invalid_url_result, validate_url_structure


class BatchOrchestrator:
    """Check a list of URLs concurrently, one result per input in input order."""

    def __init__(self, scanner: SafetyScanner, resolver: RedirectResolver):
        self.scanner = scanner
        self.resolver = resolver

    @staticmethod
    def validate_input(urls: Any) -> List[str]:
        if not isinstance(urls, (list, tuple)):
            raise InvalidInputError()
        if not all(isinstance(url, str) for url in urls):
            raise InvalidInputError("Invalid input: URLs must be an array of strings")
        return list(urls)

    async def check_batch(self, urls: Any) -> List[UrlCheckResult]:
        urls = self.validate_input(urls)
        results: List[Optional[UrlCheckResult]] = [None] * len(urls)

        async def fill(index: int, url: str) -> None:
            results[index] = await self.check_url(url)

        logging.info(f"Checking batch of {len(urls)} URL(s)")
        await asyncio.gather(*(fill(index, url) for index, url in enumerate(urls)))
        return results

    async def check_url(self, url: str) -> UrlCheckResult:
        """Validate url, then scan it and follow its redirects side by side."""
        structure = validate_url_structure(url)
        if structure.status == StructureStatus.INVALID:
            logging.info(f"Skipping invalid URL: {url}")
            return invalid_url_result(url, structure)

        try:
            safety, redirects = await asyncio.gather(
                self.scanner.check_safety(url),
                self.resolver.check_redirects(url),
            )
        except Exception as e:
            # both components report their own failures as data; this only guards the batch
            logging.exception(f"Unexpected error checking {url}")
            message = str(e) or e.__class__.__name__
            safety = SafetyResult.error(message)
            redirects = RedirectResult(
                status=RedirectStatus.ERROR,
                message=message,
                redirect_chain=[url],
                status_codes=[],
                final_url_safety=SafetyResult(status=SafetyStatus.ERROR),
            )

        return UrlCheckResult(url=url, structure=structure, safety=safety, redirects=redirects)
