import logging
from typing import List

import httpx

from urlcheck.api.schemas import RedirectResult, RedirectStatus, SafetyResult, SafetyStatus
from urlcheck.core.cache import REDIRECT_CACHE_PREFIX, TTLCache
from urlcheck.core.errors import TransportError
from urlcheck.services.scanner import SafetyScanner
from urlcheck.utils.url_utils import get_headers, is_redirect, resolve_location


class RedirectResolver:
    """Follow a URL's redirect chain one hop at a time and scan where it ends up."""

    def __init__(self, client: httpx.AsyncClient, scanner: SafetyScanner, cache: TTLCache, max_hops: int = 3):
        self.client = client
        self.scanner = scanner
        self.cache = cache
        self.max_hops = max_hops

    async def check_redirects(self, url: str) -> RedirectResult:
        cache_key = f"{REDIRECT_CACHE_PREFIX}{url}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached
        return await self.cache.coalesce(cache_key, lambda: self._resolve(url, cache_key))

    async def fetch_hop(self, url: str) -> httpx.Response:
        """GET url without following redirects; the body is never read."""
        request = self.client.build_request("GET", url, headers=get_headers())
        try:
            response = await self.client.send(request, follow_redirects=False, stream=True)
            await response.aclose()
        except httpx.HTTPError as e:
            raise TransportError.from_exception(e) from e
        logging.debug(f"Redirect hop {url} answered {response.status_code}")
        return response

    async def _resolve(self, url: str, cache_key: str) -> RedirectResult:
        chain: List[str] = [url]
        status_codes: List[int] = []

        try:
            response = await self.fetch_hop(url)
            status_codes.append(response.status_code)

            while (
                is_redirect(response.status_code)
                and response.headers.get("location")
                and len(chain) <= self.max_hops
            ):
                next_url = resolve_location(chain[-1], response.headers["location"])
                chain.append(next_url)
                response = await self.fetch_hop(next_url)
                status_codes.append(response.status_code)
        except TransportError as e:
            logging.error(f"Redirect check failed for {url} after {len(chain)} hop(s): {e.message}")
            return self._error_result(e.message, chain)
        except Exception as e:
            logging.exception(f"Unexpected error following redirects for {url}")
            return self._error_result(str(e) or e.__class__.__name__, chain)

        logging.info(f"URL: {url}, Redirect chain: {chain}, Status codes: {status_codes}")

        if len(chain) > 1:
            final_safety = await self.scanner.check_safety(chain[-1])
            is_final_malicious = final_safety.status == SafetyStatus.UNSAFE and final_safety.positives > 0
            status = RedirectStatus.SUSPICIOUS if is_final_malicious else RedirectStatus.CLEAN
        else:
            final_safety = SafetyResult(status=SafetyStatus.NO_REDIRECT)
            status = RedirectStatus.CLEAN

        result = RedirectResult(
            status=status,
            redirect_chain=chain,
            status_codes=status_codes,
            final_url_safety=final_safety,
        )
        # a chain whose destination could not be scanned is retried on the next call
        if final_safety.status != SafetyStatus.ERROR:
            self.cache.put(cache_key, result)
        return result

    @staticmethod
    def _error_result(message: str, chain: List[str]) -> RedirectResult:
        return RedirectResult(
            status=RedirectStatus.ERROR,
            message=message,
            redirect_chain=list(chain),
            status_codes=[],
            final_url_safety=SafetyResult(status=SafetyStatus.ERROR),
        )
