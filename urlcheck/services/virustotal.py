# services/virustotal.py

from dataclasses import dataclass

import httpx

from urlcheck.core.errors import TransportError

VT_SCAN_PATH = "/url/scan"
VT_REPORT_PATH = "/url/report"
VT_REPORT_COMPLETE = 1


@dataclass(frozen=True)
class ScanReport:
    complete: bool
    positives: int = 0
    total: int = 0


class VirusTotalClient:
    """
    Thin wrapper around the VirusTotal v2 URL endpoints.

    Scanning is asynchronous on VirusTotal's side: a submission only queues the
    URL, and the report endpoint keeps answering "not ready" until the scan has
    finished. Polling is left to the caller.
    """

    def __init__(self, client: httpx.AsyncClient, api_key: str, base_url: str = "https://www.virustotal.com/vtapi/v2"):
        self.client = client
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    async def submit(self, url: str) -> int:
        """Queue url for scanning and return the HTTP status of the submission."""
        try:
            response = await self.client.post(
                f"{self.base_url}{VT_SCAN_PATH}",
                data={"apikey": self.api_key, "url": url},
            )
        except httpx.HTTPError as e:
            raise TransportError.from_exception(e) from e
        return response.status_code

    async def report(self, url: str) -> ScanReport:
        """Fetch the current scan report for url."""
        try:
            response = await self.client.get(
                f"{self.base_url}{VT_REPORT_PATH}",
                params={"apikey": self.api_key, "resource": url},
            )
        except httpx.HTTPError as e:
            raise TransportError.from_exception(e) from e

        # 204 is what VirusTotal answers when the public quota is exhausted
        if response.status_code == 204:
            return ScanReport(complete=False)
        if not response.is_success:
            raise TransportError(f"Report request failed with status code {response.status_code}")
        if not response.content:
            return ScanReport(complete=False)

        data = response.json()
        if data.get("response_code") != VT_REPORT_COMPLETE:
            return ScanReport(complete=False)
        return ScanReport(
            complete=True,
            positives=data.get("positives") or 0,
            total=data.get("total") or 0,
        )
