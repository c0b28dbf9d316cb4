import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from urlcheck.api.schemas import SafetyResult
from urlcheck.core.cache import SAFETY_CACHE_PREFIX, TTLCache
from urlcheck.core.errors import IncompleteScanError, TransportError
from urlcheck.services.virustotal import ScanReport, VirusTotalClient


class ScanState(str, Enum):
    PENDING = "pending"
    SUBMITTED = "submitted"
    POLLING = "polling"
    COMPLETED = "completed"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


@dataclass
class ScanJob:
    """Progress of one submit/poll cycle for a single URL."""
    url: str
    state: ScanState = ScanState.PENDING
    attempts: int = 0
    report: Optional[ScanReport] = None

    def advance(self, state: ScanState) -> None:
        logging.debug(f"Scan of {self.url}: {self.state.value} -> {state.value}")
        self.state = state


class SafetyScanner:
    """Safety verdicts from VirusTotal, cached for the cache's TTL.

    Only completed scans are cached. Submission failures, transport errors and
    exhausted polling produce an error result that is returned but not stored,
    so the next call for the same URL starts a fresh cycle.
    """

    def __init__(self, vt_client: VirusTotalClient, cache: TTLCache, poll_attempts: int = 5, poll_interval: float = 1.0,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self.vt_client = vt_client
        self.cache = cache
        self.poll_attempts = poll_attempts
        self.poll_interval = poll_interval
        self._sleep = sleep

    async def check_safety(self, url: str) -> SafetyResult:
        cache_key = f"{SAFETY_CACHE_PREFIX}{url}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached
        return await self.cache.coalesce(cache_key, lambda: self._scan(url, cache_key))

    async def _scan(self, url: str, cache_key: str) -> SafetyResult:
        job = ScanJob(url=url)
        result = await self.run(job)
        if job.state == ScanState.COMPLETED:
            self.cache.put(cache_key, result)
        return result

    async def run(self, job: ScanJob) -> SafetyResult:
        """Drive job from submission to a final state and turn that state into a verdict."""
        try:
            status_code = await self.vt_client.submit(job.url)
            if not 200 <= status_code < 300:
                job.advance(ScanState.FAILED)
                logging.warning(f"VirusTotal rejected submission of {job.url}: {status_code}")
                return SafetyResult.error(f"API error: {status_code}")
            job.advance(ScanState.SUBMITTED)

            report = await self._poll(job)
        except IncompleteScanError as e:
            logging.warning(f"No scan report for {job.url} after {job.attempts} attempts")
            return SafetyResult.error(e.message)
        except TransportError as e:
            job.advance(ScanState.FAILED)
            logging.error(f"VirusTotal request failed for {job.url}: {e.message}")
            return SafetyResult.error(e.message)
        except Exception as e:
            job.advance(ScanState.FAILED)
            logging.exception(f"Unexpected error scanning {job.url}")
            return SafetyResult.error(str(e) or e.__class__.__name__)

        result = SafetyResult.from_report(report.positives, report.total)
        logging.info(f"Scan for {job.url}: {result.status.value} ({report.positives}/{report.total})")
        return result

    async def _poll(self, job: ScanJob) -> ScanReport:
        """Poll for the report with a constant delay between attempts."""
        job.advance(ScanState.POLLING)
        while job.state == ScanState.POLLING:
            job.attempts += 1
            report = await self.vt_client.report(job.url)
            if report.complete:
                job.report = report
                job.advance(ScanState.COMPLETED)
            elif job.attempts >= self.poll_attempts:
                job.advance(ScanState.EXHAUSTED)
                raise IncompleteScanError()
            else:
                logging.debug(f"Report for {job.url} not ready (attempt {job.attempts}/{self.poll_attempts})")
                await self._sleep(self.poll_interval)
        return job.report
