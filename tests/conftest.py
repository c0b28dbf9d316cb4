import asyncio
from urllib.parse import parse_qs

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from urlcheck.api.routes import get_orchestrator
from urlcheck.core.cache import TTLCache
from urlcheck.services.batch import BatchOrchestrator
from urlcheck.services.redirects import RedirectResolver
from urlcheck.services.scanner import SafetyScanner
from urlcheck.services.virustotal import VirusTotalClient

DAY = 24 * 60 * 60


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeVirusTotal:
    """Scripted VirusTotal v2 URL API.

    Every URL is clean unless listed in ``positives``. A report becomes
    complete after ``pending_polls[url]`` not-ready answers; URLs in
    ``never_ready`` never complete.
    """

    def __init__(self):
        self.positives = {}
        self.total = 70
        self.pending_polls = {}
        self.never_ready = set()
        self.submit_status = 200
        self.report_status = 200
        self.error = None
        self.submissions = []
        self.reports = []

    def handler(self, request):
        if self.error is not None:
            raise self.error("connection to scanner failed", request=request)

        if request.url.path.endswith("/url/scan"):
            form = parse_qs(request.content.decode())
            assert form["apikey"] == ["test-key"]
            self.submissions.append(form["url"][0])
            return httpx.Response(self.submit_status, json={"response_code": 1})

        assert request.url.params["apikey"] == "test-key"
        url = request.url.params["resource"]
        self.reports.append(url)
        if self.report_status != 200:
            return httpx.Response(self.report_status)
        seen = self.reports.count(url)
        if url in self.never_ready or seen <= self.pending_polls.get(url, 0):
            return httpx.Response(200, json={"response_code": -2, "verbose_msg": "Scan request queued"})
        return httpx.Response(200, json={
            "response_code": 1,
            "positives": self.positives.get(url, 0),
            "total": self.total,
        })


class FakeWeb:
    """Target servers keyed by (host, path). Unknown URLs answer 200."""

    def __init__(self):
        self.routes = {}
        self.delays = {}
        self.failing = set()
        self.requests = []

    @staticmethod
    def _key(url):
        url = httpx.URL(url)
        return url.host, url.path or "/"

    def redirect(self, source, target, status=302):
        self.routes[self._key(source)] = (status, target)

    def respond(self, url, status):
        self.routes[self._key(url)] = (status, None)

    def fail(self, url):
        self.failing.add(self._key(url))

    def delay(self, url, seconds):
        self.delays[self._key(url)] = seconds

    async def handler(self, request):
        key = self._key(request.url)
        self.requests.append(str(request.url))
        assert request.extensions.get("timeout") is not None
        if key in self.delays:
            await asyncio.sleep(self.delays[key])
        if key in self.failing:
            raise httpx.ConnectTimeout("timed out", request=request)
        status, location = self.routes.get(key, (200, None))
        headers = {"Location": location} if location else {}
        return httpx.Response(status, headers=headers, text="<html></html>")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TTLCache(ttl=DAY, clock=clock)


@pytest.fixture
def fake_vt():
    return FakeVirusTotal()


@pytest.fixture
def fake_web():
    return FakeWeb()


@pytest_asyncio.fixture
async def scanner(fake_vt, cache):
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_vt.handler), timeout=5) as client:
        yield SafetyScanner(VirusTotalClient(client, "test-key"), cache, poll_attempts=5, poll_interval=0)


@pytest_asyncio.fixture
async def resolver(fake_web, scanner, cache):
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_web.handler), timeout=5) as client:
        yield RedirectResolver(client, scanner, cache, max_hops=3)


@pytest.fixture
def orchestrator(scanner, resolver):
    return BatchOrchestrator(scanner, resolver)


@pytest_asyncio.fixture
async def api_client(orchestrator):
    from main import app

    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()
