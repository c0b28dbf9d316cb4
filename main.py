import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from urlcheck.api.routes import router
from urlcheck.core.cache import TTLCache
from urlcheck.core.config import settings
from urlcheck.services.batch import BatchOrchestrator
from urlcheck.services.redirects import RedirectResolver
from urlcheck.services.scanner import SafetyScanner
from urlcheck.services.virustotal import VirusTotalClient
from urlcheck.utils.url_utils import get_headers

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s - %(levelname)s - %(message)s")
# httpx logs full request URLs at INFO, and VirusTotal report URLs carry the API key
logging.getLogger("httpx").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not settings.VIRUSTOTAL_API_KEY:
        logging.warning("VIRUSTOTAL_API_KEY is not set; safety checks will fail")

    cache = TTLCache(ttl=settings.CACHE_TTL_SECONDS)
    async with httpx.AsyncClient(timeout=settings.REQUEST_TIMEOUT) as vt_http, \
            httpx.AsyncClient(headers=get_headers(), timeout=settings.REQUEST_TIMEOUT) as web_http:
        scanner = SafetyScanner(
            VirusTotalClient(vt_http, settings.VIRUSTOTAL_API_KEY, settings.VIRUSTOTAL_BASE_URL),
            cache,
            poll_attempts=settings.POLL_ATTEMPTS,
            poll_interval=settings.POLL_INTERVAL,
        )
        resolver = RedirectResolver(web_http, scanner, cache, max_hops=settings.MAX_REDIRECT_HOPS)
        app.state.orchestrator = BatchOrchestrator(scanner, resolver)
        yield


app = FastAPI(title="URL Safety Checker", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
