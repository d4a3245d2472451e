"""Asynchronous external link checker built on httpx."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional

import httpx

from draftlint import __version__
from draftlint.errors import LinkCheckError
from draftlint.observability.logging import get_logger, log_link_retry

logger = get_logger("draftlint.links")

_FALLBACK_TO_GET = {405, 501}
_RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class LinkStatus(Enum):
    OK = "ok"
    BROKEN = "broken"
    UNREACHABLE = "unreachable"
    SKIPPED = "skipped"


@dataclass
class LinkCheckResult:
    url: str
    status: LinkStatus
    status_code: Optional[int] = None
    detail: Optional[str] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.status in (LinkStatus.OK, LinkStatus.SKIPPED)


@dataclass
class LinkCheckOptions:
    """Timeouts, retry and concurrency settings for link probes."""

    timeout: float = 10.0
    retry_max_attempts: int = 3
    retry_base_delay: float = 0.5
    retry_max_delay: float = 5.0
    concurrency_limit: int = 8
    user_agent: str = f"draftlint/{__version__}"

    def validate(self) -> None:
        if self.retry_max_attempts < 1:
            raise LinkCheckError("link_retry_max_attempts must be at least 1")
        if self.concurrency_limit < 1:
            raise LinkCheckError("link_concurrency_limit must be at least 1")
        if self.timeout <= 0:
            raise LinkCheckError("link_timeout must be positive")

    def backoff(self, attempt: int) -> float:
        return min(self.retry_base_delay * (2 ** (attempt - 1)), self.retry_max_delay)


class LinkChecker:
    """
    Probe external URLs and classify them.

    ``HEAD`` is tried first; servers answering 405/501 are probed again with
    ``GET``. Client errors are final. Rate limiting, server errors and
    transport failures are retried with exponential backoff.

    Usage::

        async with LinkChecker(options) as checker:
            results = await checker.check_many(urls)
    """

    def __init__(
        self,
        options: Optional[LinkCheckOptions] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.options = options or LinkCheckOptions()
        self.options.validate()
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None
        self._cache: Dict[str, LinkCheckResult] = {}
        self._semaphore: Optional[asyncio.Semaphore] = None

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.options.timeout),
                limits=httpx.Limits(
                    max_keepalive_connections=self.options.concurrency_limit,
                    max_connections=self.options.concurrency_limit,
                ),
                follow_redirects=True,
                headers={"User-Agent": self.options.user_agent},
                transport=self._transport,
            )
        return self._http_client

    def _get_semaphore(self) -> asyncio.Semaphore:
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.options.concurrency_limit)
        return self._semaphore

    async def __aenter__(self) -> "LinkChecker":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def check(self, url: str) -> LinkCheckResult:
        """Check one URL, using the per-checker cache."""
        cached = self._cache.get(url)
        if cached is not None:
            return cached
        if not url.lower().startswith(("http://", "https://")):
            result = LinkCheckResult(url=url, status=LinkStatus.SKIPPED, detail="not an http(s) URL")
        else:
            async with self._get_semaphore():
                result = await self._probe(url)
        self._cache[url] = result
        return result

    async def check_many(self, urls: Iterable[str]) -> Dict[str, LinkCheckResult]:
        unique: List[str] = list(dict.fromkeys(urls))
        results = await asyncio.gather(*(self.check(url) for url in unique))
        return dict(zip(unique, results))

    async def _probe(self, url: str) -> LinkCheckResult:
        client = self._get_http_client()
        attempt = 0
        method = "HEAD"

        while True:
            attempt += 1
            try:
                response = await client.request(method, url)
            except httpx.HTTPError as exc:
                reason = f"{type(exc).__name__}: {exc}"
                if attempt >= self.options.retry_max_attempts:
                    logger.info("Link unreachable after %d attempt(s): %s (%s)", attempt, url, reason)
                    return LinkCheckResult(
                        url=url, status=LinkStatus.UNREACHABLE, detail=reason, attempts=attempt
                    )
                await self._sleep_before_retry(url, attempt, reason)
                continue

            code = response.status_code
            if method == "HEAD" and code in _FALLBACK_TO_GET:
                method = "GET"
                attempt -= 1
                continue
            if code < 400:
                return LinkCheckResult(url=url, status=LinkStatus.OK, status_code=code, attempts=attempt)
            if code in _RETRYABLE_STATUS and attempt < self.options.retry_max_attempts:
                await self._sleep_before_retry(url, attempt, f"HTTP {code}")
                continue
            return LinkCheckResult(
                url=url,
                status=LinkStatus.BROKEN,
                status_code=code,
                detail=response.reason_phrase or None,
                attempts=attempt,
            )

    async def _sleep_before_retry(self, url: str, attempt: int, reason: str) -> None:
        delay = self.options.backoff(attempt)
        log_link_retry(url=url, attempt=attempt, delay=delay, reason=reason)
        await asyncio.sleep(delay)
