"""
Media (cover image) link verification with bounded concurrency.

Distinct URLs are probed in fixed-size batches: every probe of a batch
resolves before the next batch starts, with a short pause in between so
the media host sees at most ``concurrency`` requests at a time.
"""

import asyncio
from typing import Awaitable, Callable, Iterable

import httpx

from catalog_etl.core.models import CleanRecord
from catalog_etl.observability.logger import get_logger
from catalog_etl.observability.metrics import media_probes_total

logger = get_logger(__name__)

DEFAULT_CONCURRENCY = 10
DEFAULT_TIMEOUT_SECONDS = 5.0
DEFAULT_BATCH_DELAY_SECONDS = 0.1

ProbeFn = Callable[[str], Awaitable[bool]]


class MediaLinkVerifier:
    """
    Sets ``media_verified`` on records whose media URL serves an image.

    A URL is verified iff a HEAD request (redirects followed) answers 2xx
    with a Content-Type starting with ``image/``. Each probe, redirects
    included, is cut off after ``timeout`` seconds. Timeouts, transport
    errors and non-image responses count as unverified and never raise.
    """

    def __init__(
        self,
        concurrency: int = DEFAULT_CONCURRENCY,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        batch_delay: float = DEFAULT_BATCH_DELAY_SECONDS,
        probe: ProbeFn | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the verifier.

        Args:
            concurrency: Probes per batch
            timeout: Per-probe timeout in seconds, covering redirects and slow servers
            batch_delay: Pause between batches in seconds
            probe: Replacement probe coroutine (url -> verified); bypasses HTTP
            transport: httpx transport for the default probe (tests use MockTransport)
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")

        self.concurrency = concurrency
        self.timeout = timeout
        self.batch_delay = batch_delay
        self.probe = probe
        self.transport = transport

    def verify(self, records: Iterable[CleanRecord]) -> list[CleanRecord]:
        """
        Verify media links for a batch of records.

        Args:
            records: Enriched records

        Returns:
            Copies of the records, in input order, with media_verified set
        """
        return asyncio.run(self.verify_async(records))

    async def verify_async(self, records: Iterable[CleanRecord]) -> list[CleanRecord]:
        records = list(records)
        urls = list(dict.fromkeys(r.media_url for r in records if r.media_url))

        results = await self.probe_urls(urls)

        # Records without a media URL are never verified
        return [
            record.model_copy(update={"media_verified": results.get(record.media_url, False)})
            for record in records
        ]

    async def probe_urls(self, urls: list[str]) -> dict[str, bool]:
        """
        Probe distinct URLs in batches of ``concurrency``.

        Returns:
            url -> verified
        """
        results: dict[str, bool] = {}
        if not urls:
            return results

        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self.transport,
        ) as client:
            probe = self.probe or (lambda url: self._head(client, url))

            for start in range(0, len(urls), self.concurrency):
                if start:
                    await asyncio.sleep(self.batch_delay)

                batch = urls[start:start + self.concurrency]
                outcomes = await asyncio.gather(
                    *(self._safe_probe(probe, url) for url in batch)
                )
                results.update(zip(batch, outcomes))

        verified = sum(1 for ok in results.values() if ok)
        logger.info(
            "Media links probed",
            extra={"urls": len(results), "verified": verified, "unverified": len(results) - verified},
        )
        return results

    async def _safe_probe(self, probe: ProbeFn, url: str) -> bool:
        try:
            ok = bool(await asyncio.wait_for(probe(url), self.timeout))
        except Exception as e:
            logger.debug("Media probe failed", extra={"url": url, "error": str(e)})
            ok = False

        media_probes_total.labels(result="verified" if ok else "rejected").inc()
        return ok

    async def _head(self, client: httpx.AsyncClient, url: str) -> bool:
        response = await client.head(url)
        content_type = response.headers.get("content-type", "")
        return response.is_success and content_type.lower().startswith("image/")
