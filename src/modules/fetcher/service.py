import asyncio
import logging
import time

import httpx

from src.config.settings import settings
from src.modules.fetcher.schemas import FetchResult

logger = logging.getLogger(__name__)

FEED_ACCEPT = "application/rss+xml, application/atom+xml, application/xml, text/xml;q=0.9, */*;q=0.8"
HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
JSON_ACCEPT = "application/json"


def _headers(accept: str) -> dict[str, str]:
    return {"User-Agent": settings.user_agent, "Accept": accept}


class FetcherService:
    """Bounded-time HTTP retrieval. One attempt per request, no retries."""

    async def fetch_with_timeout(
        self,
        client: httpx.AsyncClient,
        url: str,
        timeout_ms: int,
        accept: str = FEED_ACCEPT,
    ) -> FetchResult:
        result = FetchResult(url=url)
        timeout = timeout_ms / 1000
        started = time.monotonic()
        try:
            # wait_for cancels the request task, which aborts the connection
            response = await asyncio.wait_for(
                client.get(
                    url,
                    headers=_headers(accept),
                    timeout=timeout,
                    follow_redirects=True,
                ),
                timeout=timeout,
            )
            result.status_code = response.status_code
            if response.is_success:
                result.body = response.text
                result.ok = True
            else:
                result.error = f"HTTP {response.status_code}"
        except (asyncio.TimeoutError, httpx.TimeoutException):
            result.error = "Timeout"
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            result.error = str(exc) or exc.__class__.__name__
        finally:
            result.elapsed_ms = int((time.monotonic() - started) * 1000)

        if not result.ok:
            logger.warning(
                "Fetch failed for %s: %s (%d ms)", url, result.error, result.elapsed_ms
            )
        return result

    async def fetch_json(
        self,
        client: httpx.AsyncClient,
        url: str,
        params: dict[str, str] | None = None,
        timeout_ms: int | None = None,
    ) -> dict:
        """Fetch a credentialed JSON resource. Raises on failure; callers decide."""
        timeout = (timeout_ms or settings.feed_timeout_ms) / 1000
        response = await asyncio.wait_for(
            client.get(
                url,
                params=params,
                headers=_headers(JSON_ACCEPT),
                timeout=timeout,
                follow_redirects=True,
            ),
            timeout=timeout,
        )
        response.raise_for_status()
        return response.json()


fetcher_service = FetcherService()
