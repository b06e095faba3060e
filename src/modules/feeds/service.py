import asyncio
import logging
from datetime import datetime, timezone

import httpx

from src.config.feeds import FeedSource
from src.config.settings import settings
from src.modules.aggregator.schemas import (
    AggregateOptions,
    AggregateResult,
    SourceReport,
    SourceResult,
)
from src.modules.aggregator.service import aggregator_service
from src.modules.feeds.profiles import FeedProfile
from src.modules.fetcher.service import fetcher_service
from src.modules.images.service import image_resolver_service
from src.modules.normalizer.schemas import CanonicalItem
from src.modules.normalizer.service import normalizer_service
from src.modules.normalizer.urls import host_of
from src.modules.parser.service import feed_parser_service

logger = logging.getLogger(__name__)


class FeedService:
    """Runs one request-scoped pipeline: fan-out fetch, parse, normalize, aggregate."""

    # ── Per-source pipeline ─────────────────────────────────────

    async def _collect(
        self,
        client: httpx.AsyncClient,
        source: FeedSource,
        profile: FeedProfile,
        now: datetime,
    ) -> SourceResult:
        report = SourceReport(name=source.name, url=source.url, ok=False)
        try:
            fetched = await fetcher_service.fetch_with_timeout(
                client, source.url, settings.feed_timeout_ms
            )
            report.status = fetched.status_code
            report.duration_ms = fetched.elapsed_ms
            if not fetched.ok:
                report.error = fetched.error
                return SourceResult(report=report)

            feed = feed_parser_service.parse(fetched.body, source.url)
            if feed.format is None:
                report.error = "Unrecognised feed format"
                return SourceResult(report=report)

            label = feed.title or source.name or host_of(source.url)
            items: list[CanonicalItem] = []
            for entry in feed.entries:
                if len(items) >= profile.per_feed:
                    break
                item = normalizer_service.normalize(
                    entry,
                    label,
                    now,
                    placeholder_title=profile.placeholder_title,
                    long_excerpt=profile.long_excerpt,
                    source_weight=source.weight,
                )
                if item is not None:
                    items.append(item)
        except Exception as exc:
            logger.exception("Source %s failed", source.url)
            report.error = str(exc) or exc.__class__.__name__
            return SourceResult(report=report)

        report.ok = True
        report.item_count = len(items)
        return SourceResult(report=report, weight=source.weight, items=items)

    # ── Orchestration ───────────────────────────────────────────

    async def run(
        self,
        profile: FeedProfile,
        limit: int | None = None,
        client: httpx.AsyncClient | None = None,
        now: datetime | None = None,
    ) -> AggregateResult:
        if client is None:
            async with httpx.AsyncClient() as own_client:
                return await self.run(profile, limit, own_client, now)

        now = now or datetime.now(timezone.utc)
        logger.info("Running %s pipeline over %d sources", profile.name, len(profile.sources))

        results = await asyncio.gather(
            *(self._collect(client, source, profile, now) for source in profile.sources)
        )

        options = AggregateOptions(
            exclusions=profile.exclusions,
            relevance=profile.relevance,
            max_per_host=profile.max_per_host,
            limit=profile.clamp_limit(limit),
        )
        result = aggregator_service.aggregate(list(results), options, now)

        if profile.enrich_images and result.items:
            items = await image_resolver_service.enrich(
                result.items, client, long_excerpt=profile.long_excerpt
            )
            result = result.model_copy(update={"items": items})

        logger.info(
            "%s pipeline complete: %d items from %d/%d sources",
            profile.name,
            len(result.items),
            sum(1 for s in result.sources if s.ok),
            len(result.sources),
        )
        return result


feed_service = FeedService()
