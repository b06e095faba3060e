import logging
import math
from collections import Counter
from datetime import datetime, timezone

from src.modules.aggregator.composer import AggregatorComposer
from src.modules.aggregator.schemas import (
    AggregateOptions,
    AggregateResult,
    RelevanceTerm,
    SourceResult,
)
from src.modules.feeds.exceptions import AllSourcesFailed
from src.modules.normalizer.schemas import CanonicalItem
from src.modules.normalizer.urls import canonical_url, host_of
from src.modules.parser.markup import strip_markup

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


def score_item(
    item: CanonicalItem, relevance: tuple[RelevanceTerm, ...], now: datetime
) -> float:
    """Relevance hits plus source weight, minus ln(age_days + 1).

    Hits are counted over the title, the summary and the plain text of the
    long excerpt when one was built.
    """
    haystack = f"{item.title} {item.summary} {strip_markup(item.excerpt_html)}"
    hits = sum(term.weight for term in relevance if term.pattern.search(haystack))
    age_days = max(0.0, (now - item.published_at).total_seconds() / SECONDS_PER_DAY)
    return hits + item.source_weight - math.log(age_days + 1)


class AggregatorService:
    """Merges per-source results into one filtered, ranked, capped list."""

    # ── Steps ───────────────────────────────────────────────────

    @staticmethod
    def _filter(options: AggregateOptions):
        def step(items: list[CanonicalItem]) -> list[CanonicalItem]:
            kept: list[CanonicalItem] = []
            for item in items:
                rule = next((r for r in options.exclusions if r.rejects(item)), None)
                if rule is not None:
                    logger.debug("Filtered (%s): %s", rule.name, item.title)
                    continue
                kept.append(item)
            return kept

        return step

    @staticmethod
    def _dedupe(items: list[CanonicalItem]) -> list[CanonicalItem]:
        seen: set[str] = set()
        unique: list[CanonicalItem] = []
        for item in items:
            # "#" links are unresolvable, not duplicates of each other
            key = canonical_url(item.link) if item.link != "#" else f"#{len(unique)}"
            if key in seen:
                continue
            seen.add(key)
            unique.append(item)
        return unique

    @staticmethod
    def _rank(options: AggregateOptions, now: datetime):
        def step(items: list[CanonicalItem]) -> list[CanonicalItem]:
            scored = [
                item.model_copy(update={"score": score_item(item, options.relevance, now)})
                for item in items
            ]
            return sorted(scored, key=lambda i: (-i.score, -i.published_at.timestamp()))

        return step

    @staticmethod
    def _cap_per_host(max_per_host: int):
        def step(items: list[CanonicalItem]) -> list[CanonicalItem]:
            counts: Counter[str] = Counter()
            capped: list[CanonicalItem] = []
            for item in items:
                host = host_of(item.link)
                if counts[host] >= max_per_host:
                    continue
                counts[host] += 1
                capped.append(item)
            return capped

        return step

    def _build_composer(self, options: AggregateOptions, now: datetime) -> AggregatorComposer:
        composer = AggregatorComposer()
        if options.exclusions:
            composer.add_step("filter", self._filter(options))
        composer.add_step("dedupe", self._dedupe)
        composer.add_step("rank", self._rank(options, now))
        if options.max_per_host:
            composer.add_step("cap_per_host", self._cap_per_host(options.max_per_host))
        if options.limit is not None:
            limit = options.limit
            composer.add_step("limit", lambda items: items[:limit])
        return composer

    # ── Entry point ─────────────────────────────────────────────

    def aggregate(
        self,
        results: list[SourceResult],
        options: AggregateOptions,
        now: datetime | None = None,
    ) -> AggregateResult:
        now = now or datetime.now(timezone.utc)
        reports = [r.report for r in results]
        succeeded = [r for r in results if r.ok]
        if not succeeded:
            raise AllSourcesFailed(
                f"All {len(results)} sources failed", sources=reports
            )
        if len(succeeded) < len(results):
            logger.warning(
                "%d of %d sources failed; continuing with partial results",
                len(results) - len(succeeded), len(results),
            )

        items = [item for r in succeeded for item in r.items]
        items = self._build_composer(options, now).run(items)
        return AggregateResult(items=items, empty=not items, sources=reports)


aggregator_service = AggregatorService()
