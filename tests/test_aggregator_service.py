"""Tests for filtering, de-duplication, ranking and capping of merged items."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from src.modules.aggregator.filters import NEWS_EXCLUSIONS
from src.modules.aggregator.schemas import (
    AggregateOptions,
    RelevanceTerm,
    SourceReport,
    SourceResult,
)
from src.modules.aggregator.service import aggregator_service, score_item
from src.modules.feeds.exceptions import AllSourcesFailed
from src.modules.normalizer.schemas import CanonicalItem

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _item(title: str, link: str, hours_old: float = 1, summary: str = "") -> CanonicalItem:
    return CanonicalItem(
        source="Test",
        title=title,
        link=link,
        published_at=NOW - timedelta(hours=hours_old),
        summary=summary,
    )


def _ok(*items: CanonicalItem, name: str = "ok") -> SourceResult:
    report = SourceReport(
        name=name, url=f"https://{name}.example.com/rss", ok=True, item_count=len(items)
    )
    return SourceResult(report=report, items=list(items))


def _failed(name: str = "down") -> SourceResult:
    report = SourceReport(
        name=name, url=f"https://{name}.example.com/rss", ok=False, error="Timeout"
    )
    return SourceResult(report=report)


NEWS_OPTIONS = AggregateOptions(exclusions=NEWS_EXCLUSIONS, max_per_host=4, limit=30)


def test_filters_corporate_and_traffic_items():
    items = [
        _item("CEO named at regional carrier", "https://a.example.com/1"),
        _item("Lane closure on Highway 104 near Antigonish", "https://a.example.com/2"),
        _item("Lane closure in Sydney this weekend", "https://a.example.com/3"),
        _item("Cool weather expected for the long weekend", "https://a.example.com/4"),
    ]

    result = aggregator_service.aggregate([_ok(*items)], NEWS_OPTIONS, NOW)

    titles = {i.title for i in result.items}
    assert titles == {
        "Lane closure in Sydney this weekend",
        "Cool weather expected for the long weekend",
    }


def test_filters_explicit_content_in_title_or_summary():
    items = [
        _item("Man charged with voyeurism", "https://a.example.com/v"),
        _item(
            "Court hears case in Truro",
            "https://a.example.com/c",
            summary="The accused faces a sexual assault charge.",
        ),
        _item("Harbour authority posts record year", "https://a.example.com/h"),
    ]

    result = aggregator_service.aggregate([_ok(*items)], NEWS_OPTIONS, NOW)

    assert [i.title for i in result.items] == ["Harbour authority posts record year"]


def test_hr_rule_reads_title_only():
    item = _item(
        "Carrier expands Moncton terminal",
        "https://a.example.com/t",
        summary="The CEO said hiring will follow.",
    )
    result = aggregator_service.aggregate([_ok(item)], NEWS_OPTIONS, NOW)
    assert [i.title for i in result.items] == ["Carrier expands Moncton terminal"]


def test_appointment_dropped_and_cape_breton_closure_kept():
    items = [
        _item("Appointed as new CEO", "https://a.example.com/ceo"),
        _item("Road closure near Sydney, Cape Breton", "https://a.example.com/road"),
    ]

    result = aggregator_service.aggregate([_ok(*items)], NEWS_OPTIONS, NOW)

    assert [i.title for i in result.items] == ["Road closure near Sydney, Cape Breton"]


def test_dedupes_on_canonical_link_keeping_first():
    first = _item("Original", "https://a.example.com/story?utm_source=fb", hours_old=2)
    dup = _item("Copy", "https://A.example.com/story#comments", hours_old=1)

    result = aggregator_service.aggregate(
        [_ok(first, name="one"), _ok(dup, name="two")], AggregateOptions(), NOW
    )

    assert [i.title for i in result.items] == ["Original"]


def test_unresolvable_links_are_not_merged():
    items = [_item("One", "#"), _item("Two", "#")]
    result = aggregator_service.aggregate([_ok(*items)], AggregateOptions(), NOW)
    assert len(result.items) == 2


def test_caps_items_per_host():
    items = [_item(f"Busy {n}", f"https://busy.example.com/{n}", hours_old=n) for n in range(6)]
    items.append(_item("Quiet", "https://quiet.example.com/1", hours_old=10))

    result = aggregator_service.aggregate([_ok(*items)], NEWS_OPTIONS, NOW)

    busy = [i for i in result.items if "busy" in i.link]
    assert len(busy) == 4
    assert [i.title for i in busy] == ["Busy 0", "Busy 1", "Busy 2", "Busy 3"]
    assert result.items[-1].title == "Quiet"


def test_relevance_outranks_recency():
    relevance = (RelevanceTerm.phrase("halifax", 10),)
    fresh = _item("Freight rates climb", "https://a.example.com/fresh", hours_old=1)
    local = _item("New depot opens in Halifax", "https://a.example.com/local", hours_old=72)

    result = aggregator_service.aggregate(
        [_ok(fresh, local)], AggregateOptions(relevance=relevance), NOW
    )

    assert [i.title for i in result.items] == [
        "New depot opens in Halifax",
        "Freight rates climb",
    ]


def test_newer_item_first_when_scores_equal_recency():
    older = _item("Older", "https://a.example.com/old", hours_old=48)
    newer = _item("Newer", "https://a.example.com/new", hours_old=2)

    result = aggregator_service.aggregate([_ok(older, newer)], AggregateOptions(), NOW)

    assert [i.title for i in result.items] == ["Newer", "Older"]


def test_score_item_components():
    item = _item("Truck stop in Sydney", "https://a.example.com/x", hours_old=0)
    relevance = (
        RelevanceTerm.regex(r"sydney\b", 5),
        RelevanceTerm.regex(r"truck", 3),
        RelevanceTerm.regex(r"halifax", 5),
    )
    assert score_item(item, relevance, NOW) == pytest.approx(8.0)

    future = _item("Scheduled", "https://a.example.com/f", hours_old=-24)
    assert score_item(future, (), NOW) == pytest.approx(0.0)


def test_long_excerpt_text_counts_toward_relevance():
    relevance = (RelevanceTerm.phrase("nova scotia", 10),)
    plain = _item("Freight rates climb", "https://a.example.com/plain", hours_old=1)
    excerpted = _item("Carrier adds routes", "https://a.example.com/ex", hours_old=48).model_copy(
        update={"excerpt_html": "<p>The expansion covers <b>Nova Scotia</b> ports.</p>"}
    )

    assert score_item(excerpted, relevance, NOW) > score_item(plain, relevance, NOW)

    result = aggregator_service.aggregate(
        [_ok(plain, excerpted)], AggregateOptions(relevance=relevance), NOW
    )
    assert [i.title for i in result.items] == ["Carrier adds routes", "Freight rates climb"]


def test_all_sources_failed_raises_with_reports():
    with pytest.raises(AllSourcesFailed) as exc_info:
        aggregator_service.aggregate([_failed("a"), _failed("b")], NEWS_OPTIONS, NOW)

    assert [s.name for s in exc_info.value.sources] == ["a", "b"]


def test_partial_failure_returns_union_of_successes():
    results = [
        _failed("a"),
        _ok(_item("From b", "https://b.example.com/1"), name="b"),
        _failed("c"),
        _ok(_item("From d", "https://d.example.com/1"), name="d"),
        _ok(name="e"),
    ]

    result = aggregator_service.aggregate(results, NEWS_OPTIONS, NOW)

    assert {i.title for i in result.items} == {"From b", "From d"}
    assert result.empty is False
    assert len(result.sources) == 5
    assert sum(1 for s in result.sources if not s.ok) == 2


def test_successful_sources_without_items_are_empty_not_failed():
    result = aggregator_service.aggregate([_ok(name="a"), _ok(name="b")], NEWS_OPTIONS, NOW)
    assert result.items == []
    assert result.empty is True


def test_limit_and_idempotence():
    items = [_item(f"Item {n}", f"https://h{n}.example.com/", hours_old=n) for n in range(8)]
    options = AggregateOptions(limit=3)

    first = aggregator_service.aggregate([_ok(*items)], options, NOW)
    second = aggregator_service.aggregate([_ok(*items)], options, NOW)

    assert [i.title for i in first.items] == ["Item 0", "Item 1", "Item 2"]
    assert [i.model_dump() for i in first.items] == [i.model_dump() for i in second.items]
