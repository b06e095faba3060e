import re
from dataclasses import dataclass

from pydantic import BaseModel

from src.modules.aggregator.filters import ExclusionRule
from src.modules.normalizer.schemas import CanonicalItem


@dataclass(frozen=True)
class RelevanceTerm:
    """Adds ``weight`` to an item's score when ``pattern`` occurs in title or summary."""

    pattern: re.Pattern
    weight: float

    @classmethod
    def phrase(cls, text: str, weight: float) -> "RelevanceTerm":
        return cls(re.compile(re.escape(text), re.IGNORECASE), weight)

    @classmethod
    def regex(cls, expr: str, weight: float) -> "RelevanceTerm":
        return cls(re.compile(expr, re.IGNORECASE), weight)


@dataclass(frozen=True)
class AggregateOptions:
    exclusions: tuple[ExclusionRule, ...] = ()
    relevance: tuple[RelevanceTerm, ...] = ()
    max_per_host: int | None = None
    limit: int | None = None


class SourceReport(BaseModel):
    """Per-source outcome, exposed in debug output."""

    name: str
    url: str
    ok: bool
    status: int = 0
    duration_ms: int = 0
    item_count: int = 0
    error: str = ""


class SourceResult(BaseModel):
    report: SourceReport
    weight: float = 0.0
    items: list[CanonicalItem] = []

    @property
    def ok(self) -> bool:
        return self.report.ok


class AggregateResult(BaseModel):
    items: list[CanonicalItem]
    empty: bool = False
    sources: list[SourceReport] = []
