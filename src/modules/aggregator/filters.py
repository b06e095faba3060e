import re
from dataclasses import dataclass, field

from src.modules.normalizer.schemas import CanonicalItem


@dataclass(frozen=True)
class KeywordRule:
    """Case-insensitive match over selected item fields.

    ``phrases`` match as substrings, ``words`` only as whole words, and
    ``patterns`` are arbitrary regular expressions.
    """

    name: str
    phrases: tuple[str, ...] = ()
    words: tuple[str, ...] = ()
    patterns: tuple[str, ...] = ()
    fields: tuple[str, ...] = ("title", "summary")
    _compiled: tuple[re.Pattern, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        compiled = [re.compile(rf"\b{re.escape(w)}\b", re.IGNORECASE) for w in self.words]
        compiled += [re.compile(p, re.IGNORECASE) for p in self.patterns]
        object.__setattr__(self, "_compiled", tuple(compiled))

    def haystack(self, item: CanonicalItem) -> str:
        return " ".join(str(getattr(item, f, "") or "") for f in self.fields).lower()

    def matches(self, item: CanonicalItem) -> bool:
        text = self.haystack(item)
        if any(phrase in text for phrase in self.phrases):
            return True
        return any(rx.search(text) for rx in self._compiled)


@dataclass(frozen=True)
class ExclusionRule:
    """Reject items matching ``match`` unless they also match ``unless``."""

    match: KeywordRule
    unless: KeywordRule | None = None

    @property
    def name(self) -> str:
        if self.unless is None:
            return self.match.name
        return f"{self.match.name}-unless-{self.unless.name}"

    def rejects(self, item: CanonicalItem) -> bool:
        if not self.match.matches(item):
            return False
        return self.unless is None or not self.unless.matches(item)


CORPORATE_HR = KeywordRule(
    name="corporate-hr",
    phrases=(
        "appoint", "joins as", "join as", "chief executive", "chief financial",
        "chief operating", "president", "board of directors", "director of",
        "promoted", "promotion", "hires", "hired", "obituary", "sponsored",
        "q&a:", "q & a", "anniversary", "milestone", "in memoriam",
    ),
    words=("ceo", "cfo", "coo", "vp"),
    fields=("title",),
)

EXPLICIT_CONTENT = KeywordRule(
    name="explicit",
    phrases=(
        "sexual", "voyeur", "sex offender", "sex-related", "sex related", "porn",
        "explicit", "luring", "child exploit", "rape", "indecent",
        "inappropriate touching", "grooming", "in camera in washroom",
    ),
)

TRAFFIC = KeywordRule(
    name="traffic",
    phrases=(
        "traffic advisory", "traffic alert", "traffic delays", "traffic update",
        "road closure", "lane closure", "lane reduction", "detour", "bridge closure",
        "bridge repairs", "roadwork", "road work", "paving", "maintenance work",
        "closed to traffic", "reduced to one lane",
    ),
    patterns=(r"\b(closure|closed|detour)\b.*\b(hwy|highway|route|trunk|ns-\d+)\b",),
)

CAPE_BRETON = KeywordRule(
    name="cape-breton",
    phrases=(
        "cape breton", "cbrm", "sydney", "glace bay", "north sydney", "sydney mines",
        "new waterford", "louisbourg", "baddeck", "eskasoni", "membertou",
        "ingonish", "whycocomagh", "port hawkesbury", "inverness", "mabou",
        "st. peter", "arichat", "isle madame",
    ),
    fields=("title", "summary", "link"),
)

NEWS_EXCLUSIONS: tuple[ExclusionRule, ...] = (
    ExclusionRule(CORPORATE_HR),
    ExclusionRule(EXPLICIT_CONTENT),
    ExclusionRule(TRAFFIC, unless=CAPE_BRETON),
)
