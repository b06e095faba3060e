from datetime import datetime

from pydantic import BaseModel, Field


class CanonicalItem(BaseModel):
    """One normalized feed entry, the unit carried through aggregation."""

    source: str
    title: str
    link: str  # absolute, or "#" when unresolvable
    published_at: datetime
    image: str = ""  # absolute non-data URL, or "" for no image
    summary: str = ""
    excerpt_html: str = ""

    # Transient ranking inputs, never serialized
    source_weight: float = Field(default=0.0, exclude=True)
    score: float = Field(default=0.0, exclude=True)
