from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class EntitySentiment:
    entity: str
    sentiment: int


@dataclass
class StorySentiment:
    company_id: str
    story_date: datetime
    entity_sentiments: list[EntitySentiment] = field(default_factory=list)
    id: int | None = None

    @property
    def total(self) -> int:
        return sum(e.sentiment for e in self.entity_sentiments)
