from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Entity:
    """Named entity mentioned in the text with its own polarity."""

    name: str
    sentiment: float


@dataclass(frozen=True)
class SentimentResult:
    """
    Standardized sentiment output.

    - text: original input, verbatim
    - score: polarity in [-1, 1]
    - magnitude: emotional intensity in [0, 1]
    - categories: topic tags, never empty
    - top_phrases: at most 5, unique, in insertion order
    - entities: may be empty
    """

    text: str
    score: float
    magnitude: float
    categories: tuple[str, ...]
    top_phrases: tuple[str, ...] = ()
    entities: tuple[Entity, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Wire shape consumed by dashboards and exports (camelCase keys)."""
        return {
            "text": self.text,
            "score": self.score,
            "magnitude": self.magnitude,
            "categories": list(self.categories),
            "topPhrases": list(self.top_phrases),
            "entities": [{"name": e.name, "sentiment": e.sentiment} for e in self.entities],
        }
