"""Documentation and blog data models."""

import math
from dataclasses import dataclass, field
from enum import Enum

WORDS_PER_MINUTE = 200


class Stability(str, Enum):
    """Maturity badge shown next to a document."""

    STABLE = "stable"
    IN_DEVELOPMENT = "in-dev"
    EXPERIMENTAL = "experimental"

    @classmethod
    def parse(cls, value: object) -> "Stability":
        """Map a front-matter value to a level; unknown values are experimental."""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower().replace("_", "-")
        if text in ("stable",):
            return cls.STABLE
        if text in ("in-dev", "in-development", "indevelopment", "dev"):
            return cls.IN_DEVELOPMENT
        return cls.EXPERIMENTAL


@dataclass(frozen=True)
class DocumentRecord:
    """A Markdown document with its front-matter metadata."""

    slug: str
    title: str
    excerpt: str
    body_markdown: str
    tags: frozenset[str] = field(default_factory=frozenset)
    stability: Stability = Stability.EXPERIMENTAL
    image: str | None = None
    author: str | None = None
    date: str | None = None

    @property
    def reading_time(self) -> int:
        """Estimated reading time in minutes."""
        words = len(self.body_markdown.split())
        return max(1, math.ceil(words / WORDS_PER_MINUTE))
