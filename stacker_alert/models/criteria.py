"""
Interest criteria and recency window models.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import FrozenSet, Iterable, Optional

# Oversized window for the first cycle so the backlog surfaces at startup
INITIAL_WINDOW_MINUTES = 300


def normalize_terms(terms: Optional[Iterable[str]]) -> FrozenSet[str]:
    """Lower-case and strip terms, dropping blanks.

    Blank criterion strings would otherwise match every field as a substring.
    """
    if not terms:
        return frozenset()

    return frozenset(
        term.strip().lower() for term in terms if term and term.strip()
    )


@dataclass(frozen=True)
class CriteriaSet:
    """Accept, interest and mute terms a listing is evaluated against."""

    accept_authors: FrozenSet[str] = field(default_factory=frozenset)
    interesting_topics: FrozenSet[str] = field(default_factory=frozenset)
    interesting_domains: FrozenSet[str] = field(default_factory=frozenset)
    muted_words: FrozenSet[str] = field(default_factory=frozenset)
    bidirectional: bool = False

    @classmethod
    def from_lists(
        cls,
        authors: Optional[Iterable[str]] = None,
        topics: Optional[Iterable[str]] = None,
        domains: Optional[Iterable[str]] = None,
        muted: Optional[Iterable[str]] = None,
        bidirectional: bool = False,
    ) -> "CriteriaSet":
        """Build a criteria set from raw user-supplied term lists."""
        return cls(
            accept_authors=normalize_terms(authors),
            interesting_topics=normalize_terms(topics),
            interesting_domains=normalize_terms(domains),
            muted_words=normalize_terms(muted),
            bidirectional=bidirectional,
        )

    def has_filters(self) -> bool:
        """True when at least one inclusion category is configured."""
        return bool(
            self.accept_authors or self.interesting_topics or self.interesting_domains
        )

    def validate(self) -> bool:
        """Validate criteria set."""
        if not self.has_filters():
            raise ValueError(
                "At least one of authors, topics or domains must be configured"
            )

        for name in (
            "accept_authors",
            "interesting_topics",
            "interesting_domains",
            "muted_words",
        ):
            for term in getattr(self, name):
                if not isinstance(term, str) or not term.strip():
                    raise ValueError(f"All {name} entries must be non-empty strings")

        return True


@dataclass(frozen=True)
class PollWindow:
    """How recent a listing must be to qualify in a cycle."""

    interval: timedelta

    @classmethod
    def initial(cls) -> "PollWindow":
        return cls(interval=timedelta(minutes=INITIAL_WINDOW_MINUTES))

    @classmethod
    def steady(cls, minutes: int) -> "PollWindow":
        return cls(interval=timedelta(minutes=minutes))

    def includes(self, published_at: datetime, now: datetime) -> bool:
        """Strict comparison: a listing exactly ``interval`` old is excluded."""
        return now - published_at < self.interval
