"""Interest matcher deciding which listings are worth an alert."""

import logging
from dataclasses import dataclass, field
from typing import FrozenSet, List

from ..models.criteria import CriteriaSet
from ..models.listing import ListingRecord

logger = logging.getLogger(__name__)


@dataclass
class MatchResult:
    """Outcome of evaluating one listing against the criteria."""

    included: bool
    muted: bool
    reasons: List[str] = field(default_factory=list)

    @property
    def is_match(self) -> bool:
        return self.included and not self.muted


class TermMatcher:
    """Case-insensitive exact and substring matching against a term set."""

    def __init__(self, terms: FrozenSet[str]):
        """Terms are expected to be lower-cased and stripped already."""
        self.terms = terms

    def first_exact(self, text: str) -> str:
        """Return the term equal to ``text``, or empty string."""
        if not self.terms or not text:
            return ""

        lowered = text.lower()
        return lowered if lowered in self.terms else ""

    def first_substring(self, text: str, bidirectional: bool = False) -> str:
        """
        Return the first term found inside ``text``.

        With ``bidirectional`` a term that contains ``text`` also counts.
        """
        if not self.terms or not text:
            return ""

        lowered = text.lower()
        for term in sorted(self.terms):
            if term in lowered:
                return term
            if bidirectional and lowered in term:
                return term

        return ""


class InterestMatcher:
    """Applies accept, interest and mute criteria to listings."""

    def __init__(self, criteria: CriteriaSet):
        """Initialize interest matcher with criteria."""
        self.criteria = criteria
        self.authors = TermMatcher(criteria.accept_authors)
        self.topics = TermMatcher(criteria.interesting_topics)
        self.domains = TermMatcher(criteria.interesting_domains)
        self.muted = TermMatcher(criteria.muted_words)

        logger.info(
            f"InterestMatcher initialized with {len(criteria.accept_authors)} authors, "
            f"{len(criteria.interesting_topics)} topics, "
            f"{len(criteria.interesting_domains)} domains, "
            f"{len(criteria.muted_words)} muted words "
            f"(bidirectional={criteria.bidirectional})"
        )

    def is_match(self, record: ListingRecord) -> bool:
        """True when the listing is included and not muted."""
        return self.explain(record).is_match

    def explain(self, record: ListingRecord) -> MatchResult:
        """Evaluate a listing and report which terms decided the outcome."""
        reasons = []
        bidirectional = self.criteria.bidirectional

        author_hit = self.authors.first_exact(record.author)
        if author_hit:
            reasons.append(f"author:{author_hit}")

        topic_hit = self.topics.first_substring(record.title, bidirectional)
        if topic_hit:
            reasons.append(f"topic:{topic_hit}")

        domain_hit = self.domains.first_substring(record.domain, bidirectional)
        if domain_hit:
            reasons.append(f"domain:{domain_hit}")

        included = bool(reasons)

        # Muting wins over any inclusion
        mute_hits = [
            hit
            for hit in (
                self.muted.first_exact(record.author),
                self.muted.first_substring(record.title),
                self.muted.first_substring(record.domain),
            )
            if hit
        ]
        reasons.extend(f"muted:{hit}" for hit in mute_hits)

        result = MatchResult(included=included, muted=bool(mute_hits), reasons=reasons)
        logger.debug(
            f"Match result for '{record.title}' by {record.author}: "
            f"match={result.is_match}, reasons={reasons}"
        )
        return result
