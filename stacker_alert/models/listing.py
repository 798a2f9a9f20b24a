"""
Listing data models for the Stacker Alert system.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional


@dataclass
class ListingRecord:
    """One listing extracted from a page fragment.

    Records are rebuilt on every poll cycle and never persisted.
    """

    author: str
    published_at: Optional[datetime]
    title: str
    path: str
    domain: str

    def has_timestamp(self) -> bool:
        """Return True when the listing carried a parseable timestamp."""
        return self.published_at is not None

    def age(self, now: datetime) -> timedelta:
        """Time elapsed between publication and ``now``."""
        if self.published_at is None:
            raise ValueError("Listing has no publication timestamp")

        return now - self.published_at

    def is_self_post(self) -> bool:
        """Self posts carry no external link."""
        return not self.domain

    def absolute_url(self, base_url: str) -> str:
        """Join the listing path onto the site base URL."""
        return base_url.rstrip("/") + self.path

    def local_time(self, fmt: str = "%Y-%m-%d %H:%M") -> str:
        """Publication time rendered in the local timezone."""
        if self.published_at is None:
            return ""

        return self.published_at.astimezone().strftime(fmt)
