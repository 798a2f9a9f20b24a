"""
Protocol interfaces for the Stacker Alert system.

This module defines the protocol interfaces that establish system
boundaries and enable dependency injection throughout the application.
"""

from typing import List, Protocol

from .models.alert import FormattedAlert
from .models.delivery import DeliveryResult
from .models.listing import ListingRecord


class IPageFetcher(Protocol):
    """Protocol for fetching the listing page."""

    def fetch(self) -> str:
        """Fetch the page body, raising FetchError on failure."""
        ...


class IPageExtractor(Protocol):
    """Protocol for locating listing fragments in a page."""

    def extract_fragments(self, page_html: str) -> List[str]:
        """Return listing fragment markup in document order."""
        ...


class IRecordExtractor(Protocol):
    """Protocol for turning a fragment into a listing record."""

    def extract(self, fragment_markup: str) -> ListingRecord:
        """Extract a listing record; never raises."""
        ...


class IInterestMatcher(Protocol):
    """Protocol for deciding whether a listing is interesting."""

    def is_match(self, record: ListingRecord) -> bool:
        """Return True when the listing should be notified."""
        ...


class IAlertFormatter(Protocol):
    """Protocol for formatting listing alerts."""

    def format_alert(self, record: ListingRecord) -> FormattedAlert:
        """Format a listing into an alert."""
        ...


class INotificationChannel(Protocol):
    """Protocol for delivering alerts (local audio or encrypted relay)."""

    name: str

    def send(self, alert: FormattedAlert) -> DeliveryResult:
        """Deliver an alert; channel errors are reported, not raised."""
        ...


class INotifier(Protocol):
    """Protocol for notifying about a matched listing."""

    def notify(self, record: ListingRecord) -> DeliveryResult:
        """Render and dispatch an alert for the listing."""
        ...
