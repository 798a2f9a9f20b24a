"""
Listing extraction components for the Stacker Alert system.

This module splits a fetched page into listing fragments and pulls the
author, timestamp, title, path and link domain out of each fragment with
pattern matching.
"""

import html
import logging
import re
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup
from dateutil import parser as date_parser

from ..models.listing import ListingRecord
from ..utils.error_handling import PageParseError

logger = logging.getLogger(__name__)


class RecordExtractor:
    """Derives a ListingRecord from the markup of a single listing fragment."""

    # Author handle follows a React text separator comment
    AUTHOR_PATTERN = r"@<!-- -->(\w+)<span>"

    # ISO-8601 instant carried in a title attribute
    TIMESTAMP_PATTERN = r'title="(\d{4}-\d{2}-\d{2}T[^"]*)"'

    TITLE_PATTERN = (
        r'<a[^>]*\bclass="item_title[^"]*"[^>]*\bhref="([^"]+)"[^>]*>([^<]+)</a>'
    )

    # Only present when the listing links offsite
    DOMAIN_PATTERN = (
        r'<a[^>]*\bclass="item_link[^"]*"[^>]*\bhref="([^"]+)"[^>]*>[^<]+</a>'
    )

    def __init__(self):
        """Initialize record extractor."""
        self.author_regex = re.compile(self.AUTHOR_PATTERN)
        self.timestamp_regex = re.compile(self.TIMESTAMP_PATTERN)
        self.title_regex = re.compile(self.TITLE_PATTERN)
        self.domain_regex = re.compile(self.DOMAIN_PATTERN)

    def extract(self, fragment_markup: str) -> ListingRecord:
        """
        Extract a listing record from one fragment.

        Every field falls back to empty (or None for the timestamp) when its
        pattern does not match; this method never raises.

        Args:
            fragment_markup: Outer HTML of one listing fragment

        Returns:
            ListingRecord
        """
        fragment_markup = fragment_markup or ""
        title, path = self.extract_title_and_path(fragment_markup)

        return ListingRecord(
            author=self.extract_author(fragment_markup),
            published_at=self.extract_timestamp(fragment_markup),
            title=title,
            path=path,
            domain=self.extract_domain(fragment_markup),
        )

    def extract_author(self, fragment_markup: str) -> str:
        match = self.author_regex.search(fragment_markup)
        return match.group(1) if match else ""

    def extract_raw_timestamp(self, fragment_markup: str) -> str:
        match = self.timestamp_regex.search(fragment_markup)
        return match.group(1) if match else ""

    def extract_timestamp(self, fragment_markup: str) -> Optional[datetime]:
        """
        Parse the listing timestamp strictly as ISO-8601.

        Returns:
            Timezone-aware datetime, or None if absent or unparseable
        """
        raw = self.extract_raw_timestamp(fragment_markup)
        if not raw:
            return None

        return parse_timestamp(raw)

    def extract_title_and_path(self, fragment_markup: str) -> Tuple[str, str]:
        """
        Returns:
            Tuple of (title, path), both empty if no title anchor is present
        """
        match = self.title_regex.search(fragment_markup)
        if not match:
            return "", ""

        return html.unescape(match.group(2)).strip(), html.unescape(match.group(1))

    def extract_domain(self, fragment_markup: str) -> str:
        match = self.domain_regex.search(fragment_markup)
        return html.unescape(match.group(1)) if match else ""


def parse_timestamp(raw: str) -> Optional[datetime]:
    """Strict ISO-8601 parse; naive values are taken as UTC."""
    try:
        parsed = date_parser.isoparse(raw)
    except (ValueError, OverflowError) as e:
        logger.debug(f"Could not parse timestamp '{raw}': {e}")
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed


class PageExtractor:
    """Locates listing fragments within a fetched page."""

    def __init__(self, item_selector: str, parser: str = "html.parser"):
        """
        Initialize page extractor.

        Args:
            item_selector: CSS selector identifying one listing fragment
            parser: BeautifulSoup tree builder
        """
        self.item_selector = item_selector
        self.parser = parser

    def extract_fragments(self, page_html: str) -> List[str]:
        """
        Return the outer markup of every listing fragment in document order.

        Raises:
            PageParseError: If the page cannot be parsed
        """
        try:
            soup = BeautifulSoup(page_html, self.parser)
            fragments = [str(element) for element in soup.select(self.item_selector)]
        except Exception as e:
            raise PageParseError(f"Could not parse listing page: {e}") from e

        logger.debug(
            f"Found {len(fragments)} listing fragments "
            f"for selector {self.item_selector}"
        )
        return fragments
