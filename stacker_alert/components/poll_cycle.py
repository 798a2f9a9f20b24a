"""
Poll cycle controller for the Stacker Alert system.

One cycle fetches the listing page, walks every listing fragment in document
order, and notifies about listings that are recent enough and match the
criteria. Recency is the only notion of "already seen": a listing that stays
inside overlapping windows is notified again on the next cycle.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from ..interfaces import (
    IInterestMatcher,
    INotifier,
    IPageExtractor,
    IPageFetcher,
    IRecordExtractor,
)
from ..models.criteria import PollWindow
from ..utils.error_handling import ErrorCategory, ErrorSeverity, get_error_tracker

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CycleReport:
    """Counters for one poll cycle."""

    started_at: datetime
    window_minutes: float
    fragments: int = 0
    skipped_no_timestamp: int = 0
    skipped_stale: int = 0
    rejected: int = 0
    notified: int = 0


class PollCycleController:
    """Runs fetch, extract, filter and notify for one cycle."""

    def __init__(
        self,
        fetcher: IPageFetcher,
        page_extractor: IPageExtractor,
        record_extractor: IRecordExtractor,
        matcher: IInterestMatcher,
        notifier: INotifier,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.fetcher = fetcher
        self.page_extractor = page_extractor
        self.record_extractor = record_extractor
        self.matcher = matcher
        self.notifier = notifier
        self.clock = clock

        self.last_checked: Optional[datetime] = None

    def run_cycle(self, window: PollWindow) -> CycleReport:
        """
        Run one poll cycle.

        Args:
            window: Recency window for this cycle

        Returns:
            CycleReport with per-stage counts

        Raises:
            FetchError: If the page cannot be fetched
            PageParseError: If the page cannot be parsed
        """
        now = self.clock()
        report = CycleReport(
            started_at=now, window_minutes=window.interval.total_seconds() / 60
        )

        page_html = self.fetcher.fetch()
        fragments = self.page_extractor.extract_fragments(page_html)
        report.fragments = len(fragments)

        for index, fragment in enumerate(fragments):
            record = self.record_extractor.extract(fragment)

            if not record.has_timestamp():
                report.skipped_no_timestamp += 1
                get_error_tracker().record_error(
                    component="poll.cycle",
                    category=ErrorCategory.EXTRACTION,
                    severity=ErrorSeverity.LOW,
                    message=f"Skipping listing without a parseable timestamp: "
                    f"'{record.title}'",
                    context={"fragment_index": index},
                )
                continue

            if not window.includes(record.published_at, now):
                report.skipped_stale += 1
                continue

            if not self.matcher.is_match(record):
                report.rejected += 1
                continue

            self.notifier.notify(record)
            report.notified += 1

        self.last_checked = now

        logger.info(
            f"Cycle finished: {report.fragments} listings, {report.notified} notified, "
            f"{report.skipped_stale} outside {report.window_minutes:g}m window, "
            f"{report.rejected} not matching, "
            f"{report.skipped_no_timestamp} without timestamp"
        )
        return report
