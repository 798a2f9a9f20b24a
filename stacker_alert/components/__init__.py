"""
Core components for the Stacker Alert system.

This module contains the components that fetch the listing page, extract
and match listings, and format and deliver alerts.
"""

from .alert_formatter import AlertFormatter
from .interest_matcher import InterestMatcher, MatchResult
from .notification_channels import (
    AudioAlertChannel,
    NostrRelayChannel,
    NotificationChannelFactory,
)
from .notifier import Notifier
from .page_fetcher import PageFetcher
from .poll_cycle import CycleReport, PollCycleController
from .record_extractor import PageExtractor, RecordExtractor

__all__ = [
    "AlertFormatter",
    "AudioAlertChannel",
    "CycleReport",
    "InterestMatcher",
    "MatchResult",
    "NostrRelayChannel",
    "NotificationChannelFactory",
    "Notifier",
    "PageExtractor",
    "PageFetcher",
    "PollCycleController",
    "RecordExtractor",
]
