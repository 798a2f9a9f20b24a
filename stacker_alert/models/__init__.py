"""
Data models for the Stacker Alert system.

This module contains the data classes used throughout the application for
representing listings, criteria, configuration and notification results.
"""

from .alert import FormattedAlert
from .config import Configuration, NostrIdentity
from .criteria import CriteriaSet, PollWindow
from .delivery import DeliveryResult
from .listing import ListingRecord

__all__ = [
    "ListingRecord",
    "CriteriaSet",
    "PollWindow",
    "Configuration",
    "NostrIdentity",
    "FormattedAlert",
    "DeliveryResult",
]
