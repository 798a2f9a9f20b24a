"""
Notifier that surfaces matched listings to the operator.
"""

import logging
from typing import Callable, Optional

from ..interfaces import IAlertFormatter, INotificationChannel
from ..models.delivery import DeliveryResult
from ..models.listing import ListingRecord

logger = logging.getLogger(__name__)


class Notifier:
    """Prints each alert and dispatches it through the notification channel."""

    def __init__(
        self,
        formatter: IAlertFormatter,
        channel: INotificationChannel,
        fallback_channel: Optional[INotificationChannel] = None,
        output: Callable[[str], None] = print,
    ):
        """
        Initialize notifier.

        Args:
            formatter: Renders listings into alerts
            channel: Primary notification channel
            fallback_channel: Played when the primary channel fails to deliver
            output: Sink for the console rendering
        """
        self.formatter = formatter
        self.channel = channel
        self.fallback_channel = fallback_channel
        self.output = output

        self.delivered_count = 0
        self.failed_count = 0

    def notify(self, record: ListingRecord) -> DeliveryResult:
        """
        Print and deliver an alert for one listing.

        Args:
            record: The matched listing

        Returns:
            DeliveryResult of the primary channel, or of the fallback if used
        """
        alert = self.formatter.format_alert(record)
        self.output(alert.console_text)

        result = self.channel.send(alert)
        if not result.success:
            logger.warning(
                f"{self.channel.name} delivery failed for '{record.title}': "
                f"{result.error_message}"
            )
            if self.fallback_channel is not None:
                result = self.fallback_channel.send(alert)

        if result.success:
            self.delivered_count += 1
        else:
            self.failed_count += 1

        return result
