"""
Alert formatting component for the Stacker Alert system.

This module renders a matched listing as a coloured console block and as the
plain-text payload sent over messaging channels.
"""

from ..interfaces import IAlertFormatter
from ..models.alert import FormattedAlert
from ..models.listing import ListingRecord

GRAY = "\x1b[37m"
CYAN = "\x1b[36m"
MAGENTA = "\x1b[38;5;198m"
YELLOW = "\x1b[38;5;220m"
RESET = "\x1b[0m"


def colorize(text: str, color: str) -> str:
    return f"{color}{text}{RESET}"


class AlertFormatter(IAlertFormatter):
    """Formats listings into alerts for the console and messaging channels."""

    def __init__(self, base_url: str, time_format: str = "%Y-%m-%d %H:%M"):
        """
        Initialize the alert formatter.

        Args:
            base_url: Site base URL that listing paths are joined onto
            time_format: strftime format for the local publication time
        """
        self.base_url = base_url.rstrip("/")
        self.time_format = time_format

    def format_alert(self, record: ListingRecord) -> FormattedAlert:
        """
        Format a listing into an alert.

        Args:
            record: The matched listing

        Returns:
            FormattedAlert: Alert ready for delivery
        """
        alert = FormattedAlert(
            console_text=self._create_console_text(record),
            plain_text=self._create_plain_text(record),
            record=record,
        )

        alert.validate()
        return alert

    def _create_console_text(self, record: ListingRecord) -> str:
        local_time = record.local_time(self.time_format)
        lines = [
            colorize(record.author, MAGENTA) + " - " + colorize(local_time, GRAY),
            colorize(record.title, CYAN),
        ]

        if record.domain:
            lines.append(record.domain)

        lines.append(colorize(record.absolute_url(self.base_url), YELLOW))
        lines.append("")

        return "\n".join(lines)

    def _create_plain_text(self, record: ListingRecord) -> str:
        """Payload for messaging channels; a blank line precedes the link."""
        note = f"{record.author} - {record.local_time(self.time_format)}\n"
        note += f"{record.title}\n"

        if record.domain:
            note += f"{record.domain}\n"

        note += f"\n{record.absolute_url(self.base_url)}"
        return note
