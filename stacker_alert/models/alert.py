"""
Alert formatting models.
"""

from dataclasses import dataclass

from .listing import ListingRecord


@dataclass
class FormattedAlert:
    """Alert rendered for the console and for messaging channels."""

    console_text: str
    plain_text: str
    record: ListingRecord

    def validate(self) -> bool:
        """Validate formatted alert data."""
        if not isinstance(self.console_text, str) or not self.console_text.strip():
            raise ValueError("console_text cannot be empty")

        if not isinstance(self.plain_text, str) or not self.plain_text.strip():
            raise ValueError("plain_text cannot be empty")

        return True
