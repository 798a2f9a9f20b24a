"""
Configuration models for the system.
"""

import re
from dataclasses import dataclass, field
from typing import Optional, Tuple
from urllib.parse import urlparse

from .criteria import CriteriaSet

DEFAULT_BASE_URL = "https://stacker.news"
DEFAULT_ITEM_SELECTOR = ".item_hunk__DFX1z"
DEFAULT_RELAYS = (
    "wss://nostr-pub.wellorder.net",
    "wss://nos.lol",
    "wss://relay.damus.io",
)

_HEX_KEY = re.compile(r"^[0-9a-fA-F]{64}$")


@dataclass(frozen=True)
class NostrIdentity:
    """Keys and relays used for encrypted direct-message alerts."""

    private_key_hex: str
    recipient_pubkey_hex: str
    relays: Tuple[str, ...] = DEFAULT_RELAYS

    def validate(self) -> bool:
        """Validate Nostr identity configuration."""
        if not _HEX_KEY.match(self.private_key_hex or ""):
            raise ValueError("Nostr private key must be 64 hexadecimal characters")

        if not _HEX_KEY.match(self.recipient_pubkey_hex or ""):
            raise ValueError("Nostr recipient key must be 64 hexadecimal characters")

        if not self.relays:
            raise ValueError("At least one Nostr relay must be configured")

        for relay in self.relays:
            parsed = urlparse(relay)
            if parsed.scheme not in ("ws", "wss") or not parsed.netloc:
                raise ValueError(f"Relay URL must use ws:// or wss://: {relay}")

        return True


@dataclass
class Configuration:
    """System configuration, built once at startup."""

    criteria: CriteriaSet
    territory: str = ""
    interval_minutes: int = 5
    base_url: str = DEFAULT_BASE_URL
    item_selector: str = DEFAULT_ITEM_SELECTOR
    request_timeout: int = 30
    user_agent: str = "Stacker-Alert/0.1 (listing watcher)"
    nostr: Optional[NostrIdentity] = None
    log_level: str = "INFO"
    log_dir: Optional[str] = field(default=None)

    @property
    def target_url(self) -> str:
        """Page polled each cycle."""
        base = self.base_url.rstrip("/")
        if self.territory:
            return f"{base}/~{self.territory}/recent"
        return f"{base}/recent"

    def validate(self) -> bool:
        """Validate system configuration."""
        parsed_url = urlparse(self.base_url)
        if parsed_url.scheme not in ("http", "https") or not parsed_url.netloc:
            raise ValueError(f"Base URL must use HTTP or HTTPS: {self.base_url}")

        if not isinstance(self.interval_minutes, int) or self.interval_minutes <= 0:
            raise ValueError("Interval must be a positive number of minutes")

        if not self.item_selector or not self.item_selector.strip():
            raise ValueError("Listing item selector cannot be empty")

        if self.request_timeout <= 0:
            raise ValueError("Request timeout must be positive")

        if self.territory and not re.match(r"^[\w-]+$", self.territory):
            raise ValueError(f"Invalid territory name: {self.territory}")

        self.criteria.validate()
        if self.nostr is not None:
            self.nostr.validate()

        return True
