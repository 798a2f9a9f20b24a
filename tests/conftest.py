"""
Pytest configuration and shared fixtures.

This module provides common fixtures for all tests in the Stacker Alert
test suite: listing markup builders, sample records and criteria, and a
fixed clock.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from stacker_alert.models.alert import FormattedAlert
from stacker_alert.models.config import Configuration, NostrIdentity
from stacker_alert.models.criteria import CriteriaSet
from stacker_alert.models.delivery import DeliveryResult
from stacker_alert.models.listing import ListingRecord
from stacker_alert.utils.nostr_crypto import public_key_hex

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

SENDER_KEY = "1" * 64
RECIPIENT_KEY = "2" * 64
RECIPIENT_PUBKEY = public_key_hex(RECIPIENT_KEY)


def render_fragment(
    author="alice",
    title="Bitcoin fees are rising",
    path="/items/123456",
    domain="https://mempool.space/",
    published=None,
    raw_timestamp=None,
):
    """Markup of one listing the way the site renders it."""
    if raw_timestamp is None and published is not None:
        raw_timestamp = published.strftime("%Y-%m-%dT%H:%M:%S.000Z")

    link = ""
    if domain:
        link = (
            f'<a class="item_link__4cz6X" target="_blank" '
            f'rel="noreferrer nofollow noopener" href="{domain}">'
            f"{domain.split('//')[-1].rstrip('/')}</a>"
        )

    title_anchor = ""
    if title:
        title_anchor = (
            f'<a class="item_title__FH7AS text-reset me-2" href="{path}">{title}</a>'
        )

    author_anchor = ""
    if author:
        author_anchor = f'<a href="/{author}">@<!-- -->{author}<span> </span></a>'

    timestamp_anchor = ""
    if raw_timestamp:
        timestamp_anchor = f'<a title="{raw_timestamp}" href="{path}">5m</a>'

    return (
        '<div class="item_hunk__DFX1z">'
        f'<div class="item_main__HIcd3">{title_anchor}{link}</div>'
        '<div class="item_other__MjgP3"><span>21 sats</span> \\ '
        f"{author_anchor} {timestamp_anchor}</div>"
        "</div>"
    )


def render_page(*fragments):
    return (
        "<!DOCTYPE html><html><head><title>recent \\ stacker news</title></head>"
        '<body><div class="container">' + "".join(fragments) + "</div></body></html>"
    )


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def fragment_factory():
    """Build listing fragment markup."""
    return render_fragment


@pytest.fixture
def page_factory():
    """Build a page from listing fragments."""
    return render_page


@pytest.fixture
def sample_record():
    """Create a sample ListingRecord for testing."""
    return ListingRecord(
        author="alice",
        published_at=FIXED_NOW - timedelta(minutes=2),
        title="Bitcoin fees are rising",
        path="/items/123456",
        domain="https://mempool.space/",
    )


@pytest.fixture
def self_post_record():
    """A listing without an external link."""
    return ListingRecord(
        author="bob",
        published_at=FIXED_NOW - timedelta(minutes=1),
        title="Ask SN: favourite lightning wallet?",
        path="/items/654321",
        domain="",
    )


@pytest.fixture
def sample_criteria():
    """Create sample CriteriaSet for testing."""
    return CriteriaSet.from_lists(
        authors=["alice"],
        topics=["lightning"],
        domains=["github.com"],
        muted=["shitcoin"],
    )


@pytest.fixture
def sample_configuration(sample_criteria):
    """Create a sample Configuration for testing."""
    return Configuration(criteria=sample_criteria, interval_minutes=5)


@pytest.fixture
def nostr_identity():
    return NostrIdentity(
        private_key_hex=SENDER_KEY,
        recipient_pubkey_hex=RECIPIENT_PUBKEY,
        relays=("wss://relay.one", "wss://relay.two", "wss://relay.three"),
    )


@pytest.fixture
def sample_formatted_alert(sample_record):
    """Create a sample FormattedAlert for testing."""
    return FormattedAlert(
        console_text="alice - 2024-05-01 12:00\nBitcoin fees are rising\n",
        plain_text="alice - 2024-05-01 12:00\nBitcoin fees are rising\n"
        "https://mempool.space/\n\nhttps://stacker.news/items/123456",
        record=sample_record,
    )


@pytest.fixture
def recording_channel():
    """A notification channel fake that records what it was asked to send."""
    channel = Mock()
    channel.name = "recording"
    channel.sent = []

    def send(alert):
        channel.sent.append(alert)
        return DeliveryResult(
            success=True,
            delivery_time=datetime.now(),
            error_message=None,
            channel="recording",
        )

    channel.send.side_effect = send
    return channel


@pytest.fixture
def sender_key():
    return SENDER_KEY


@pytest.fixture
def recipient_key():
    return RECIPIENT_KEY


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: fast isolated tests")
    config.addinivalue_line(
        "markers", "integration: tests wiring several components together"
    )
