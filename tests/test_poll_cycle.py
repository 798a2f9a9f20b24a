"""
Tests for the poll cycle controller.
"""

from datetime import timedelta
from unittest.mock import Mock

import pytest

from stacker_alert.components.interest_matcher import InterestMatcher
from stacker_alert.components.poll_cycle import PollCycleController
from stacker_alert.components.record_extractor import PageExtractor, RecordExtractor
from stacker_alert.models.config import DEFAULT_ITEM_SELECTOR
from stacker_alert.models.criteria import CriteriaSet, PollWindow
from stacker_alert.utils.error_handling import (
    ErrorCategory,
    FetchError,
    PageParseError,
)


@pytest.fixture
def fetcher():
    return Mock()


@pytest.fixture
def notifier():
    return Mock()


@pytest.fixture
def make_controller(fetcher, notifier, fixed_now):
    def factory(criteria=None):
        criteria = criteria or CriteriaSet.from_lists(authors=["alice"])
        return PollCycleController(
            fetcher=fetcher,
            page_extractor=PageExtractor(DEFAULT_ITEM_SELECTOR),
            record_extractor=RecordExtractor(),
            matcher=InterestMatcher(criteria),
            notifier=notifier,
            clock=lambda: fixed_now,
        )

    return factory


def notified_titles(notifier):
    return [call.args[0].title for call in notifier.notify.call_args_list]


@pytest.mark.integration
class TestPollCycleController:
    """Test cases for PollCycleController."""

    def test_initial_window_surfaces_backlog(
        self,
        make_controller,
        fetcher,
        notifier,
        fragment_factory,
        page_factory,
        fixed_now,
    ):
        fetcher.fetch.return_value = page_factory(
            fragment_factory(
                title="Recent", published=fixed_now - timedelta(minutes=10)
            ),
            fragment_factory(
                title="Older", published=fixed_now - timedelta(minutes=299)
            ),
            fragment_factory(
                title="Too old", published=fixed_now - timedelta(minutes=301)
            ),
        )

        report = make_controller().run_cycle(PollWindow.initial())

        assert notified_titles(notifier) == ["Recent", "Older"]
        assert report.fragments == 3
        assert report.notified == 2
        assert report.skipped_stale == 1
        assert report.window_minutes == 300

    def test_steady_window_boundary(
        self,
        make_controller,
        fetcher,
        notifier,
        fragment_factory,
        page_factory,
        fixed_now,
    ):
        fetcher.fetch.return_value = page_factory(
            fragment_factory(title="Fresh", published=fixed_now - timedelta(minutes=4)),
            fragment_factory(title="Edge", published=fixed_now - timedelta(minutes=5)),
        )

        report = make_controller().run_cycle(PollWindow.steady(5))

        assert notified_titles(notifier) == ["Fresh"]
        assert report.skipped_stale == 1

    def test_non_matching_listing_is_rejected(
        self,
        make_controller,
        fetcher,
        notifier,
        fragment_factory,
        page_factory,
        fixed_now,
    ):
        fetcher.fetch.return_value = page_factory(
            fragment_factory(author="bob", published=fixed_now - timedelta(minutes=1))
        )

        report = make_controller().run_cycle(PollWindow.steady(5))

        notifier.notify.assert_not_called()
        assert report.rejected == 1

    def test_muted_listing_is_not_notified(
        self,
        make_controller,
        fetcher,
        notifier,
        fragment_factory,
        page_factory,
        fixed_now,
    ):
        fetcher.fetch.return_value = page_factory(
            fragment_factory(
                title="Shitcoin giveaway", published=fixed_now - timedelta(minutes=1)
            )
        )
        criteria = CriteriaSet.from_lists(authors=["alice"], muted=["shitcoin"])

        make_controller(criteria).run_cycle(PollWindow.steady(5))

        notifier.notify.assert_not_called()

    def test_listing_without_timestamp_is_skipped(
        self,
        make_controller,
        fetcher,
        notifier,
        fragment_factory,
        page_factory,
        fixed_now,
    ):
        fetcher.fetch.return_value = page_factory(
            fragment_factory(title="No time"),
            fragment_factory(title="Bad time", raw_timestamp="2024-02-30T25:00:00Z"),
            fragment_factory(title="Good", published=fixed_now - timedelta(minutes=1)),
        )
        controller = make_controller()

        report = controller.run_cycle(PollWindow.steady(5))

        assert notified_titles(notifier) == ["Good"]
        assert report.skipped_no_timestamp == 2

    def test_skipped_listing_is_recorded(
        self, make_controller, fetcher, fragment_factory, page_factory, monkeypatch
    ):
        tracker = Mock()
        monkeypatch.setattr(
            "stacker_alert.components.poll_cycle.get_error_tracker", lambda: tracker
        )
        fetcher.fetch.return_value = page_factory(fragment_factory(title="No time"))

        make_controller().run_cycle(PollWindow.steady(5))

        tracker.record_error.assert_called_once()
        assert (
            tracker.record_error.call_args.kwargs["category"]
            == ErrorCategory.EXTRACTION
        )

    def test_overlapping_windows_notify_again(
        self,
        make_controller,
        fetcher,
        notifier,
        fragment_factory,
        page_factory,
        fixed_now,
    ):
        fetcher.fetch.return_value = page_factory(
            fragment_factory(title="Again", published=fixed_now - timedelta(minutes=1))
        )
        controller = make_controller()

        controller.run_cycle(PollWindow.initial())
        controller.run_cycle(PollWindow.steady(5))

        assert notified_titles(notifier) == ["Again", "Again"]

    def test_last_checked_is_updated(
        self, make_controller, fetcher, page_factory, fixed_now
    ):
        fetcher.fetch.return_value = page_factory()
        controller = make_controller()

        report = controller.run_cycle(PollWindow.steady(5))

        assert controller.last_checked == fixed_now
        assert report.fragments == 0

    def test_fetch_error_propagates(self, make_controller, fetcher, notifier):
        fetcher.fetch.side_effect = FetchError("Error: status code 503", 503)
        controller = make_controller()

        with pytest.raises(FetchError):
            controller.run_cycle(PollWindow.steady(5))

        notifier.notify.assert_not_called()
        assert controller.last_checked is None

    def test_parse_error_propagates(self, fetcher, notifier, fixed_now):
        fetcher.fetch.return_value = "<html></html>"
        page_extractor = Mock()
        page_extractor.extract_fragments.side_effect = PageParseError("broken")
        controller = PollCycleController(
            fetcher,
            page_extractor,
            RecordExtractor(),
            InterestMatcher(CriteriaSet.from_lists(authors=["alice"])),
            notifier,
            clock=lambda: fixed_now,
        )

        with pytest.raises(PageParseError):
            controller.run_cycle(PollWindow.steady(5))

    def test_page_without_listing_marker(
        self, make_controller, fetcher, notifier, fixed_now
    ):
        fetcher.fetch.return_value = (
            '<html><body><div class="other">@<!-- -->alice<span> </span>'
            f'<a title="{fixed_now.isoformat()}">now</a></div></body></html>'
        )

        report = make_controller().run_cycle(PollWindow.initial())

        assert report.fragments == 0
        notifier.notify.assert_not_called()

    def test_stale_listing_never_reaches_matcher(
        self, fetcher, notifier, fragment_factory, page_factory, fixed_now
    ):
        fetcher.fetch.return_value = page_factory(
            fragment_factory(title="hi", published=fixed_now - timedelta(minutes=10))
        )
        matcher = Mock()
        controller = PollCycleController(
            fetcher,
            PageExtractor(DEFAULT_ITEM_SELECTOR),
            RecordExtractor(),
            matcher,
            notifier,
            clock=lambda: fixed_now,
        )

        controller.run_cycle(PollWindow.steady(5))

        matcher.is_match.assert_not_called()
        notifier.notify.assert_not_called()
