"""
Tests for the poll scheduler and application orchestrator.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, Mock, patch

import pytest

from stacker_alert.components.notification_channels import (
    AudioAlertChannel,
    NostrRelayChannel,
)
from stacker_alert.components.poll_cycle import CycleReport
from stacker_alert.models.config import Configuration
from stacker_alert.models.criteria import INITIAL_WINDOW_MINUTES
from stacker_alert.orchestrator import (
    ApplicationOrchestrator,
    PollScheduler,
    SchedulerState,
    next_deadline,
)
from stacker_alert.utils.error_handling import FetchError


@pytest.fixture
def controller():
    controller = Mock()
    controller.run_cycle.side_effect = lambda window: CycleReport(
        started_at=datetime.now(timezone.utc),
        window_minutes=window.interval.total_seconds() / 60,
    )
    return controller


@pytest.fixture
def no_sleep():
    with patch(
        "stacker_alert.orchestrator.asyncio.sleep", new_callable=AsyncMock
    ) as sleep:
        yield sleep


class TestNextDeadline:
    """Test cases for next_deadline."""

    def test_on_time(self):
        assert next_deadline(100.0, 120.0, 60.0) == 160.0

    def test_overrun_collapses_missed_ticks(self):
        # Cycle ran from 100 to 290 with a 60s period: ticks at 160, 220 and
        # 280 were missed and collapse into one due now
        deadline = next_deadline(100.0, 290.0, 60.0)

        assert deadline == 280.0
        assert deadline <= 290.0

    def test_exact_boundary(self):
        assert next_deadline(100.0, 160.0, 60.0) == 160.0


class TestPollScheduler:
    """Test cases for PollScheduler."""

    @pytest.mark.asyncio
    async def test_initial_then_steady_windows(self, controller, no_sleep):
        scheduler = PollScheduler(controller, interval_minutes=5)

        await scheduler.run(max_cycles=3)

        windows = [
            call.args[0].interval for call in controller.run_cycle.call_args_list
        ]
        assert windows == [
            timedelta(minutes=INITIAL_WINDOW_MINUTES),
            timedelta(minutes=5),
            timedelta(minutes=5),
        ]
        assert scheduler.cycles_run == 3
        assert scheduler.state == SchedulerState.STEADY_STATE
        assert scheduler.last_report.window_minutes == 5

    @pytest.mark.asyncio
    async def test_single_cycle(self, controller, no_sleep):
        scheduler = PollScheduler(controller, interval_minutes=5)

        await scheduler.run(max_cycles=1)

        controller.run_cycle.assert_called_once()
        no_sleep.assert_not_called()

    @pytest.mark.asyncio
    async def test_waits_for_period_between_cycles(self, controller, no_sleep):
        scheduler = PollScheduler(controller, interval_minutes=2)

        await scheduler.run(max_cycles=2)

        no_sleep.assert_awaited_once()
        delay = no_sleep.await_args.args[0]
        assert 0 < delay <= 120

    @pytest.mark.asyncio
    async def test_startup_check_plays_first(self, controller, no_sleep):
        order = []
        startup = Mock()
        startup.play_startup_check.side_effect = lambda: order.append("startup")
        controller.run_cycle.side_effect = lambda window: order.append("cycle")
        scheduler = PollScheduler(controller, 5, startup_channel=startup)

        await scheduler.run(max_cycles=2)

        assert order == ["startup", "cycle", "cycle"]

    @pytest.mark.asyncio
    async def test_fatal_error_stops_scheduler(self, controller, no_sleep):
        controller.run_cycle.side_effect = [
            CycleReport(datetime.now(timezone.utc), 300),
            FetchError("Error: status code 500", 500),
            CycleReport(datetime.now(timezone.utc), 5),
        ]
        scheduler = PollScheduler(controller, interval_minutes=5)

        with pytest.raises(FetchError):
            await scheduler.run(max_cycles=3)

        assert scheduler.cycles_run == 1

    def test_current_window(self, controller):
        scheduler = PollScheduler(controller, interval_minutes=7)

        assert scheduler.current_window().interval == timedelta(minutes=300)
        scheduler.state = SchedulerState.STEADY_STATE
        assert scheduler.current_window().interval == timedelta(minutes=7)


class TestApplicationOrchestrator:
    """Test cases for ApplicationOrchestrator."""

    def test_audio_wiring(self, sample_configuration):
        orchestrator = ApplicationOrchestrator(sample_configuration)

        assert isinstance(orchestrator.channel, AudioAlertChannel)
        assert orchestrator.channel is orchestrator.audio_channel
        assert orchestrator.notifier.fallback_channel is None
        assert orchestrator.fetcher.url == "https://stacker.news/recent"
        assert orchestrator.scheduler.startup_channel is orchestrator.audio_channel

    def test_nostr_wiring_falls_back_to_audio(self, sample_criteria, nostr_identity):
        config = Configuration(
            criteria=sample_criteria, territory="nostr", nostr=nostr_identity
        )

        orchestrator = ApplicationOrchestrator(config)

        assert isinstance(orchestrator.channel, NostrRelayChannel)
        assert orchestrator.notifier.fallback_channel is orchestrator.audio_channel
        assert orchestrator.fetcher.url == "https://stacker.news/~nostr/recent"

    @pytest.mark.asyncio
    async def test_run_closes_fetcher_on_fatal_error(self, sample_configuration):
        orchestrator = ApplicationOrchestrator(sample_configuration)
        orchestrator.scheduler.run = AsyncMock(side_effect=FetchError("boom"))
        orchestrator.fetcher.close = Mock()

        with pytest.raises(FetchError):
            await orchestrator.run()

        orchestrator.fetcher.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_run_passes_cycle_limit(self, sample_configuration):
        orchestrator = ApplicationOrchestrator(sample_configuration)
        orchestrator.scheduler.run = AsyncMock()
        orchestrator.fetcher.close = Mock()

        await orchestrator.run(max_cycles=2)

        orchestrator.scheduler.run.assert_awaited_once_with(max_cycles=2)

    def test_system_status(self, sample_configuration):
        orchestrator = ApplicationOrchestrator(sample_configuration)

        status = orchestrator.get_system_status()

        assert status["state"] == "initial_cycle"
        assert status["cycles_run"] == 0
        assert status["last_checked"] is None
        assert status["alerts_delivered"] == 0
        assert status["channel"] == "audio"
