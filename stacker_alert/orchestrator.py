"""
Main application orchestrator for the Stacker Alert system.

This module wires the components together from the startup configuration
and runs the poll scheduler: one wide-window cycle at startup, then one
cycle per interval, forever.
"""

import asyncio
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Optional

from .components.alert_formatter import AlertFormatter
from .components.interest_matcher import InterestMatcher
from .components.notification_channels import (
    AudioAlertChannel,
    NotificationChannelFactory,
)
from .components.notifier import Notifier
from .components.page_fetcher import PageFetcher
from .components.poll_cycle import CycleReport, PollCycleController
from .components.record_extractor import PageExtractor, RecordExtractor
from .models.config import Configuration
from .models.criteria import PollWindow
from .utils.logging import get_logger


class SchedulerState(Enum):
    """Scheduler states."""

    INITIAL_CYCLE = "initial_cycle"
    STEADY_STATE = "steady_state"


def next_deadline(deadline: float, now: float, period: float) -> float:
    """
    Advance a tick deadline past a cycle that just finished.

    Ticks missed while the cycle was running collapse into a single tick
    due immediately; cycles are never queued.
    """
    deadline += period
    if deadline <= now:
        missed = int((now - deadline) // period)
        deadline += missed * period
    return deadline


class PollScheduler:
    """Runs poll cycles one at a time on a fixed period."""

    def __init__(
        self,
        controller: PollCycleController,
        interval_minutes: int,
        startup_channel: Optional[AudioAlertChannel] = None,
    ):
        """
        Initialize the scheduler.

        Args:
            controller: Runs a single poll cycle
            interval_minutes: Period between steady-state cycles and their window
            startup_channel: Audio channel played once as a startup self-check
        """
        self.controller = controller
        self.interval_minutes = interval_minutes
        self.period = timedelta(minutes=interval_minutes)
        self.startup_channel = startup_channel
        self.logger = get_logger("scheduler")

        self.state = SchedulerState.INITIAL_CYCLE
        self.cycles_run = 0
        self.last_report: Optional[CycleReport] = None

    def current_window(self) -> PollWindow:
        if self.state == SchedulerState.INITIAL_CYCLE:
            return PollWindow.initial()
        return PollWindow.steady(self.interval_minutes)

    async def run(self, max_cycles: Optional[int] = None) -> None:
        """
        Run the scheduler.

        Args:
            max_cycles: Stop after this many cycles; None runs forever
        """
        loop = asyncio.get_running_loop()

        if self.startup_channel is not None:
            await loop.run_in_executor(None, self.startup_channel.play_startup_check)

        await self._run_once()
        self.state = SchedulerState.STEADY_STATE
        self.logger.info(
            "Entering steady state",
            extra={"interval_minutes": self.interval_minutes},
        )

        period = self.period.total_seconds()
        deadline = loop.time() + period

        while max_cycles is None or self.cycles_run < max_cycles:
            await asyncio.sleep(max(0.0, deadline - loop.time()))
            await self._run_once()
            deadline = next_deadline(deadline, loop.time(), period)

    async def _run_once(self) -> CycleReport:
        window = self.current_window()
        self.logger.debug(
            "Starting poll cycle",
            extra={
                "state": self.state.value,
                "window_minutes": window.interval.total_seconds() / 60,
            },
        )

        # Blocking fetch and playback run off the event loop, one cycle at a time
        report = await asyncio.get_running_loop().run_in_executor(
            None, self.controller.run_cycle, window
        )

        self.cycles_run += 1
        self.last_report = report
        return report


class ApplicationOrchestrator:
    """
    Builds the component graph from the configuration and runs it.

    Fatal fetch and parse errors propagate out of ``run``.
    """

    def __init__(self, config: Configuration):
        """
        Initialize the application orchestrator.

        Args:
            config: Validated startup configuration
        """
        self.config = config
        self.logger = get_logger("orchestrator")
        self._startup_time: Optional[datetime] = None

        self.fetcher = PageFetcher(
            config.target_url,
            timeout=config.request_timeout,
            user_agent=config.user_agent,
        )
        self.audio_channel = AudioAlertChannel()
        self.channel = NotificationChannelFactory.create_channel(
            config, audio_channel=self.audio_channel
        )

        # Relay delivery falls back to the local tone when no relay accepts
        fallback = None
        if self.channel is not self.audio_channel:
            fallback = self.audio_channel

        self.notifier = Notifier(
            AlertFormatter(config.base_url), self.channel, fallback_channel=fallback
        )
        self.controller = PollCycleController(
            fetcher=self.fetcher,
            page_extractor=PageExtractor(config.item_selector),
            record_extractor=RecordExtractor(),
            matcher=InterestMatcher(config.criteria),
            notifier=self.notifier,
        )
        self.scheduler = PollScheduler(
            self.controller,
            config.interval_minutes,
            startup_channel=self.audio_channel,
        )

    async def run(self, max_cycles: Optional[int] = None) -> None:
        """Run the complete application lifecycle."""
        self._startup_time = datetime.now()
        self.logger.info(
            "Watching listings",
            extra={
                "url": self.config.target_url,
                "interval_minutes": self.config.interval_minutes,
                "channel": self.channel.name,
            },
        )

        try:
            await self.scheduler.run(max_cycles=max_cycles)
        finally:
            self.fetcher.close()

    def get_system_status(self) -> Dict[str, Any]:
        """Get current system status information."""
        last_checked = self.controller.last_checked
        return {
            "state": self.scheduler.state.value,
            "cycles_run": self.scheduler.cycles_run,
            "startup_time": self._startup_time.isoformat()
            if self._startup_time
            else None,
            "last_checked": last_checked.isoformat() if last_checked else None,
            "alerts_delivered": self.notifier.delivered_count,
            "alerts_failed": self.notifier.failed_count,
            "channel": self.channel.name,
        }
