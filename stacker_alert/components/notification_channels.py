"""
Notification channels for the Stacker Alert system.

An alert is surfaced either as a local audio cue or as an encrypted Nostr
direct message published to a set of relays. Channel failures are logged
and reported in the DeliveryResult; they never abort a poll cycle.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, List, Optional

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pygame  # noqa: E402
import websocket  # noqa: E402

from ..models.alert import FormattedAlert  # noqa: E402
from ..models.config import Configuration, NostrIdentity  # noqa: E402
from ..models.delivery import DeliveryResult  # noqa: E402
from ..utils import nostr_crypto  # noqa: E402
from ..utils.error_handling import (  # noqa: E402
    ErrorCategory,
    ErrorSeverity,
    NotificationError,
    get_error_tracker,
    with_error_handling,
)
from .alert_tone import alert_tone_wav  # noqa: E402

logger = logging.getLogger(__name__)


class BaseNotificationChannel(ABC):
    """Base class for notification channels."""

    name = "base"

    def send(self, alert: FormattedAlert) -> DeliveryResult:
        """
        Deliver an alert.

        Args:
            alert: Formatted alert to deliver

        Returns:
            DeliveryResult: Result of the delivery attempt
        """
        start_time = datetime.now()
        result = self._deliver(alert)
        logger.debug(
            f"{self.name} delivery finished in "
            f"{(result.delivery_time - start_time).total_seconds():.2f}s "
            f"(success={result.success})"
        )
        result.validate()
        return result

    @abstractmethod
    def _deliver(self, alert: FormattedAlert) -> DeliveryResult:
        """Channel-specific delivery; must not raise."""

    def _result(self, success: bool, error_message: Optional[str] = None, **kwargs):
        return DeliveryResult(
            success=success,
            delivery_time=datetime.now(),
            error_message=error_message[:500] if error_message else None,
            channel=self.name,
            **kwargs,
        )


class AudioAlertChannel(BaseNotificationChannel):
    """Plays the embedded alert tone on the local audio output."""

    name = "audio"

    def __init__(
        self,
        sound_data: Optional[bytes] = None,
        poll_interval_ms: int = 50,
    ):
        """
        Initialize audio channel.

        Args:
            sound_data: WAV bytes to play, defaults to the embedded tone
            poll_interval_ms: How often to check whether playback finished
        """
        self.sound_data = sound_data if sound_data is not None else alert_tone_wav()
        self.poll_interval_ms = poll_interval_ms

    def _deliver(self, alert: FormattedAlert) -> DeliveryResult:
        if self.play():
            return self._result(True)
        return self._result(False, "Audio playback failed")

    def play_startup_check(self) -> bool:
        """Play the tone once at startup, independent of any listing."""
        logger.info("Playing startup audio check")
        return self.play()

    @with_error_handling(
        component="notifier.audio",
        category=ErrorCategory.AUDIO_PLAYBACK,
        severity=ErrorSeverity.LOW,
        fallback_value=False,
        suppress_exceptions=True,
    )
    def play(self) -> bool:
        """
        Play the alert tone and block until it finishes.

        The sound is staged in a temporary file that is removed afterwards.
        """
        handle = tempfile.NamedTemporaryFile(
            prefix="stacker_alert_", suffix=".wav", delete=False
        )
        try:
            with handle:
                handle.write(self.sound_data)
            self._play_file(handle.name)
        finally:
            os.remove(handle.name)

        return True

    def _play_file(self, path: str) -> None:
        if not pygame.mixer.get_init():
            pygame.mixer.init()

        sound = pygame.mixer.Sound(path)
        channel = sound.play()
        while channel is not None and channel.get_busy():
            pygame.time.wait(self.poll_interval_ms)


class NostrRelayChannel(BaseNotificationChannel):
    """Publishes alerts as NIP-04 encrypted direct messages to Nostr relays."""

    name = "nostr"

    def __init__(
        self,
        identity: NostrIdentity,
        timeout: float = 10.0,
        max_replies: int = 10,
        connect: Callable[..., websocket.WebSocket] = websocket.create_connection,
    ):
        """
        Initialize Nostr relay channel.

        Args:
            identity: Sender key, recipient key and relay URLs
            timeout: Socket timeout per relay in seconds
            max_replies: Relay messages to read while waiting for the OK
            connect: Websocket connection factory
        """
        self.identity = identity
        self.timeout = timeout
        self.max_replies = max_replies
        self.connect = connect

    def _deliver(self, alert: FormattedAlert) -> DeliveryResult:
        try:
            event = nostr_crypto.build_direct_message(
                alert.plain_text,
                self.identity.private_key_hex,
                self.identity.recipient_pubkey_hex,
            )
        except Exception as e:
            get_error_tracker().record_error(
                component="notifier.nostr",
                category=ErrorCategory.ENCRYPTION,
                severity=ErrorSeverity.HIGH,
                message=f"Could not build encrypted message: {e}",
                exception=e,
            )
            return self._result(False, f"Encryption failed: {e}")

        accepted: List[str] = []
        failed: List[str] = []

        # Relays are tried one after another; a failure never stops the rest
        for relay_url in self.identity.relays:
            if self.publish(event, relay_url):
                accepted.append(relay_url)
            else:
                failed.append(relay_url)

        if accepted:
            logger.info(
                f"Direct message {event['id'][:12]} accepted by "
                f"{len(accepted)}/{len(self.identity.relays)} relays"
            )
            return self._result(True, relays_accepted=accepted, relays_failed=failed)

        return self._result(
            False,
            f"No relay accepted the event ({len(failed)} failed)",
            relays_accepted=accepted,
            relays_failed=failed,
        )

    def publish(self, event: nostr_crypto.Event, relay_url: str) -> bool:
        """
        Publish one event to one relay over its own connection.

        Returns:
            True if the relay acknowledged the event
        """
        connection = None
        try:
            connection = self.connect(relay_url, timeout=self.timeout)
            connection.send(json.dumps(["EVENT", event]))
            self._await_ok(connection, event["id"], relay_url)
            logger.debug(f"Relay {relay_url} accepted event {event['id'][:12]}")
            return True

        except (
            websocket.WebSocketException,
            OSError,
            ValueError,
            NotificationError,
        ) as e:
            get_error_tracker().record_error(
                component="notifier.nostr",
                category=ErrorCategory.RELAY_DELIVERY,
                severity=ErrorSeverity.MEDIUM,
                message=f"Publishing to {relay_url} failed: {e}",
                exception=e,
                context={"relay": relay_url},
            )
            return False

        finally:
            if connection is not None:
                connection.close()

    def _await_ok(self, connection, event_id: str, relay_url: str) -> None:
        """Read relay messages until the OK for ``event_id`` arrives."""
        for _ in range(self.max_replies):
            message = json.loads(connection.recv())
            if not isinstance(message, list) or not message:
                continue

            if message[0] == "OK" and len(message) >= 3 and message[1] == event_id:
                if message[2] is True:
                    return
                reason = message[3] if len(message) > 3 else "rejected"
                raise NotificationError(f"Relay {relay_url} rejected event: {reason}")

            if message[0] == "NOTICE":
                logger.info(f"Notice from {relay_url}: {message[1:]}")

        raise NotificationError(f"No OK from {relay_url} for event {event_id[:12]}")


class NotificationChannelFactory:
    """Factory for creating notification channels."""

    @staticmethod
    def create_channel(
        config: Configuration, audio_channel: Optional[AudioAlertChannel] = None
    ) -> BaseNotificationChannel:
        """
        Create the notification channel selected by configuration.

        A configured Nostr identity selects the relay channel; otherwise alerts
        are played on the local audio output.

        Args:
            config: Startup configuration
            audio_channel: Existing audio channel to reuse
        """
        if config.nostr is not None:
            return NostrRelayChannel(config.nostr)

        return audio_channel or AudioAlertChannel()
