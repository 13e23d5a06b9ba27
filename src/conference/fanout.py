"""Full-mesh subscription fan-out.

Every participant hears every other participant and never itself. Subscribe
calls are issued one at a time, in registration order. A failing call does not
stop the pass; failures are collected and raised together once it finishes.
"""

from __future__ import annotations

import logging

from conference.errors import FanoutError, RtcServiceError, SubscribeFailure, UnknownParticipantError
from conference.registry import ParticipantRegistry
from rtc.base import BaseRtcService

LOGGER = logging.getLogger(__name__)


class SubscriptionFanout:
    def __init__(self, rtc: BaseRtcService, registry: ParticipantRegistry) -> None:
        self._rtc = rtc
        self._registry = registry
        # (subscriber_id, stream_id) pairs already subscribed
        self._ledger: set[tuple[str, str]] = set()

    def is_subscribed(self, subscriber_id: str, stream_id: str) -> bool:
        return (subscriber_id, stream_id) in self._ledger

    async def publish(self, session_id: str, publisher_id: str, stream_id: str) -> None:
        """Record a new stream and subscribe everyone else to it."""

        if not self._registry.add_stream(publisher_id, stream_id):
            LOGGER.warning(
                "Stream %s published by unregistered participant %s", stream_id, publisher_id
            )

        failures: list[SubscribeFailure] = []
        for subscriber_id in self._registry.others(publisher_id):
            await self._subscribe(session_id, subscriber_id, publisher_id, stream_id, failures)

        if failures:
            raise FanoutError(failures)

    async def join(self, session_id: str, subscriber_id: str) -> None:
        """Subscribe a participant to every stream the others have already published."""

        if subscriber_id not in self._registry:
            raise UnknownParticipantError(f"Participant {subscriber_id} is not registered")

        failures: list[SubscribeFailure] = []
        for publisher_id in self._registry.others(subscriber_id):
            for stream_id in self._registry.streams_of(publisher_id):
                await self._subscribe(session_id, subscriber_id, publisher_id, stream_id, failures)

        if failures:
            raise FanoutError(failures)

    def forget(self, participant_id: str, streams: list[str]) -> None:
        """Drop ledger pairs involving a departed participant or its streams."""

        gone = set(streams)
        self._ledger = {
            (subscriber, stream)
            for subscriber, stream in self._ledger
            if subscriber != participant_id and stream not in gone
        }

    def reset(self) -> None:
        self._ledger.clear()

    async def _subscribe(
        self,
        session_id: str,
        subscriber_id: str,
        publisher_id: str,
        stream_id: str,
        failures: list[SubscribeFailure],
    ) -> None:
        if subscriber_id == publisher_id or self.is_subscribed(subscriber_id, stream_id):
            return

        try:
            await self._rtc.subscribe(session_id, subscriber_id, publisher_id, stream_id)
        except RtcServiceError as exc:
            LOGGER.error("Subscribing %s to %s failed: %s", subscriber_id, stream_id, exc.detail)
            failures.append(SubscribeFailure(subscriber_id, stream_id, exc.detail))
            return

        self._ledger.add((subscriber_id, stream_id))
        LOGGER.info("%s subscribed to %s", subscriber_id, stream_id)
