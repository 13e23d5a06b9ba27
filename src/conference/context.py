"""The single active conference and everything the app knows about it."""

from __future__ import annotations

import asyncio
import logging

from conference.errors import (
    ConferenceFullError,
    FanoutError,
    RtcServiceError,
    SessionUnavailableError,
    SubscribeFailure,
)
from conference.fanout import SubscriptionFanout
from conference.registry import ParticipantRegistry
from rtc.base import BaseRtcService, Participant, ParticipantEvent

LOGGER = logging.getLogger(__name__)

SESSION_TAG = "webrtc-voice-bridge"


class ConferenceContext:
    """Owns the session id, the participant registry and the fan-out ledger.

    Created once per process and handed to request handlers through a FastAPI
    dependency. Registers itself for participant events on the RTC service.
    """

    def __init__(self, rtc: BaseRtcService, *, max_participants: int | None = None) -> None:
        self.rtc = rtc
        self.registry = ParticipantRegistry()
        self.fanout = SubscriptionFanout(rtc, self.registry)
        self._max_participants = max_participants
        self._session_id: str | None = None
        self._lock = asyncio.Lock()

        rtc.on_participant_published(self.handle_participant_published)
        rtc.on_participant_left(self.handle_participant_left)

    @property
    def session_id(self) -> str | None:
        return self._session_id

    async def ensure_session(self) -> str:
        async with self._lock:
            return await self._ensure_session_locked()

    async def _ensure_session_locked(self) -> str:
        if self._session_id is not None:
            try:
                valid = await self.rtc.session_exists(self._session_id)
            except Exception as exc:
                LOGGER.warning("Could not verify session %s: %s", self._session_id, exc)
                valid = False
            if valid:
                return self._session_id

            LOGGER.info("Session %s no longer exists; starting a new one", self._session_id)
            self._reset()

        try:
            session_id = await self.rtc.create_session(SESSION_TAG)
        except RtcServiceError as exc:
            raise SessionUnavailableError(exc.detail) from exc

        self._session_id = session_id
        LOGGER.info("Created new session %s", session_id)
        return session_id

    def _reset(self) -> None:
        self._session_id = None
        self.registry.clear()
        self.fanout.reset()

    async def add_participant(self, tag: str | None = None) -> Participant:
        async with self._lock:
            session_id = await self._ensure_session_locked()
            if self._max_participants is not None and len(self.registry) >= self._max_participants:
                raise ConferenceFullError(
                    f"Session {session_id} is full ({len(self.registry)} participants)"
                )
            participant = await self.rtc.create_participant(session_id, tag)
            self.registry.add(participant.id)

        LOGGER.info("Created participant %s in session %s", participant.id, session_id)
        return participant

    async def remove_participant(self, participant_id: str) -> None:
        streams = self.registry.streams_of(participant_id)
        self.registry.remove(participant_id)
        self.fanout.forget(participant_id, streams)

        if self._session_id is None:
            return
        await self.rtc.remove_participant(self._session_id, participant_id)
        LOGGER.info("Removed participant %s", participant_id)

    async def publish(self, publisher_id: str, stream_id: str) -> None:
        await self.fanout.publish(self._require_session(), publisher_id, stream_id)

    async def join(self, subscriber_id: str) -> None:
        await self.fanout.join(self._require_session(), subscriber_id)

    def _require_session(self) -> str:
        if self._session_id is None:
            raise SessionUnavailableError("No active session")
        return self._session_id

    async def handle_participant_published(self, event: ParticipantEvent) -> None:
        if event.session_id != self._session_id:
            LOGGER.debug("Ignoring publish event for foreign session %s", event.session_id)
            return
        if not event.stream_id:
            LOGGER.warning("Publish event from %s carries no stream id", event.participant_id)
            return

        LOGGER.info("Participant %s published stream %s", event.participant_id, event.stream_id)
        failures: list[SubscribeFailure] = []
        try:
            await self.publish(event.participant_id, event.stream_id)
        except FanoutError as exc:
            failures.extend(exc.failures)

        if event.participant_id in self.registry:
            try:
                await self.join(event.participant_id)
            except FanoutError as exc:
                failures.extend(exc.failures)

        if failures:
            raise FanoutError(failures)

    async def handle_participant_left(self, event: ParticipantEvent) -> None:
        if event.session_id != self._session_id:
            LOGGER.debug("Ignoring leave event for foreign session %s", event.session_id)
            return

        await self.remove_participant(event.participant_id)
        LOGGER.info("Participant %s has left the conference", event.participant_id)
