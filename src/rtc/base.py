"""Shared abstractions for WebRTC service clients."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Literal

LOGGER = logging.getLogger(__name__)

EventName = Literal[
    "participantJoined",
    "participantPublished",
    "participantUnpublished",
    "participantLeft",
]


@dataclass(frozen=True)
class Participant:
    id: str
    token: str
    tag: str | None = None


@dataclass(frozen=True)
class ParticipantEvent:
    """Lifecycle event pushed by the WebRTC service."""

    event: EventName
    session_id: str
    participant_id: str
    stream_id: str | None = None


EventHandler = Callable[[ParticipantEvent], Awaitable[None]]


class BaseRtcService(ABC):
    """Capability contract the conference layer depends on.

    Media publishing happens in the browser; the server side only creates
    sessions and participants, wires subscriptions and reacts to events.
    """

    def __init__(self) -> None:
        self._published_handlers: list[EventHandler] = []
        self._left_handlers: list[EventHandler] = []

    async def connect(self) -> None:
        """Open whatever long-lived resources the client needs."""

    async def close(self) -> None:
        """Release resources opened by :meth:`connect`."""

    @abstractmethod
    async def create_session(self, tag: str | None = None) -> str:
        """Create a session and return its identifier."""

    @abstractmethod
    async def session_exists(self, session_id: str) -> bool:
        """Return whether the service still knows the session."""

    @abstractmethod
    async def create_participant(self, session_id: str, tag: str | None = None) -> Participant:
        """Create a participant, add it to the session and return it with its device token."""

    @abstractmethod
    async def remove_participant(self, session_id: str, participant_id: str) -> None:
        """Drop the participant from the session."""

    @abstractmethod
    async def subscribe(
        self,
        session_id: str,
        subscriber_id: str,
        publisher_id: str,
        stream_id: str,
    ) -> None:
        """Subscribe ``subscriber_id`` to one stream published by ``publisher_id``."""

    def on_participant_published(self, handler: EventHandler) -> None:
        self._published_handlers.append(handler)

    def on_participant_left(self, handler: EventHandler) -> None:
        self._left_handlers.append(handler)

    async def dispatch(self, event: ParticipantEvent) -> None:
        """Deliver a pushed event to the registered handlers, in registration order."""

        if event.event == "participantPublished":
            handlers = self._published_handlers
        elif event.event == "participantLeft":
            handlers = self._left_handlers
        else:
            LOGGER.debug("No handlers for %s event on %s", event.event, event.participant_id)
            return

        for handler in handlers:
            await handler(event)
