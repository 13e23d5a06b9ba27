"""Domain-specific exceptions for the WebRTC bridge.

These exceptions are safe to import from API layers without pulling in the HTTP client.
"""

from __future__ import annotations

from dataclasses import dataclass


class BridgeError(Exception):
    status_code: int = 500
    default_detail: str = "Bridge error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail


class ConfigurationError(BridgeError):
    status_code = 500
    default_detail = "Required configuration is missing."


class RtcServiceError(BridgeError):
    status_code = 502
    default_detail = "WebRTC service request failed."


class SessionUnavailableError(RtcServiceError):
    default_detail = "WebRTC session could not be created."


class ConferenceFullError(BridgeError):
    status_code = 409
    default_detail = "The conference is full."


class UnknownParticipantError(BridgeError):
    status_code = 404
    default_detail = "Participant is not part of the conference."


@dataclass(frozen=True)
class SubscribeFailure:
    subscriber_id: str
    stream_id: str
    reason: str


class FanoutError(BridgeError):
    """Raised after a fan-out pass in which one or more subscribe calls failed."""

    status_code = 502
    default_detail = "One or more subscriptions failed."

    def __init__(self, failures: list[SubscribeFailure]) -> None:
        detail = f"{len(failures)} subscription(s) failed"
        super().__init__(detail)
        self.failures = failures
