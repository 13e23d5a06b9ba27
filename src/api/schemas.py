"""API-facing Pydantic models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class DeviceTokenConnectionInfo(BaseModel):
    token: str
    voiceApplicationPhoneNumber: str | None = None


class ConferenceConnectionInfo(BaseModel):
    conferenceId: str
    participantId: str
    phoneNumber: str | None = None


class IncomingCall(BaseModel):
    """Voice API inbound call callback. Only the fields used here are declared."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    call_id: str = Field(alias="callId")
    from_number: str | None = Field(default=None, alias="from")
    to_number: str | None = Field(default=None, alias="to")


class RtcEvent(BaseModel):
    """Participant lifecycle callback from the WebRTC service."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    event: Literal[
        "participantJoined",
        "participantPublished",
        "participantUnpublished",
        "participantLeft",
    ]
    session_id: str | None = Field(default=None, alias="sessionId")
    conference_id: str | None = Field(default=None, alias="conferenceId")
    participant_id: str = Field(alias="participantId")
    stream_id: str | None = Field(default=None, alias="streamId")

    @property
    def resolved_session_id(self) -> str:
        return self.session_id or self.conference_id or ""


class StatusResponse(BaseModel):
    status: str


class HealthResponse(BaseModel):
    status: str = "ok"
    sessionId: str | None = None
    participants: int = 0
