"""REST boundary between the browser, the Voice API and the WebRTC service.

- ``GET /connectionInfo``: the browser fetches what it needs to connect.
- ``POST /incomingCall``: the Voice API asks what to do with a new call; the
  answer is BXML transferring the call into the WebRTC session.
- ``POST /callStatus``: asynchronous call status callbacks, logged only.
- ``POST /rtcEvents``: participant lifecycle events pushed by the WebRTC service.
"""

from __future__ import annotations

import json
import logging
from typing import Union

from fastapi import APIRouter, Depends, Request, Response

from api.dependencies import get_conference
from api.schemas import (
    ConferenceConnectionInfo,
    DeviceTokenConnectionInfo,
    HealthResponse,
    IncomingCall,
    RtcEvent,
    StatusResponse,
)
from conference.context import ConferenceContext
from conference.errors import ConferenceFullError
from config.settings import get_settings
from rtc import bxml
from rtc.base import ParticipantEvent

LOGGER = logging.getLogger(__name__)

router = APIRouter()


def _bxml_response(xml: str) -> Response:
    # The Voice API expects application/xml
    return Response(content=xml, media_type="application/xml")


@router.get(
    "/connectionInfo",
    response_model=Union[DeviceTokenConnectionInfo, ConferenceConnectionInfo],
)
async def connection_info(
    conference: ConferenceContext = Depends(get_conference),
) -> DeviceTokenConnectionInfo | ConferenceConnectionInfo:
    settings = get_settings()
    participant = await conference.add_participant(tag="browser")
    session_id = conference.session_id
    LOGGER.info("Created browser participant %s in session %s", participant.id, session_id)

    if settings.client_mode == "conference":
        return ConferenceConnectionInfo(
            conferenceId=session_id or "",
            participantId=participant.id,
            phoneNumber=settings.phone_number,
        )
    return DeviceTokenConnectionInfo(
        token=participant.token,
        voiceApplicationPhoneNumber=settings.phone_number,
    )


@router.post("/incomingCall")
async def incoming_call(
    payload: IncomingCall,
    conference: ConferenceContext = Depends(get_conference),
) -> Response:
    settings = get_settings()
    LOGGER.info("Received incoming call %s from %s", payload.call_id, payload.from_number)

    try:
        participant = await conference.add_participant(tag=f"call:{payload.call_id}")
    except ConferenceFullError as exc:
        LOGGER.warning("Rejecting call %s: %s", payload.call_id, exc.detail)
        return _bxml_response(bxml.speak_and_hangup("Sorry, this conference is full. Please try again later."))

    LOGGER.info(
        "Transferring %s to session %s as participant %s",
        payload.call_id,
        conference.session_id,
        participant.id,
    )
    return _bxml_response(
        bxml.transfer_response(
            token=participant.token,
            call_id=payload.call_id,
            sip_uri=settings.rtc_sip_uri,
        )
    )


@router.post("/callStatus", response_model=StatusResponse)
async def call_status(request: Request) -> StatusResponse:
    raw = await request.body()
    try:
        body = json.loads(raw) if raw else None
    except ValueError:
        body = raw.decode("utf-8", errors="replace")
    LOGGER.info("Call status callback: %s", body)
    return StatusResponse(status="received")


@router.post("/rtcEvents", response_model=StatusResponse)
async def rtc_events(
    payload: RtcEvent,
    conference: ConferenceContext = Depends(get_conference),
) -> StatusResponse:
    event = ParticipantEvent(
        event=payload.event,
        session_id=payload.resolved_session_id,
        participant_id=payload.participant_id,
        stream_id=payload.stream_id,
    )
    LOGGER.debug("WebRTC event %s", event)
    await conference.rtc.dispatch(event)
    return StatusResponse(status="ok")


@router.get("/health", response_model=HealthResponse)
async def health(conference: ConferenceContext = Depends(get_conference)) -> HealthResponse:
    return HealthResponse(sessionId=conference.session_id, participants=len(conference.registry))
