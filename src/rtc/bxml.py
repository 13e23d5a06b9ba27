"""BXML documents returned to the Voice API."""

from __future__ import annotations

import base64
from xml.sax.saxutils import escape, quoteattr

XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>'


def _uui(call_id: str, token: str) -> str:
    encoded_call_id = base64.b64encode(call_id.encode("utf-8")).decode("ascii")
    return f"{encoded_call_id};encoding=base64,{token};encoding=jwt"


def transfer_verb(*, token: str, call_id: str, sip_uri: str) -> str:
    """``<Transfer>`` verb moving a live call into the WebRTC session as the token's participant."""

    return (
        "<Transfer>"
        f"<SipUri uui={quoteattr(_uui(call_id, token))}>{escape(sip_uri)}</SipUri>"
        "</Transfer>"
    )


def transfer_response(*, token: str, call_id: str, sip_uri: str) -> str:
    return (
        XML_HEADER
        + "<Response>"
        + transfer_verb(token=token, call_id=call_id, sip_uri=sip_uri)
        + "</Response>"
    )


def speak_and_hangup(text: str) -> str:
    return (
        XML_HEADER
        + "<Response>"
        + f"<SpeakSentence>{escape(text)}</SpeakSentence>"
        + "<Hangup/>"
        + "</Response>"
    )
