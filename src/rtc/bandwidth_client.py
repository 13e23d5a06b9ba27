"""Client for the Bandwidth WebRTC HTTP API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from config.settings import Settings, get_settings
from conference.errors import ConfigurationError, RtcServiceError
from rtc.base import BaseRtcService, Participant

LOGGER = logging.getLogger(__name__)


class BandwidthRtcClient(BaseRtcService):
    """Minimal async client for sessions, participants and subscriptions.

    The subscriptions endpoint replaces a participant's whole subscription set,
    so the client remembers what it already requested per subscriber and sends
    the accumulated set on every call.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__()
        settings = settings or get_settings()
        missing = settings.missing_credentials()
        if missing:
            raise ConfigurationError(f"Missing environment variables: {', '.join(missing)}")

        self._base_url = f"{settings.rtc_api_url}/accounts/{settings.account_id}"
        self._auth = httpx.BasicAuth(settings.username or "", settings.password or "")
        self._timeout = settings.http_timeout_seconds
        self._callback_url = settings.event_callback_url
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        # subscriber -> publisher -> stream aliases
        self._subscriptions: dict[str, dict[str, list[str]]] = {}

    async def connect(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                auth=self._auth,
                timeout=self._timeout,
                transport=self._transport,
                headers={"Content-Type": "application/json"},
            )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, *, json: Any = None) -> httpx.Response:
        await self.connect()
        assert self._client is not None
        try:
            response = await self._client.request(method, path, json=json)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            LOGGER.error("WebRTC %s %s failed: %s", method, path, exc)
            raise RtcServiceError(f"{method} {path} failed: {exc}") from exc
        return response

    async def create_session(self, tag: str | None = None) -> str:
        payload = {"tag": tag} if tag else {}
        response = await self._request("POST", "/sessions", json=payload)
        session_id = response.json()["id"]
        LOGGER.info("Created WebRTC session %s", session_id)
        return session_id

    async def session_exists(self, session_id: str) -> bool:
        await self.connect()
        assert self._client is not None
        response = await self._client.get(f"/sessions/{session_id}")
        if response.status_code == 404:
            return False
        response.raise_for_status()
        return True

    async def create_participant(self, session_id: str, tag: str | None = None) -> Participant:
        payload: dict[str, Any] = {
            "publishPermissions": ["AUDIO"],
            "deviceApiVersion": "V3",
        }
        if tag:
            payload["tag"] = tag
        if self._callback_url:
            payload["callbackUrl"] = self._callback_url

        response = await self._request("POST", "/participants", json=payload)
        data = response.json()
        participant = Participant(id=data["participant"]["id"], token=data["token"], tag=tag)

        await self._request(
            "PUT",
            f"/sessions/{session_id}/participants/{participant.id}",
            json={"sessionId": session_id},
        )
        LOGGER.info("Added participant %s to session %s", participant.id, session_id)
        return participant

    async def remove_participant(self, session_id: str, participant_id: str) -> None:
        self._subscriptions.pop(participant_id, None)
        for publishers in self._subscriptions.values():
            publishers.pop(participant_id, None)

        await self._request("DELETE", f"/sessions/{session_id}/participants/{participant_id}")
        await self._request("DELETE", f"/participants/{participant_id}")
        LOGGER.info("Removed participant %s from session %s", participant_id, session_id)

    async def subscribe(
        self,
        session_id: str,
        subscriber_id: str,
        publisher_id: str,
        stream_id: str,
    ) -> None:
        publishers = self._subscriptions.setdefault(subscriber_id, {})
        aliases = publishers.setdefault(publisher_id, [])
        if stream_id not in aliases:
            aliases.append(stream_id)

        payload = {
            "sessionId": session_id,
            "participants": [
                {"participantId": pid, "streamAliases": list(streams)}
                for pid, streams in publishers.items()
            ],
        }
        try:
            await self._request(
                "PUT",
                f"/sessions/{session_id}/participants/{subscriber_id}/subscriptions",
                json=payload,
            )
        except RtcServiceError:
            aliases.remove(stream_id)
            raise
