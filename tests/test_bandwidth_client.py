from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from conference.errors import ConfigurationError, RtcServiceError


def _settings(**overrides):
    from config.settings import Settings

    values = {
        "account_id": "9900000",
        "username": "bridge-user",
        "password": "bridge-pass",
        "rtc_api_url": "https://rtc.example.com/v1/",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class Recorder:
    def __init__(self, responses=None) -> None:
        self.requests: list[httpx.Request] = []
        self.responses = responses or {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        status, body = self.responses.get(key, (204, None))
        return httpx.Response(status, json=body)


def _client(recorder: Recorder, **overrides):
    from rtc.bandwidth_client import BandwidthRtcClient

    return BandwidthRtcClient(_settings(**overrides), transport=httpx.MockTransport(recorder))


BASE = "/v1/accounts/9900000"


def test_missing_credentials_raise_configuration_error():
    from rtc.bandwidth_client import BandwidthRtcClient

    with pytest.raises(ConfigurationError):
        BandwidthRtcClient(_settings(password=None))


def test_create_session_posts_tag_with_basic_auth():
    recorder = Recorder({("POST", f"{BASE}/sessions"): (200, {"id": "sess-1", "tag": "demo"})})
    client = _client(recorder)

    session_id = asyncio.run(client.create_session("demo"))

    assert session_id == "sess-1"
    request = recorder.requests[0]
    assert str(request.url) == f"https://rtc.example.com{BASE}/sessions"
    assert json.loads(request.content) == {"tag": "demo"}
    assert request.headers["authorization"].startswith("Basic ")


def test_session_exists_maps_404_to_false():
    recorder = Recorder(
        {
            ("GET", f"{BASE}/sessions/alive"): (200, {"id": "alive"}),
            ("GET", f"{BASE}/sessions/gone"): (404, {"error": "not found"}),
        }
    )
    client = _client(recorder)

    async def scenario():
        return await client.session_exists("alive"), await client.session_exists("gone")

    assert asyncio.run(scenario()) == (True, False)


def test_create_participant_adds_it_to_the_session():
    recorder = Recorder(
        {
            ("POST", f"{BASE}/participants"): (
                200,
                {"participant": {"id": "p-1"}, "token": "jwt-token"},
            ),
        }
    )
    client = _client(recorder, public_base_url="https://bridge.example.com/")

    participant = asyncio.run(client.create_participant("sess-1", tag="browser"))

    assert participant.id == "p-1"
    assert participant.token == "jwt-token"
    create, add = recorder.requests
    assert json.loads(create.content) == {
        "publishPermissions": ["AUDIO"],
        "deviceApiVersion": "V3",
        "tag": "browser",
        "callbackUrl": "https://bridge.example.com/rtcEvents",
    }
    assert add.method == "PUT"
    assert add.url.path == f"{BASE}/sessions/sess-1/participants/p-1"
    assert json.loads(add.content) == {"sessionId": "sess-1"}


def test_subscribe_sends_accumulated_subscriptions():
    recorder = Recorder()
    client = _client(recorder)

    async def scenario():
        await client.subscribe("sess-1", "p-1", "p-2", "mic")
        await client.subscribe("sess-1", "p-1", "p-3", "phone")
        await client.subscribe("sess-1", "p-1", "p-2", "mic")

    asyncio.run(scenario())

    bodies = [json.loads(r.content) for r in recorder.requests]
    assert recorder.requests[0].url.path == f"{BASE}/sessions/sess-1/participants/p-1/subscriptions"
    assert bodies[1] == {
        "sessionId": "sess-1",
        "participants": [
            {"participantId": "p-2", "streamAliases": ["mic"]},
            {"participantId": "p-3", "streamAliases": ["phone"]},
        ],
    }
    assert bodies[2] == bodies[1]


def test_failed_subscribe_is_wrapped_and_forgotten():
    path = f"{BASE}/sessions/sess-1/participants/p-1/subscriptions"
    recorder = Recorder({("PUT", path): (500, {"error": "boom"})})
    client = _client(recorder)

    async def scenario():
        with pytest.raises(RtcServiceError):
            await client.subscribe("sess-1", "p-1", "p-2", "mic")
        recorder.responses.clear()
        await client.subscribe("sess-1", "p-1", "p-2", "other")

    asyncio.run(scenario())
    assert json.loads(recorder.requests[-1].content)["participants"] == [
        {"participantId": "p-2", "streamAliases": ["other"]}
    ]


def test_remove_participant_deletes_from_session_and_account():
    recorder = Recorder()
    client = _client(recorder)

    asyncio.run(client.remove_participant("sess-1", "p-1"))

    assert [(r.method, r.url.path) for r in recorder.requests] == [
        ("DELETE", f"{BASE}/sessions/sess-1/participants/p-1"),
        ("DELETE", f"{BASE}/participants/p-1"),
    ]
