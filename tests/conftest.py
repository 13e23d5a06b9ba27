from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from conference.errors import RtcServiceError  # noqa: E402
from rtc.base import BaseRtcService, Participant  # noqa: E402


class FakeRtcService(BaseRtcService):
    """In-memory stand-in for the WebRTC service that records every call."""

    def __init__(self) -> None:
        super().__init__()
        self.sessions: list[str] = []
        self.live_sessions: set[str] = set()
        self.participants: list[Participant] = []
        self.removed: list[tuple[str, str]] = []
        self.subscriptions: list[tuple[str, str, str]] = []
        self.failing_subscribers: set[str] = set()
        self.validation_error: Exception | None = None
        self.session_exists_calls = 0

    async def create_session(self, tag: str | None = None) -> str:
        session_id = f"session-{len(self.sessions) + 1}"
        self.sessions.append(session_id)
        self.live_sessions.add(session_id)
        return session_id

    async def session_exists(self, session_id: str) -> bool:
        self.session_exists_calls += 1
        if self.validation_error is not None:
            raise self.validation_error
        return session_id in self.live_sessions

    async def create_participant(self, session_id: str, tag: str | None = None) -> Participant:
        index = len(self.participants) + 1
        participant = Participant(id=f"participant-{index}", token=f"token-{index}", tag=tag)
        self.participants.append(participant)
        return participant

    async def remove_participant(self, session_id: str, participant_id: str) -> None:
        self.removed.append((session_id, participant_id))

    async def subscribe(
        self,
        session_id: str,
        subscriber_id: str,
        publisher_id: str,
        stream_id: str,
    ) -> None:
        if subscriber_id in self.failing_subscribers:
            raise RtcServiceError(f"subscribe {subscriber_id} rejected")
        self.subscriptions.append((session_id, subscriber_id, stream_id))


@pytest.fixture()
def fake_rtc() -> FakeRtcService:
    return FakeRtcService()


@pytest.fixture(scope="session")
def app():
    os.environ["ACCOUNT_ID"] = "9900000"
    os.environ["USERNAME"] = "bridge-user"
    os.environ["PASSWORD"] = "bridge-pass"
    os.environ["PHONE_NUMBER"] = "+19195551234"

    import importlib

    # Ensure clean import with the test settings.
    for module_name in [
        "config.settings",
        "api.dependencies",
        "api.routes",
        "main",
    ]:
        sys.modules.pop(module_name, None)

    main = importlib.import_module("main")
    return main.app


@pytest.fixture()
def conference(app, fake_rtc):
    from conference.context import ConferenceContext

    return ConferenceContext(fake_rtc)


@pytest.fixture()
def client(app, conference):
    # Override the conference dependency so tests never reach the real WebRTC API.
    import api.dependencies as deps

    app.dependency_overrides[deps.get_conference] = lambda: conference

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
