"""Shared FastAPI dependencies.

Separated to avoid circular imports between route modules.
"""

from __future__ import annotations

from functools import lru_cache

from conference.context import ConferenceContext
from config.settings import get_settings
from rtc.base import BaseRtcService


@lru_cache(maxsize=1)
def _rtc_factory() -> BaseRtcService:
    from rtc.factory import build_rtc_service

    return build_rtc_service()


@lru_cache(maxsize=1)
def _conference_factory() -> ConferenceContext:
    settings = get_settings()
    return ConferenceContext(_rtc_factory(), max_participants=settings.max_participants)


def get_conference() -> ConferenceContext:
    return _conference_factory()


async def close_conference() -> None:
    """Close the RTC client if one was ever built."""

    if _rtc_factory.cache_info().currsize:
        await _rtc_factory().close()
        _rtc_factory.cache_clear()
        _conference_factory.cache_clear()
