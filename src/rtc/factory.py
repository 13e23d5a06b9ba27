"""Factory returning the configured WebRTC service client."""

from __future__ import annotations

from config.settings import get_settings
from rtc.bandwidth_client import BandwidthRtcClient
from rtc.base import BaseRtcService


def build_rtc_service() -> BaseRtcService:
    """Instantiate the WebRTC connector from the current settings."""

    return BandwidthRtcClient(get_settings())
