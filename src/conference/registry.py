"""In-memory participant/stream bookkeeping for the active session."""

from __future__ import annotations

from collections.abc import Iterator


class ParticipantRegistry:
    """Ordered mapping of participant id to the streams it has published.

    Note: This is a single-process store. Iteration follows registration order,
    and stream lists follow publish order.
    """

    def __init__(self) -> None:
        self._streams: dict[str, list[str]] = {}

    def __contains__(self, participant_id: object) -> bool:
        return participant_id in self._streams

    def __len__(self) -> int:
        return len(self._streams)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._streams))

    def add(self, participant_id: str) -> None:
        self._streams.setdefault(participant_id, [])

    def remove(self, participant_id: str) -> bool:
        return self._streams.pop(participant_id, None) is not None

    def add_stream(self, participant_id: str, stream_id: str) -> bool:
        """Record a stream under its publisher. Returns False for unknown publishers."""

        streams = self._streams.get(participant_id)
        if streams is None:
            return False
        if stream_id not in streams:
            streams.append(stream_id)
        return True

    def streams_of(self, participant_id: str) -> list[str]:
        return list(self._streams.get(participant_id, []))

    def participants(self) -> list[str]:
        return list(self._streams)

    def others(self, participant_id: str) -> list[str]:
        return [pid for pid in self._streams if pid != participant_id]

    def snapshot(self) -> dict[str, list[str]]:
        return {pid: list(streams) for pid, streams in self._streams.items()}

    def clear(self) -> None:
        self._streams.clear()
