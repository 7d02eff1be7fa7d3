"""Serialize a timeline for presentation code."""

from typing import Any

from scriptline.models import Timeline
from scriptline.tracks import build_tracks, summarize


def timeline_to_dict(timeline: Timeline) -> dict[str, Any]:
    """Stats plus tracks, JSON-ready (times as floats)."""
    return {
        "stats": summarize(timeline).model_dump(mode="json"),
        "files": list(timeline.files),
        "tracks": [track.model_dump(mode="json") for track in build_tracks(timeline.events)],
    }
