"""Group finalized timeline events into display tracks and answer time queries."""

import logging
from collections import defaultdict
from collections.abc import Iterable
from fractions import Fraction

from scriptline.models import Channel, Event, Timeline, TimelineStats, Track

logger = logging.getLogger(__name__)

# Clip edges closer than this to the playhead count as "here"
EDGE_TOLERANCE = Fraction(1, 1000)

_SINGLE_TRACKS: dict[Channel, tuple[str, str]] = {
    Channel.TEXT: ("text", "Text"),
    Channel.BACKGROUND: ("bg", "Background"),
    Channel.VIDEO: ("video", "Video"),
    Channel.BGM: ("bgm", "BGM"),
    Channel.SE: ("se", "SE"),
}


def build_tracks(events: Iterable[Event]) -> list[Track]:
    """Group events per channel (and layer / character) in display order.

    Order: text, background, characters by name, image layers, video,
    BGM, SE. Channels without events produce no track.
    """
    single: dict[Channel, list[Event]] = defaultdict(list)
    charas: dict[str, list[Event]] = defaultdict(list)
    layers: dict[str, list[Event]] = defaultdict(list)

    for event in events:
        if event.channel is Channel.CHARACTER:
            charas[event.sub_key or ""].append(event)
        elif event.channel is Channel.IMAGE:
            layers[event.sub_key or "0"].append(event)
        else:
            single[event.channel].append(event)

    def _single(channel: Channel) -> list[Track]:
        if not single[channel]:
            return []
        track_id, name = _SINGLE_TRACKS[channel]
        return [Track(id=track_id, display_name=name, channel=channel, events=single[channel])]

    tracks: list[Track] = []
    tracks += _single(Channel.TEXT)
    tracks += _single(Channel.BACKGROUND)
    for name in sorted(charas):
        tracks.append(Track(
            id=f"chara_{name}",
            display_name=f"Character: {name}",
            channel=Channel.CHARACTER,
            events=charas[name],
        ))
    for layer in sorted(layers):
        tracks.append(Track(
            id=f"layer{layer}",
            display_name=f"Image layer{layer}",
            channel=Channel.IMAGE,
            events=layers[layer],
        ))
    tracks += _single(Channel.VIDEO)
    tracks += _single(Channel.BGM)
    tracks += _single(Channel.SE)
    return tracks


def events_active_at(events: Iterable[Event], time: Fraction | float) -> list[Event]:
    """Events with start_time <= time < end_time, in insertion order."""
    return [e for e in events if e.is_active_at(time)]


def next_edge(track: Track, time: Fraction | float) -> Fraction | None:
    """First clip boundary after ``time``, or None at the end of the track."""
    for edge in track.edges():
        if edge > time + EDGE_TOLERANCE:
            return edge
    return None


def previous_edge(track: Track, time: Fraction | float) -> Fraction | None:
    """Last clip boundary before ``time``, or None at the start of the track."""
    earlier = [edge for edge in track.edges() if edge < time - EDGE_TOLERANCE]
    return earlier[-1] if earlier else None


def summarize(timeline: Timeline) -> TimelineStats:
    """Totals for a (normally finalized) timeline."""
    counts = {channel.value: 0 for channel in Channel}
    for event in timeline.events:
        counts[event.channel.value] += 1
    return TimelineStats(
        total_time=timeline.total_time,
        total_events=len(timeline.events),
        track_count=len(build_tracks(timeline.events)),
        per_channel_counts=counts,
    )


class TrackAggregator:
    """Read-side view over one timeline."""

    def __init__(self, timeline: Timeline) -> None:
        self.timeline = timeline
        if not timeline.sealed:
            logger.debug("Aggregating a timeline that has not been finalized")

    def tracks(self) -> list[Track]:
        return build_tracks(self.timeline.events)

    def track(self, track_id: str) -> Track | None:
        for track in self.tracks():
            if track.id == track_id:
                return track
        return None

    def events_active_at(self, time: Fraction | float) -> list[Event]:
        return events_active_at(self.timeline.events, time)

    def stats(self) -> TimelineStats:
        return summarize(self.timeline)
