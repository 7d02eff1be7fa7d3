"""Build a pacing-clock timeline from scenario script files.

One clock unit is one reader advance (``[p]``, ``[l]``, or a counted
``[cm]``). Files are scanned once, top to bottom, in the order the caller
hands them over; the clock and every open resource carry over from one file
to the next. Each channel slot (background, an image layer, a character, ...)
holds at most one open event; assigning a new resource closes the previous
one at the current clock.
"""

import logging
from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from fractions import Fraction

from scriptline.commands import CommandKind, classify
from scriptline.config import Config
from scriptline.decoder import TextSegment, decode_line, strip_block_comments
from scriptline.models import Channel, Command, Event, Timeline, TimelineSealedError
from scriptline.scan_state import ClearTracker, ScanSignal, ScanState, transition

logger = logging.getLogger(__name__)

Slot = tuple[Channel, str | None]


@dataclass
class _FileScan:
    """Mutable state of one file's scan. Discarded when the file ends."""
    filename: str
    state: ScanState = ScanState.SCANNING
    clears: ClearTracker = field(default_factory=ClearTracker)
    speaker: str | None = None
    face: str | None = None
    text_buffer: list[str] = field(default_factory=list)
    text_start: Fraction = Fraction(0)
    text_line: int | None = None

    def signal(self, signal: ScanSignal) -> None:
        new_state = transition(self.state, signal)
        if new_state is not self.state:
            logger.debug("%s: scan state %s -> %s", self.filename, self.state.value, new_state.value)
        self.state = new_state


class TimelineBuilder:
    """A build session: clock, open channel slots, and the timeline they feed.

    Lifecycle: create, ``process_file`` for each file in order, ``finalize``,
    then read ``timeline``. ``clear`` resets everything for another build.
    """

    def __init__(self, timeline: Timeline | None = None, config: Config | None = None) -> None:
        self.config = config or Config()
        self.timeline = timeline if timeline is not None else Timeline()
        self._clock = Fraction(0)
        self._open: dict[Slot, Event] = {}
        self._se_duration = Fraction(str(self.config.timeline.se_duration))
        self._blocking_duration = Fraction(self.config.timeline.blocking_video_duration)

    @property
    def clock(self) -> Fraction:
        return self._clock

    def open_events(self) -> list[Event]:
        return list(self._open.values())

    def clear(self) -> None:
        """Reset the timeline and all session state."""
        self.timeline.reset()
        self._clock = Fraction(0)
        self._open.clear()

    def build(self, files: Iterable[tuple[str, str]]) -> Timeline:
        """Process (filename, content) pairs in order and finalize."""
        for filename, content in files:
            self.process_file(content, filename)
        return self.finalize()

    def process_file(self, content: str, filename: str) -> None:
        """Scan one file against the carried-over clock."""
        if self.timeline.sealed:
            raise TimelineSealedError(
                f"timeline already finalized; clear() before processing {filename}"
            )

        # A non-blocking video cannot outlive the file that started it
        self._release((Channel.VIDEO, None))

        syntax = self.config.syntax
        content = strip_block_comments(content, syntax.block_comment_start, syntax.block_comment_end)
        scan = _FileScan(filename=filename)
        time_before = self._clock

        for index, raw_line in enumerate(content.split("\n")):
            line_number = index + 1
            line = raw_line.strip()
            if not line or line.startswith(syntax.comment_prefix):
                continue

            if line.startswith(syntax.label_prefix):
                scan.signal(ScanSignal.LABEL)
                if scan.state is ScanState.HALTED:
                    logger.debug(
                        "%s: stopping at label on line %d after external jump and stop",
                        filename, line_number,
                    )
                    break
                continue

            if line.startswith(syntax.speaker_prefix):
                self._flush_text(scan, self._clock)
                speaker, _, face = line[len(syntax.speaker_prefix):].partition(":")
                scan.speaker = speaker.strip() or None
                scan.face = face.strip() or None
                continue

            tokens = list(decode_line(line, line_number, at_prefix=syntax.at_prefix).tokens())
            for position, token in enumerate(tokens):
                if isinstance(token, TextSegment):
                    is_last = position == len(tokens) - 1
                    self._append_text(scan, token.text.strip() if is_last else token.text, line_number)
                    continue
                self._dispatch(scan, token)

        self._flush_text(scan, self._clock)
        self.timeline.files.append(filename)
        logger.debug("%s: time %s -> %s", filename, time_before, self._clock)

    def finalize(self) -> Timeline:
        """Close every open event at the final clock value and seal the timeline."""
        if self.timeline.sealed:
            return self.timeline

        self.timeline.total_time = self._clock
        for slot in list(self._open):
            self._release(slot)
        self.timeline.sealed = True

        counts = Counter(e.channel.value for e in self.timeline.events)
        logger.info(
            "Timeline finalized: total_time=%s, %d events from %d files (%s)",
            self.timeline.total_time, len(self.timeline.events), len(self.timeline.files),
            ", ".join(f"{k}={v}" for k, v in sorted(counts.items())) or "empty",
        )
        if logger.isEnabledFor(logging.DEBUG) and self.timeline.events:
            distribution = Counter(int(e.start_time) for e in self.timeline.events)
            logger.debug("Event distribution by start time: %s", dict(sorted(distribution.items())))
        return self.timeline

    # --- Slot bookkeeping ---

    def _open_event(
        self,
        channel: Channel,
        sub_key: str | None,
        attributes: dict[str, str | bool],
        scan: _FileScan,
        command: Command,
    ) -> Event:
        slot = (channel, sub_key)
        self._release(slot)
        event = Event(
            channel=channel,
            sub_key=sub_key,
            attributes=attributes,
            start_time=self._clock,
            origin_file=scan.filename,
            origin_line=command.source_line,
        )
        self.timeline.events.append(event)
        self._open[slot] = event
        return event

    def _release(self, slot: Slot) -> None:
        """Close the slot's open event at the current clock. No-op when empty."""
        event = self._open.pop(slot, None)
        if event is None:
            return
        if event.start_time == self._clock and self.config.timeline.drop_superseded_empty_events:
            # Replaced before the clock moved: never on screen
            events = self.timeline.events
            for index in range(len(events) - 1, -1, -1):
                if events[index] is event:
                    del events[index]
                    break
            return
        event.close(self._clock)

    def _release_channel(self, channel: Channel) -> None:
        for slot in [s for s in self._open if s[0] is channel]:
            self._release(slot)

    def _advance(self, units: Fraction | int) -> None:
        self._clock += units

    # --- Text ---

    def _append_text(self, scan: _FileScan, text: str, line_number: int) -> None:
        if not text.strip():
            return
        if not scan.text_buffer:
            scan.text_start = self._clock
            scan.text_line = line_number
        scan.text_buffer.append(text)

    def _flush_text(self, scan: _FileScan, end: Fraction) -> None:
        if not scan.text_buffer:
            return
        text = "".join(scan.text_buffer).strip()
        scan.text_buffer = []
        if not text:
            return

        attributes: dict[str, str | bool] = {"text": text}
        if scan.speaker is not None:
            attributes["speaker"] = scan.speaker
        if scan.face is not None:
            attributes["face"] = scan.face
        self.timeline.events.append(Event(
            channel=Channel.TEXT,
            attributes=attributes,
            start_time=scan.text_start,
            end_time=end,
            origin_file=scan.filename,
            origin_line=scan.text_line,
        ))

    # --- Command handlers ---

    def _dispatch(self, scan: _FileScan, command: Command) -> None:
        kind = classify(command)
        if kind is None:
            return
        _HANDLERS[kind](self, scan, command)

    def _on_bg(self, scan: _FileScan, command: Command) -> None:
        self._open_event(
            Channel.BACKGROUND, None, _pick(command, "storage", "method", "time"), scan, command,
        )

    def _on_image(self, scan: _FileScan, command: Command) -> None:
        layer = command.get("layer") or self.config.timeline.default_image_layer
        attributes = _pick(command, "storage", "x", "y", "name")
        attributes["layer"] = layer
        self._open_event(Channel.IMAGE, layer, attributes, scan, command)

    def _on_free_image(self, scan: _FileScan, command: Command) -> None:
        layer = command.get("layer") or command.get("name")
        if layer:
            self._release((Channel.IMAGE, layer))

    def _on_chara_show(self, scan: _FileScan, command: Command) -> None:
        name = command.get("name")
        if not name:
            return
        attributes = _pick(command, "face", "storage")
        attributes["name"] = name
        self._open_event(Channel.CHARACTER, name, attributes, scan, command)

    def _on_chara_hide(self, scan: _FileScan, command: Command) -> None:
        name = command.get("name")
        if name:
            self._release((Channel.CHARACTER, name))

    def _on_chara_hide_all(self, scan: _FileScan, command: Command) -> None:
        self._release_channel(Channel.CHARACTER)

    def _start_video(self, scan: _FileScan, command: Command) -> Event:
        attributes = _pick(command, "storage")
        attributes["command"] = command.name
        return self._open_event(Channel.VIDEO, None, attributes, scan, command)

    def _on_video(self, scan: _FileScan, command: Command) -> None:
        self._start_video(scan, command)

    def _on_blocking_video(self, scan: _FileScan, command: Command) -> None:
        # Playback finishes before the script continues
        event = self._start_video(scan, command)
        del self._open[(Channel.VIDEO, None)]
        self._advance(self._blocking_duration)
        event.close(self._clock)

    def _on_video_release(self, scan: _FileScan, command: Command) -> None:
        self._release((Channel.VIDEO, None))

    def _on_bgm_start(self, scan: _FileScan, command: Command) -> None:
        attributes = _pick(command, "storage")
        attributes["command"] = command.name
        attributes["loop"] = command.get("loop") != "false"
        self._open_event(Channel.BGM, None, attributes, scan, command)

    def _on_bgm_stop(self, scan: _FileScan, command: Command) -> None:
        self._release((Channel.BGM, None))

    def _on_se(self, scan: _FileScan, command: Command) -> None:
        attributes = _pick(command, "storage")
        attributes["command"] = command.name
        attributes["buf"] = command.get("buf") or "0"
        self.timeline.events.append(Event(
            channel=Channel.SE,
            sub_key=None,
            attributes=attributes,
            start_time=self._clock,
            end_time=self._clock + self._se_duration,
            origin_file=scan.filename,
            origin_line=command.source_line,
        ))

    def _on_wait(self, scan: _FileScan, command: Command) -> None:
        """Page wait and line wait: one reader advance, then the text is flushed."""
        self._advance(1)
        scan.clears.mark_content()
        self._flush_text(scan, self._clock)

    def _on_message_clear(self, scan: _FileScan, command: Command) -> None:
        if scan.text_buffer:
            scan.clears.mark_content()
        if scan.clears.consume():
            self._advance(1)
        self._flush_text(scan, self._clock)

    def _on_line_break(self, scan: _FileScan, command: Command) -> None:
        pass

    def _on_jump(self, scan: _FileScan, command: Command) -> None:
        storage = command.get("storage")
        if storage and storage.endswith(self.config.syntax.script_extension):
            scan.signal(ScanSignal.EXTERNAL_JUMP)

    def _on_halt(self, scan: _FileScan, command: Command) -> None:
        scan.signal(ScanSignal.HALT)


def _pick(command: Command, *keys: str) -> dict[str, str | bool]:
    """Copy the listed parameters that are present on the command."""
    return {k: command.parameters[k] for k in keys if k in command.parameters}


_HANDLERS: dict[CommandKind, Callable[[TimelineBuilder, _FileScan, Command], None]] = {
    CommandKind.BG: TimelineBuilder._on_bg,
    CommandKind.IMAGE: TimelineBuilder._on_image,
    CommandKind.FREE_IMAGE: TimelineBuilder._on_free_image,
    CommandKind.CHARA_SHOW: TimelineBuilder._on_chara_show,
    CommandKind.CHARA_HIDE: TimelineBuilder._on_chara_hide,
    CommandKind.CHARA_HIDE_ALL: TimelineBuilder._on_chara_hide_all,
    CommandKind.VIDEO: TimelineBuilder._on_video,
    CommandKind.MOVIE: TimelineBuilder._on_blocking_video,
    CommandKind.BG_MOVIE: TimelineBuilder._on_blocking_video,
    CommandKind.WAIT_VIDEO: TimelineBuilder._on_video_release,
    CommandKind.FREE_VIDEO: TimelineBuilder._on_video_release,
    CommandKind.PLAY_BGM: TimelineBuilder._on_bgm_start,
    CommandKind.FADE_IN_BGM: TimelineBuilder._on_bgm_start,
    CommandKind.STOP_BGM: TimelineBuilder._on_bgm_stop,
    CommandKind.FADE_OUT_BGM: TimelineBuilder._on_bgm_stop,
    CommandKind.PLAY_SE: TimelineBuilder._on_se,
    CommandKind.FADE_IN_SE: TimelineBuilder._on_se,
    CommandKind.PAGE_WAIT: TimelineBuilder._on_wait,
    CommandKind.LINE_WAIT: TimelineBuilder._on_wait,
    CommandKind.MESSAGE_CLEAR: TimelineBuilder._on_message_clear,
    CommandKind.LINE_BREAK: TimelineBuilder._on_line_break,
    CommandKind.JUMP: TimelineBuilder._on_jump,
    CommandKind.HALT: TimelineBuilder._on_halt,
}

_unhandled = set(CommandKind) - _HANDLERS.keys()
if _unhandled:
    raise RuntimeError(f"No timeline handler for command kinds: {sorted(k.value for k in _unhandled)}")
