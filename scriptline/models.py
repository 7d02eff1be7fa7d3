"""Pydantic models for scriptline."""

from enum import Enum
from fractions import Fraction
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer


class ScriptlineError(Exception):
    """Base class for errors raised on API misuse."""


class ClosedEventError(ScriptlineError):
    """A closed event was modified, or closed a second time."""


class TimelineSealedError(ScriptlineError):
    """A file was processed after the timeline was finalized."""


def _to_fraction(value: Any) -> Any:
    if value is None or isinstance(value, Fraction):
        return value
    if isinstance(value, float):
        return Fraction(str(value))
    if isinstance(value, (int, str)) and not isinstance(value, bool):
        return Fraction(value)
    return value


# Clock values are rational; JSON output carries them as floats
TimeValue = Annotated[
    Fraction,
    BeforeValidator(_to_fraction),
    PlainSerializer(float, return_type=float),
]


class Channel(str, Enum):
    TEXT = "text"
    BACKGROUND = "bg"
    IMAGE = "image"
    CHARACTER = "chara"
    VIDEO = "video"
    BGM = "bgm"
    SE = "se"


# --- Engine models ---


class FrozenAttributes(dict):
    """Attribute mapping of a closed event. Reads like a dict, rejects writes."""

    def _readonly(self, *args: Any, **kwargs: Any) -> None:
        raise ClosedEventError("attributes of a closed event are read-only")

    __setitem__ = __delitem__ = __ior__ = _readonly
    clear = pop = popitem = setdefault = update = _readonly

    def __reduce__(self) -> tuple[Any, ...]:
        return (FrozenAttributes, (dict(self),))


class Command(BaseModel):
    """One decoded tag or at-command. Transient."""
    name: str
    parameters: dict[str, str] = Field(default_factory=dict)
    source_line: int = 0

    def get(self, key: str, default: str | None = None) -> str | None:
        return self.parameters.get(key, default)


class Event(BaseModel):
    """An interval on the pacing clock. Immutable once end_time is set."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    channel: Channel
    sub_key: str | None = None
    attributes: dict[str, str | bool] = Field(default_factory=dict)
    start_time: TimeValue
    end_time: TimeValue | None = None
    origin_file: str
    origin_line: int | None = None

    def model_post_init(self, __context: Any) -> None:
        if self.end_time is not None:
            self.__dict__["attributes"] = FrozenAttributes(self.attributes)

    def __setattr__(self, name: str, value: Any) -> None:
        if self.end_time is not None:
            raise ClosedEventError(
                f"cannot set {name!r} on closed {self.channel.value} event "
                f"from {self.origin_file}:{self.origin_line}"
            )
        super().__setattr__(name, value)

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    @property
    def duration(self) -> Fraction | None:
        if self.end_time is None:
            return None
        return self.end_time - self.start_time

    @property
    def storage(self) -> str | None:
        value = self.attributes.get("storage")
        return value if isinstance(value, str) else None

    @property
    def speaker(self) -> str | None:
        value = self.attributes.get("speaker")
        return value if isinstance(value, str) else None

    @property
    def text(self) -> str | None:
        value = self.attributes.get("text")
        return value if isinstance(value, str) else None

    def close(self, at: Fraction) -> None:
        """Set end_time. An event can be closed only once, never before it starts."""
        if self.end_time is not None:
            raise ClosedEventError(
                f"{self.channel.value} event from {self.origin_file}:{self.origin_line} "
                f"already closed at {self.end_time}"
            )
        if at < self.start_time:
            raise ClosedEventError(
                f"cannot close event starting at {self.start_time} at {at}"
            )
        super().__setattr__("attributes", FrozenAttributes(self.attributes))
        super().__setattr__("end_time", at)

    def is_active_at(self, time: Fraction | float) -> bool:
        return (
            self.end_time is not None
            and self.start_time <= time < self.end_time
        )


class Timeline(BaseModel):
    """All derived events for one build session. Owned by the caller."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    events: list[Event] = Field(default_factory=list)
    total_time: TimeValue = Fraction(0)
    sealed: bool = False
    files: list[str] = Field(default_factory=list)

    def reset(self) -> None:
        self.events.clear()
        self.files.clear()
        self.total_time = Fraction(0)
        self.sealed = False

    def events_for(self, channel: Channel) -> list[Event]:
        return [e for e in self.events if e.channel == channel]


class Track(BaseModel):
    """Events of one (channel, sub_key) slot, for display."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str
    display_name: str
    channel: Channel
    events: list[Event] = Field(default_factory=list)

    def edges(self) -> list[Fraction]:
        """Sorted distinct clip boundaries (start and end times)."""
        points: set[Fraction] = set()
        for event in self.events:
            points.add(event.start_time)
            if event.end_time is not None:
                points.add(event.end_time)
        return sorted(points)


class TimelineStats(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    total_time: TimeValue
    total_events: int
    track_count: int
    per_channel_counts: dict[str, int]


# --- Inventory models (static cross-reference of one file) ---


class LabelRef(BaseModel):
    name: str
    line: int


class JumpRef(BaseModel):
    storage: str | None = None
    target: str | None = None
    cond: str | None = None
    line: int | None = None


class CallRef(BaseModel):
    storage: str | None = None
    target: str | None = None
    line: int | None = None


class LinkRef(BaseModel):
    type: str  # 'glink', 'link' or 'button'
    text: str | None = None
    graphic: str | None = None
    storage: str | None = None
    target: str | None = None
    line: int | None = None


class BranchRef(BaseModel):
    type: str  # 'if' or 'elsif'
    exp: str = ""
    line: int | None = None


class ResourceRef(BaseModel):
    """A reference to an image, video or audio file."""
    type: str
    tag: str
    storage: str | None = None
    folder: str
    layer: str | None = None
    name: str | None = None
    face: str | None = None
    line: int | None = None


class DialogueLine(BaseModel):
    speaker: str | None = None
    text: str
    line: int


class ScriptInventory(BaseModel):
    filename: str
    labels: list[LabelRef] = Field(default_factory=list)
    jumps: list[JumpRef] = Field(default_factory=list)
    calls: list[CallRef] = Field(default_factory=list)
    branches: list[BranchRef] = Field(default_factory=list)
    images: list[ResourceRef] = Field(default_factory=list)
    videos: list[ResourceRef] = Field(default_factory=list)
    audio: list[ResourceRef] = Field(default_factory=list)
    links: list[LinkRef] = Field(default_factory=list)
    dialogues: list[DialogueLine] = Field(default_factory=list)
    click_count: int = 0

    @property
    def bgm_count(self) -> int:
        return sum(1 for a in self.audio if a.type == "bgm")

    @property
    def se_count(self) -> int:
        return sum(1 for a in self.audio if a.type == "se")


class SearchHit(BaseModel):
    filename: str
    kind: str  # 'dialogue', 'label', 'jump' or 'link'
    text: str
    speaker: str | None = None
    line: int | None = None


# --- Story flow models (file-to-file transitions) ---


class FlowNode(BaseModel):
    id: str
    filename: str
    label: list[str] = Field(default_factory=list)


class FlowEdge(BaseModel):
    source: str
    target: str
    kind: str  # 'jump', 'call' or 'link'
    label: str | None = None
    line: int | None = None


class StoryFlow(BaseModel):
    """Story files in narrative order and the transitions between them."""
    nodes: list[FlowNode] = Field(default_factory=list)
    edges: list[FlowEdge] = Field(default_factory=list)
