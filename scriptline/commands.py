"""The closed set of command kinds the timeline builder understands."""

from enum import Enum

from scriptline.models import Command


class CommandKind(str, Enum):
    # Background and foreground images
    BG = "bg"
    IMAGE = "image"
    FREE_IMAGE = "freeimage"

    # Character portraits
    CHARA_SHOW = "chara_show"
    CHARA_HIDE = "chara_hide"
    CHARA_HIDE_ALL = "chara_hide_all"

    # Video
    VIDEO = "video"
    MOVIE = "movie"
    BG_MOVIE = "bgmovie"
    WAIT_VIDEO = "wait_video"
    FREE_VIDEO = "free_video"

    # Audio
    PLAY_BGM = "playbgm"
    FADE_IN_BGM = "fadeinbgm"
    STOP_BGM = "stopbgm"
    FADE_OUT_BGM = "fadeoutbgm"
    PLAY_SE = "playse"
    FADE_IN_SE = "fadeinse"

    # Pacing
    PAGE_WAIT = "p"
    LINE_WAIT = "l"
    MESSAGE_CLEAR = "cm"
    LINE_BREAK = "r"

    # Control flow (recorded, never evaluated)
    JUMP = "jump"
    HALT = "s"


_BY_NAME = {kind.value: kind for kind in CommandKind}


def classify(command: Command) -> CommandKind | None:
    """Return the kind of a decoded command, or None for unknown names."""
    return _BY_NAME.get(command.name)
