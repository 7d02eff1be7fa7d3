"""Extract a static cross-reference of one script file.

Labels, jumps, calls, choice links, conditional branches, resource
references and dialogue. Conditions are recorded as text, never evaluated.
"""

import logging

from scriptline.decoder import decode_line
from scriptline.extractors.base import BaseExtractor
from scriptline.models import (
    BranchRef,
    CallRef,
    Command,
    DialogueLine,
    JumpRef,
    LabelRef,
    LinkRef,
    ResourceRef,
    ScriptInventory,
)

logger = logging.getLogger(__name__)

# Resource folders under the project's data directory
FOLDER_BG = "bgimage"
FOLDER_FG = "fgimage"
FOLDER_VIDEO = "video"
FOLDER_BGM = "bgm"
FOLDER_SOUND = "sound"

CLICK_COMMANDS = frozenset({"p", "l"})


class InventoryExtractor(BaseExtractor):
    """Build a ScriptInventory from one file's content."""

    def extract(self, content: str, filename: str) -> ScriptInventory:
        inventory = ScriptInventory(filename=filename)
        speaker: str | None = None
        text_parts: list[str] = []
        text_line = 0

        def flush_dialogue() -> None:
            nonlocal text_parts
            if text_parts:
                inventory.dialogues.append(DialogueLine(
                    speaker=speaker, text="".join(text_parts), line=text_line,
                ))
                text_parts = []

        for line_number, line in self.iter_lines(content):
            if line.startswith(self.syntax.label_prefix):
                name = line[len(self.syntax.label_prefix):].split(maxsplit=1)
                if name:
                    inventory.labels.append(LabelRef(name=name[0], line=line_number))
                continue

            if line.startswith(self.syntax.speaker_prefix):
                flush_dialogue()
                name = line[len(self.syntax.speaker_prefix):].split(":")[0].strip()
                speaker = name or None
                continue

            decoded = decode_line(line, line_number, at_prefix=self.syntax.at_prefix)
            for command in decoded:
                self._record(inventory, command)

            if decoded.is_at_command:
                continue
            text = "".join(decoded.texts).strip()
            if text:
                if not text_parts:
                    text_line = line_number
                text_parts.append(text)

        flush_dialogue()
        logger.debug(
            "%s: %d labels, %d jumps, %d dialogue blocks",
            filename, len(inventory.labels), len(inventory.jumps), len(inventory.dialogues),
        )
        return inventory

    def _record(self, inventory: ScriptInventory, command: Command) -> None:
        name = command.name
        get = command.get
        line = command.source_line

        if name in CLICK_COMMANDS:
            inventory.click_count += 1
        elif name == "jump":
            inventory.jumps.append(JumpRef(
                storage=get("storage"), target=get("target"), cond=get("cond"), line=line,
            ))
        elif name == "call":
            inventory.calls.append(CallRef(storage=get("storage"), target=get("target"), line=line))
        elif name in ("glink", "link", "button"):
            inventory.links.append(LinkRef(
                type=name,
                text=get("text") if name == "glink" else None,
                graphic=get("graphic") if name == "button" else None,
                storage=get("storage"),
                target=get("target"),
                line=line,
            ))
        elif name in ("if", "elsif"):
            inventory.branches.append(BranchRef(type=name, exp=get("exp") or "", line=line))
        elif name == "bg":
            if get("storage"):
                inventory.images.append(ResourceRef(
                    type="bg", tag=name, storage=get("storage"), folder=FOLDER_BG, line=line,
                ))
        elif name == "image":
            if get("storage"):
                inventory.images.append(ResourceRef(
                    type="image", tag=name, storage=get("storage"), folder=FOLDER_FG,
                    layer=get("layer") or "0", line=line,
                ))
        elif name == "chara_show":
            # Shown even without storage: the portrait comes from chara_new
            inventory.images.append(ResourceRef(
                type=name, tag=name, storage=get("storage"), folder=FOLDER_FG,
                name=get("name") or "", face=get("face"), line=line,
            ))
        elif name in ("chara_new", "chara_face"):
            if get("storage"):
                inventory.images.append(ResourceRef(
                    type=name, tag=name, storage=get("storage"), folder=FOLDER_FG,
                    name=get("name") or "",
                    face=(get("face") or "") if name == "chara_face" else None,
                    line=line,
                ))
        elif name in ("video", "movie", "bgmovie"):
            if get("storage"):
                inventory.videos.append(ResourceRef(
                    type=name, tag=name, storage=get("storage"), folder=FOLDER_VIDEO, line=line,
                ))
        elif name in ("playbgm", "fadeinbgm"):
            if get("storage"):
                inventory.audio.append(ResourceRef(
                    type="bgm", tag=name, storage=get("storage"), folder=FOLDER_BGM, line=line,
                ))
        elif name in ("playse", "fadeinse"):
            if get("storage"):
                inventory.audio.append(ResourceRef(
                    type="se", tag=name, storage=get("storage"), folder=FOLDER_SOUND, line=line,
                ))


def extract_inventory(content: str, filename: str) -> ScriptInventory:
    """Convenience wrapper with the default syntax."""
    return InventoryExtractor().extract(content, filename)
