"""Story flow chart: story files as nodes, jump/call/link transitions as edges.

Only transitions between story files are drawn; system files and targets
outside the project are left out. Each (source, target, kind) pair appears
once, carrying the label of its first occurrence.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any

from scriptline.models import FlowEdge, FlowNode, StoryFlow
from scriptline.project import ProjectLoadResult

logger = logging.getLogger(__name__)

DEFAULT_LINK_LABEL = "choice"

_TAG_PATTERN = re.compile(r"<[^>]*>")
_MERMAID_ESCAPES = {
    '"': "'",
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    "[": "&#91;",
    "]": "&#93;",
    "{": "&#123;",
    "}": "&#125;",
}


def node_id(filename: str) -> str:
    """Mermaid-safe id for a script file; never starts with a digit."""
    stem = re.sub(r"\.ks$", "", filename, flags=re.IGNORECASE)
    stem = re.sub(r"[^a-zA-Z0-9]", "_", stem)
    stem = re.sub(r"_+", "_", stem).strip("_")
    return f"node_{stem}"


def escape_label(text: str) -> str:
    text = _TAG_PATTERN.sub("", text)
    return "".join(_MERMAID_ESCAPES.get(ch, ch) for ch in text)


def load_story_summary(path: Path) -> dict[str, Any]:
    """Read the optional story summary file: {filename: str | {scene, characters, summary, emotion}}."""
    if not path.is_file():
        logger.debug("No story summary at %s, labelling nodes by file name", path)
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Failed to read story summary %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Story summary %s is not a JSON object, ignoring it", path)
        return {}
    logger.info("Loaded story summary: %d entries", len(data))
    return data


def detail_label(filename: str, entry: Any) -> list[str]:
    """Node label lines: the file name, then scene, characters, situation and mood."""
    lines = [filename]
    if isinstance(entry, dict):
        if entry.get("scene"):
            lines.append(f"Scene: {entry['scene']}")
        for character in entry.get("characters") or []:
            name = character.get("name") if isinstance(character, dict) else character
            if name:
                lines.append(f"Character: {name}")
        if entry.get("summary"):
            lines.append(f"Situation: {entry['summary']}")
        if entry.get("emotion"):
            lines.append(f"Emotion: {entry['emotion']}")
    elif isinstance(entry, str) and entry:
        lines.append(f"Situation: {entry}")
    return lines


def build_story_flow(
    loaded: ProjectLoadResult,
    summary: dict[str, Any] | None = None,
    detail: bool = False,
) -> StoryFlow:
    """Derive the story flow of a loaded project."""
    summary = summary or {}
    story_files = loaded.story_files
    story_names = {f.filename for f in story_files}
    flow = StoryFlow()
    seen: set[tuple[str, str, str]] = set()

    def _add(source: str, target: str | None, kind: str, label: str | None, line: int | None) -> None:
        if not target or target not in story_names:
            return
        key = (source, node_id(target), kind)
        if key in seen:
            return
        seen.add(key)
        flow.edges.append(FlowEdge(source=source, target=key[1], kind=kind, label=label, line=line))

    for script in story_files:
        source = node_id(script.filename)
        label = detail_label(script.filename, summary.get(script.filename)) if detail else [script.filename]
        flow.nodes.append(FlowNode(id=source, filename=script.filename, label=label))

        inventory = loaded.inventories.get(script.filename)
        if inventory is None:
            continue
        for jump in inventory.jumps:
            _add(source, jump.storage, "jump", jump.cond, jump.line)
        for call in inventory.calls:
            _add(source, call.storage, "call", "call", call.line)
        for link in inventory.links:
            _add(source, link.storage, "link", link.text or DEFAULT_LINK_LABEL, link.line)

    logger.info("Story flow: %d nodes, %d edges", len(flow.nodes), len(flow.edges))
    return flow


def to_mermaid(flow: StoryFlow) -> str:
    """Render a top-down Mermaid flowchart, each node followed by its outgoing edges."""
    if not flow.nodes:
        return 'graph TD\n    empty["No story files"]\n'

    outgoing: dict[str, list[FlowEdge]] = {}
    for edge in flow.edges:
        outgoing.setdefault(edge.source, []).append(edge)

    lines = ["graph TD"]
    for node in flow.nodes:
        label = "<br/>".join(escape_label(part) for part in node.label)
        lines.append(f'    {node.id}["{label}"]')
        for edge in outgoing.get(node.id, []):
            arrow = "-.->" if edge.kind == "call" else "-->"
            if edge.label:
                lines.append(f"    {edge.source} {arrow}|{escape_label(edge.label)}| {edge.target}")
            else:
                lines.append(f"    {edge.source} {arrow} {edge.target}")
    return "\n".join(lines) + "\n"
