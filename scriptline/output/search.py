"""Search dialogue, labels, jumps and choices across script inventories."""

import logging
from collections.abc import Mapping

from scriptline.models import ScriptInventory, SearchHit

logger = logging.getLogger(__name__)


def _matches(value: str | None, needle: str) -> bool:
    return bool(value) and needle in value.lower()


def search_inventories(inventories: Mapping[str, ScriptInventory], query: str) -> list[SearchHit]:
    """Case-insensitive substring search. Returns hits grouped by file."""
    needle = query.strip().lower()
    if not needle:
        return []

    hits: list[SearchHit] = []
    for filename, inventory in inventories.items():
        for dialogue in inventory.dialogues:
            if _matches(dialogue.text, needle) or _matches(dialogue.speaker, needle):
                hits.append(SearchHit(
                    filename=filename, kind="dialogue", text=dialogue.text,
                    speaker=dialogue.speaker, line=dialogue.line,
                ))

        for label in inventory.labels:
            if _matches(label.name, needle):
                hits.append(SearchHit(
                    filename=filename, kind="label", text=f"*{label.name}", line=label.line,
                ))

        for jump in inventory.jumps:
            if _matches(f"{jump.storage or ''} {jump.target or ''}", needle):
                target = f" {jump.target}" if jump.target else ""
                hits.append(SearchHit(
                    filename=filename, kind="jump",
                    text=f"[jump] -> {jump.storage or ''}{target}", line=jump.line,
                ))

        for link in inventory.links:
            if _matches(link.text, needle) or _matches(link.storage, needle):
                hits.append(SearchHit(
                    filename=filename, kind="link",
                    text=f"[{link.type}] {link.text or ''} -> {link.storage or ''}", line=link.line,
                ))

    logger.info("Search %r: %d hits in %d files", query, len(hits), len(inventories))
    return hits
