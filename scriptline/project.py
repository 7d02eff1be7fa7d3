"""Project loader: find scenario files, order them, and feed the builders.

All file I/O happens here, before content reaches the timeline builder.
"""

import logging
import re
from pathlib import Path

from pydantic import BaseModel

from scriptline.config import Config
from scriptline.extractors.inventory_extractor import InventoryExtractor
from scriptline.models import ScriptInventory, Timeline
from scriptline.timeline import TimelineBuilder

logger = logging.getLogger(__name__)

CHAPTER_PATTERN = re.compile(r"chapter(\d+)[_-]?(\d*)")
NUMBER_PATTERN = re.compile(r"(\d+)")


class ScriptFile(BaseModel):
    """One .ks file found under the scenario directory."""
    filename: str
    path: Path
    relative_path: str
    is_system: bool = False
    priority: tuple[int, int] = (1000, 0)


class ProjectLoadResult:
    """Summary of loading one project."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.scenario_dir: Path | None = None
        self.files: list[ScriptFile] = []
        self.inventories: dict[str, ScriptInventory] = {}
        self.contents: dict[str, str] = {}
        self.unreadable: list[str] = []

    @property
    def story_files(self) -> list[ScriptFile]:
        return sorted(
            (f for f in self.files if not f.is_system),
            key=lambda f: f.priority,
        )

    @property
    def system_files(self) -> list[ScriptFile]:
        return [f for f in self.files if f.is_system]

    def __repr__(self) -> str:
        return (
            f"ProjectLoadResult({self.root.name}: {len(self.files)} files, "
            f"{len(self.story_files)} story, {len(self.system_files)} system, "
            f"{len(self.unreadable)} unreadable)"
        )


def story_priority(filename: str) -> tuple[int, int]:
    """Narrative sort key derived from a file name.

    title < prologue < chapterN-M < other numbered scenes < epilogue < ending
    < everything else.
    """
    lower = filename.lower()

    if "title" in lower:
        return (10, 0)

    number = NUMBER_PATTERN.search(lower)
    sub = int(number.group(1)) if number else 0

    if "prologue" in lower or "prolog" in lower:
        return (100, sub)

    chapter = CHAPTER_PATTERN.search(lower)
    if chapter:
        chapter_no = int(chapter.group(1) or 0)
        scene_no = int(chapter.group(2) or 0)
        return (200 + chapter_no * 100, scene_no)

    if "epilogue" in lower or "epilog" in lower:
        return (9000, sub)

    if "ending" in lower or "end" in lower:
        return (9500, sub)

    if number:
        return (500, sub)

    return (1000, 0)


def is_system_file(filename: str, config: Config | None = None) -> bool:
    config = config or Config()
    return any(
        re.search(pattern, filename, re.IGNORECASE)
        for pattern in config.project.system_file_patterns
    )


def find_scenario_dir(root: Path, config: Config | None = None) -> Path:
    """Locate the scenario directory of a project.

    Accepts a project root, its ``data`` folder, or the scenario folder
    itself. Falls back to ``root`` when no known layout matches.
    """
    config = config or Config()
    for candidate in config.project.scenario_dirs:
        path = root / candidate
        if path.is_dir():
            return path
    return root


def collect_script_files(scenario_dir: Path, config: Config | None = None) -> list[ScriptFile]:
    """Recursively collect script files, skipping excluded directories."""
    config = config or Config()
    extension = config.syntax.script_extension
    excluded = set(config.project.excluded_dirs)
    files: list[ScriptFile] = []

    def _walk(directory: Path) -> None:
        for entry in sorted(directory.iterdir()):
            if entry.is_dir():
                if entry.name not in excluded:
                    _walk(entry)
            elif entry.is_file() and entry.name.endswith(extension):
                files.append(ScriptFile(
                    filename=entry.name,
                    path=entry,
                    relative_path=entry.relative_to(scenario_dir).as_posix(),
                    is_system=is_system_file(entry.name, config),
                    priority=story_priority(entry.name),
                ))

    _walk(scenario_dir)
    return files


def load_project(root: Path, config: Config | None = None) -> ProjectLoadResult:
    """Read every script file of a project and extract its inventory."""
    config = config or Config()
    root = root.resolve()
    result = ProjectLoadResult(root)
    result.scenario_dir = find_scenario_dir(root, config)
    result.files = collect_script_files(result.scenario_dir, config)

    extractor = InventoryExtractor(config.syntax)
    for script in result.files:
        try:
            content = script.path.read_text(encoding=config.project.encoding, errors="replace")
        except OSError as e:
            logger.warning("Failed to read %s: %s", script.path, e)
            result.unreadable.append(script.filename)
            continue
        result.contents[script.filename] = content
        result.inventories[script.filename] = extractor.extract(content, script.filename)

    logger.info("Loaded %s from %s", result, result.scenario_dir)
    return result


def build_project_timeline(
    loaded: ProjectLoadResult,
    config: Config | None = None,
    timeline: Timeline | None = None,
) -> Timeline:
    """Build and finalize the timeline of a project's story files, in story order."""
    builder = TimelineBuilder(timeline=timeline, config=config or Config())
    builder.clear()
    for script in loaded.story_files:
        content = loaded.contents.get(script.filename)
        if content is None:
            continue
        builder.process_file(content, script.filename)
    return builder.finalize()
