"""Configuration loading for scriptline."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


class SyntaxConfig(BaseModel):
    label_prefix: str = "*"
    comment_prefix: str = ";"
    speaker_prefix: str = "#"
    at_prefix: str = "@"
    block_comment_start: str = "/*"
    block_comment_end: str = "*/"
    script_extension: str = ".ks"


class TimelineConfig(BaseModel):
    se_duration: float = 0.5
    blocking_video_duration: int = 1
    default_image_layer: str = "0"
    # Resources replaced before the clock moved never appear on the timeline
    drop_superseded_empty_events: bool = True


class ProjectConfig(BaseModel):
    scenario_dirs: list[str] = Field(default_factory=lambda: [
        "data/scenario", "scenario",
    ])
    excluded_dirs: list[str] = Field(default_factory=lambda: ["system"])
    system_file_patterns: list[str] = Field(default_factory=lambda: [
        r"^_",
        r"^config\.ks$",
        r"^make\.ks$",
        r"^cg\.ks$",
        r"^scene\d*\.ks$",
        r"^replay",
        r"^first\.ks$",
        r"^save\.ks$",
        r"^load\.ks$",
        r"^backlog\.ks$",
        r"^menu\.ks$",
    ])
    encoding: str = "utf-8"
    # Optional per-file notes for flow chart node labels, looked up in the project root
    story_summary_file: str = "story-summary.json"


class Config(BaseModel):
    syntax: SyntaxConfig = Field(default_factory=SyntaxConfig)
    timeline: TimelineConfig = Field(default_factory=TimelineConfig)
    project: ProjectConfig = Field(default_factory=ProjectConfig)


def _project_root() -> Path:
    """Return the scriptline project root directory."""
    return Path(__file__).parent.parent


def load_config(config_path: Path | None = None) -> Config:
    """Load config from YAML file. Falls back to defaults if file missing."""
    if config_path is None:
        config_path = _project_root() / "config.yaml"

    if config_path.exists():
        raw: dict[str, Any] = yaml.safe_load(config_path.read_text()) or {}
        return Config(**raw)

    return Config()
