"""Shared test fixtures for scriptline tests."""

from pathlib import Path

import pytest

from scriptline.config import Config
from scriptline.timeline import TimelineBuilder


@pytest.fixture()
def builder():
    """A fresh build session with default config."""
    return TimelineBuilder(config=Config())


@pytest.fixture()
def build(builder):
    """Process (filename, content) pairs in order and return the finalized timeline."""
    def _build(*files: tuple[str, str]):
        return builder.build(files)
    return _build


@pytest.fixture()
def make_project(tmp_path):
    """Write a project tree: {relative path under data/scenario: content}."""
    def _make(files: dict[str, str]) -> Path:
        root = tmp_path / "game"
        scenario = root / "data" / "scenario"
        for rel, content in files.items():
            path = scenario / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return root
    return _make
