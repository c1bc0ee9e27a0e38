"""Shared test fixtures for scrollgate tests."""

import pytest

from scrollgate.config import Config, GateConfig, PuzzleConfig, ScrollConfig, StorageConfig, StoryConfig
from scrollgate.models import LayoutSnapshot, Span
from scrollgate.parser import PageParser
from scrollgate.progress import MemoryKeyValueStore, ProgressStore
from scrollgate.session import StorySession

PAGE_TEXTS = [
    "<txt>{intro}</txt>\n{\nintro = \"Welcome.\"\n}\n",
    "<txt>{hall}</txt>\n<pic>{portrait}</pic>\n{\nhall = \"A long hall.\"\nportrait = \"img/portrait.png\"\n}\n",
    (
        "<txt>{riddle_text}</txt>\n"
        "<inputbox>{riddle}</inputbox>\n"
        "{\n"
        "riddle_text = \"What is six times seven?\"\n"
        "riddle = {\n"
        "    answer = \"42\"\n"
        "    errorMessage = \"try again\"\n"
        "}\n"
        "}\n"
    ),
    "<txt>{ending}</txt>\n{\nending = \"The end.\"\n}\n",
]

PAGE_HEIGHT = 1000
VIEWPORT_HEIGHT = 800


@pytest.fixture()
def config(tmp_path):
    return Config(
        story=StoryConfig(story_dir=str(tmp_path / "plot")),
        puzzle=PuzzleConfig(),
        gate=GateConfig(),
        scroll=ScrollConfig(),
        storage=StorageConfig(db_path=str(tmp_path / "progress.db")),
    )


@pytest.fixture()
def pages():
    """Four pages; page 2 holds a puzzle answered by "42"."""
    parser = PageParser()
    return [parser.parse(text, i) for i, text in enumerate(PAGE_TEXTS)]


@pytest.fixture()
def make_layout():
    """Build a layout of stacked 1000-unit pages with the puzzle box at 600-700 of page 2."""
    def _make(
        offset: int = 0,
        page_height: float = PAGE_HEIGHT,
        count: int = 4,
        viewport_height: float = VIEWPORT_HEIGHT,
        puzzles: dict[int, tuple[float, float]] | None = None,
    ) -> LayoutSnapshot:
        if puzzles is None:
            puzzles = {2: (600, 700)}
        return LayoutSnapshot(
            viewport_height=viewport_height,
            content_height=page_height * count,
            offset=offset,
            pages={i: Span(top=i * page_height, bottom=(i + 1) * page_height) for i in range(count)},
            puzzles={
                i: Span(top=i * page_height + top, bottom=i * page_height + bottom)
                for i, (top, bottom) in puzzles.items()
            },
        )
    return _make


@pytest.fixture()
def kv():
    return MemoryKeyValueStore()


@pytest.fixture()
def store(kv, config):
    return ProgressStore(kv, config.storage.progress_key)


@pytest.fixture()
def session(config, pages, store):
    return StorySession(config, pages, store)
