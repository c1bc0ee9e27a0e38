"""Configuration loading for scrollgate."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


class StoryConfig(BaseModel):
    story_dir: str = "plot"
    page_pattern: str = "p{n}.txt"
    page_count: int | None = None  # None: discover every file matching page_pattern
    text_load_failure: str = "文本加载失败"
    max_text_bytes: int = 500_000


class PuzzleConfig(BaseModel):
    answer_keys: list[str] = Field(default_factory=lambda: ["谜底", "answer"])
    error_message_keys: list[str] = Field(default_factory=lambda: [
        "错误提示文案", "errorMessage", "error_message",
    ])
    wrong_answer_message: str = "答案错误，请重试！"
    success_message: str = "恭喜！谜题解开！"


class GateConfig(BaseModel):
    tolerance: float = 10.0  # shrinks the viewport on both edges
    probe_step: int = 10


class ScrollConfig(BaseModel):
    key_step: int = 100
    page_step_ratio: float = 0.9
    touch_threshold: float = 50.0
    hint_epsilon: float = 1.0
    resize_debounce: float = 0.25  # seconds


class StorageConfig(BaseModel):
    db_path: str = "data/progress.db"
    progress_key: str = "mysteryGameProgress"


class Config(BaseModel):
    story: StoryConfig = Field(default_factory=StoryConfig)
    puzzle: PuzzleConfig = Field(default_factory=PuzzleConfig)
    gate: GateConfig = Field(default_factory=GateConfig)
    scroll: ScrollConfig = Field(default_factory=ScrollConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    @property
    def resolved_db_path(self) -> Path:
        """Resolve db_path relative to project root."""
        p = Path(self.storage.db_path).expanduser()
        if p.is_absolute():
            return p
        return _project_root() / p

    @property
    def resolved_story_dir(self) -> Path:
        p = Path(self.story.story_dir).expanduser()
        if p.is_absolute():
            return p
        return _project_root() / p


def _project_root() -> Path:
    """Return the scrollgate project root directory."""
    return Path(__file__).parent.parent


def load_config(config_path: Path | None = None) -> Config:
    """Load config from YAML file. Falls back to defaults if file missing."""
    if config_path is None:
        config_path = _project_root() / "config.yaml"

    if config_path.exists():
        raw: dict[str, Any] = yaml.safe_load(config_path.read_text()) or {}
        return Config(**raw)

    return Config()
