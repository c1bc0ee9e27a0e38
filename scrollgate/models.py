"""Pydantic models for scrollgate."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_serializer


class ElementKind(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    PUZZLE = "puzzle"


# --- Page model (what comes out of the parser) ---


class Element(BaseModel):
    """One renderable unit of a page, bound to config by variable name."""
    kind: ElementKind
    variable_name: str
    content: str | dict[str, Any] | None = None
    resolved: str | None = None  # loaded text, or resolved image path
    image_size: tuple[int, int] | None = None


class Page(BaseModel):
    index: int
    elements: list[Element] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_puzzle(self) -> bool:
        return any(e.kind == ElementKind.PUZZLE for e in self.elements)

    @property
    def puzzle(self) -> Element | None:
        for element in self.elements:
            if element.kind == ElementKind.PUZZLE:
                return element
        return None


class PageLoadResult(BaseModel):
    """Pages that loaded, plus the page indices that could not be read."""
    pages: list[Page] = Field(default_factory=list)
    failures: dict[int, str] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.pages

    @property
    def is_partial(self) -> bool:
        return bool(self.pages) and bool(self.failures)


# --- Persisted state ---


class Progress(BaseModel):
    """Persisted reader progress. Serialized as {scrollPosition, completedPuzzles}."""
    model_config = ConfigDict(populate_by_name=True)

    scroll_position: int = Field(default=0, ge=0, alias="scrollPosition")
    completed_puzzles: set[int] = Field(default_factory=set, alias="completedPuzzles")

    @field_serializer("completed_puzzles")
    def _serialize_completed(self, completed: set[int]) -> list[int]:
        return sorted(completed)

    def to_record(self) -> str:
        return self.model_dump_json(by_alias=True)


# --- Layout geometry (supplied by the renderer) ---


class Span(BaseModel):
    """Vertical range in content coordinates."""
    model_config = ConfigDict(frozen=True)

    top: float
    bottom: float

    def overlaps(self, top: float, bottom: float) -> bool:
        return self.top < bottom and self.bottom > top


class LayoutSnapshot(BaseModel):
    """Geometry of the rendered story at one scroll offset.

    Page and puzzle spans are in content coordinates, so the same snapshot can
    be re-evaluated at any offset with at().
    """
    model_config = ConfigDict(frozen=True)

    viewport_height: float
    content_height: float
    offset: int = 0
    pages: dict[int, Span] = Field(default_factory=dict)
    puzzles: dict[int, Span] = Field(default_factory=dict)

    @property
    def max_scroll(self) -> int:
        return max(0, int(self.content_height - self.viewport_height))

    @property
    def viewport(self) -> Span:
        return Span(top=self.offset, bottom=self.offset + self.viewport_height)

    def at(self, offset: int) -> "LayoutSnapshot":
        return self.model_copy(update={"offset": offset})


# --- Puzzle submission ---


class PuzzleResult(BaseModel):
    page_index: int
    solved: bool
    message: str
    newly_solved: bool = False
