"""Puzzle-gated scroll controller.

Input events go through ScrollMachine.reduce(), a pure transition that returns
the next state and a list of effects. ScrollController owns the current state,
applies Persist effects to the progress store and forwards every effect to the
renderer.
"""

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum

from scrollgate.config import ScrollConfig
from scrollgate.gate import GateEvaluator
from scrollgate.models import LayoutSnapshot, Page, Progress, PuzzleResult
from scrollgate.puzzle import check_answer
from scrollgate.session import StorySession

logger = logging.getLogger(__name__)


class ScrollMode(str, Enum):
    IDLE = "idle"
    BLOCKED = "blocked"


# --- Input events ---


@dataclass(frozen=True)
class WheelDelta:
    delta: float


@dataclass(frozen=True)
class KeyPress:
    key: str


@dataclass(frozen=True)
class TouchSwipe:
    start_y: float
    end_y: float

    @property
    def delta(self) -> float:
        return self.start_y - self.end_y


@dataclass(frozen=True)
class Resize:
    """Layout changed (viewport resize or content reflow) and has settled."""
    layout: LayoutSnapshot


@dataclass(frozen=True)
class PuzzleSolved:
    page_index: int


ScrollEvent = WheelDelta | KeyPress | TouchSwipe | Resize | PuzzleSolved


# --- Effects for the renderer ---


@dataclass(frozen=True)
class Persist:
    progress: Progress


@dataclass(frozen=True)
class ShowHint:
    visible: bool


@dataclass(frozen=True)
class ForceOffset:
    """Snap the viewport to offset immediately, without animation."""
    offset: int


@dataclass(frozen=True)
class SetTouchScroll:
    enabled: bool


@dataclass(frozen=True)
class LockPuzzlePanel:
    page_index: int


Effect = Persist | ShowHint | ForceOffset | SetTouchScroll | LockPuzzlePanel


@dataclass(frozen=True)
class ScrollState:
    layout: LayoutSnapshot
    offset: int = 0
    completed: frozenset[int] = field(default_factory=frozenset)
    mode: ScrollMode = ScrollMode.IDLE
    hint: bool = False
    blocking_page: int | None = None
    touch_enabled: bool = True

    @property
    def progress(self) -> Progress:
        return Progress(scroll_position=self.offset, completed_puzzles=set(self.completed))


def _clamp(value: float, low: int, high: int) -> int:
    return max(low, min(high, int(round(value))))


class ScrollMachine:
    """Pure state transitions for gated scrolling."""

    def __init__(
        self,
        pages: Sequence[Page],
        gate: GateEvaluator,
        config: ScrollConfig | None = None,
    ) -> None:
        self.pages = list(pages)
        self.gate = gate
        self.config = config or ScrollConfig()

    def initial_state(self, layout: LayoutSnapshot, progress: Progress) -> ScrollState:
        offset = _clamp(progress.scroll_position, 0, layout.max_scroll)
        return ScrollState(
            layout=layout.at(offset),
            offset=offset,
            completed=frozenset(progress.completed_puzzles),
        )

    def reduce(self, state: ScrollState, event: ScrollEvent) -> tuple[ScrollState, list[Effect]]:
        if isinstance(event, Resize):
            return self._resize(state, event.layout)
        if isinstance(event, PuzzleSolved):
            return self._solve(state, event.page_index)

        delta = self._delta(state, event)
        if delta is None:
            return state, []
        return self._move(state, delta)

    def _delta(self, state: ScrollState, event: ScrollEvent) -> float | None:
        cfg = self.config
        if isinstance(event, WheelDelta):
            return event.delta

        if isinstance(event, KeyPress):
            page_step = cfg.page_step_ratio * state.layout.viewport_height
            steps = {
                "ArrowDown": cfg.key_step,
                "ArrowUp": -cfg.key_step,
                "PageDown": page_step,
                " ": page_step,
                "PageUp": -page_step,
                "End": state.layout.max_scroll - state.offset,
                "Home": -state.offset,
            }
            return steps.get(event.key)

        if isinstance(event, TouchSwipe):
            if not state.touch_enabled:
                logger.debug("Touch scroll suppressed while page %s is gated", state.blocking_page)
                return None
            if abs(event.delta) < cfg.touch_threshold:
                return None
            return event.delta

        return None

    def _hint(self, state: ScrollState) -> bool:
        if state.offset >= state.layout.max_scroll - self.config.hint_epsilon:
            return False
        return not self.gate.is_blocked(self.pages, state.completed, state.layout.at(state.offset))

    def _settle(self, old: ScrollState, new: ScrollState, effects: list[Effect]) -> ScrollState:
        """Clear the gate, restore touch and refresh the hint."""
        new = replace(new, mode=ScrollMode.IDLE, blocking_page=None, touch_enabled=True)
        if not old.touch_enabled:
            effects.append(SetTouchScroll(True))
        hint = self._hint(new)
        if hint != old.hint:
            effects.append(ShowHint(hint))
        return replace(new, hint=hint)

    def _move(self, state: ScrollState, delta: float) -> tuple[ScrollState, list[Effect]]:
        layout = state.layout
        requested = _clamp(state.offset + delta, 0, layout.max_scroll)

        if requested == state.offset:
            return state, []

        if requested > state.offset:
            blocker = self.gate.blocking_page_between(
                self.pages, state.completed, layout.at(state.offset), requested,
            )
            if blocker is not None:
                effects: list[Effect] = []
                if state.touch_enabled:
                    effects.append(SetTouchScroll(False))
                if state.hint:
                    effects.append(ShowHint(False))
                if state.mode != ScrollMode.BLOCKED:
                    logger.info("Scroll blocked by unsolved puzzle on page %d", blocker.index)
                return replace(
                    state,
                    mode=ScrollMode.BLOCKED,
                    blocking_page=blocker.index,
                    touch_enabled=False,
                    hint=False,
                ), effects

        effects = []
        new = replace(state, offset=requested, layout=layout.at(requested))
        new = self._settle(state, new, effects)
        effects.insert(0, Persist(new.progress))
        return new, effects

    def _solve(self, state: ScrollState, page_index: int) -> tuple[ScrollState, list[Effect]]:
        if page_index in state.completed:
            return state, []
        effects: list[Effect] = []
        new = replace(state, completed=state.completed | {page_index})
        new = self._settle(state, new, effects)
        return new, [Persist(new.progress), LockPuzzlePanel(page_index), *effects]

    def _resize(self, state: ScrollState, layout: LayoutSnapshot) -> tuple[ScrollState, list[Effect]]:
        offset = _clamp(state.offset, 0, layout.max_scroll)
        effects: list[Effect] = []

        if self.gate.is_blocked(self.pages, state.completed, layout.at(offset)):
            safe = self.gate.find_safe_position(offset, layout, self.pages, state.completed)
            logger.info("Layout change put a puzzle in view; snapping %d -> %d", offset, safe)
            offset = safe
            effects.append(ForceOffset(offset))
        elif offset != state.offset:
            effects.append(ForceOffset(offset))

        new = replace(state, layout=layout.at(offset), offset=offset)
        new = self._settle(state, new, effects)
        if offset != state.offset:
            effects.insert(0, Persist(new.progress))
        return new, effects


class ResizeDebouncer:
    """Holds the latest layout until resize events stop for `interval` seconds."""

    def __init__(self, interval: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.interval = interval
        self.clock = clock
        self._pending: LayoutSnapshot | None = None
        self._deadline = 0.0

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def push(self, layout: LayoutSnapshot) -> None:
        self._pending = layout
        self._deadline = self.clock() + self.interval

    def poll(self) -> LayoutSnapshot | None:
        if self._pending is None or self.clock() < self._deadline:
            return None
        return self.flush()

    def flush(self) -> LayoutSnapshot | None:
        layout, self._pending = self._pending, None
        return layout


EffectListener = Callable[[Effect], None]


class ScrollController:
    """Runs ScrollMachine against a session and applies its effects."""

    def __init__(
        self,
        session: StorySession,
        layout: LayoutSnapshot,
        listener: EffectListener | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.session = session
        self.listener = listener
        self.machine = ScrollMachine(session.pages, session.gate, session.config.scroll)
        self.debouncer = ResizeDebouncer(session.config.scroll.resize_debounce, clock)
        self.state = self.machine.initial_state(layout, session.progress)
        # A restored offset may sit on a puzzle under the current layout
        self.dispatch(Resize(layout))

    @property
    def offset(self) -> int:
        return self.state.offset

    @property
    def blocked(self) -> bool:
        return self.state.mode == ScrollMode.BLOCKED

    @property
    def hint(self) -> bool:
        return self.state.hint

    def dispatch(self, event: ScrollEvent) -> list[Effect]:
        self.state, effects = self.machine.reduce(self.state, event)
        for effect in effects:
            if isinstance(effect, Persist):
                self.session.save_progress(effect.progress)
            if self.listener is not None:
                self.listener(effect)
        return effects

    def wheel(self, delta: float) -> list[Effect]:
        return self.dispatch(WheelDelta(delta))

    def key(self, key: str) -> list[Effect]:
        return self.dispatch(KeyPress(key))

    def swipe(self, start_y: float, end_y: float) -> list[Effect]:
        return self.dispatch(TouchSwipe(start_y, end_y))

    def on_resize(self, layout: LayoutSnapshot) -> None:
        """Queue a layout change; it is applied by poll() once resizing settles."""
        self.debouncer.push(layout)

    def poll(self) -> list[Effect]:
        layout = self.debouncer.poll()
        if layout is None:
            return []
        return self.dispatch(Resize(layout))

    def flush(self) -> list[Effect]:
        layout = self.debouncer.flush()
        if layout is None:
            return []
        return self.dispatch(Resize(layout))

    def submit_answer(self, page_index: int, answer: str) -> PuzzleResult:
        page = self.session.page(page_index)
        result = check_answer(page, answer, self.state.completed, self.session.config.puzzle)
        if result.newly_solved:
            self.dispatch(PuzzleSolved(page_index))
        return result
